from __future__ import annotations

import logging
from typing import Any

from ..errors import StoreError
from .base import REGISTRY_BASES, registry_key

_LOGGER = logging.getLogger("native_messaging.stores.windows")


def _import_winreg() -> Any:
    try:
        import winreg  # type: ignore[import-not-found]
    except ImportError as exc:
        raise StoreError(f"winreg unavailable: {exc}", hostname="") from exc
    return winreg


class WindowsRegistryStore:
    """HKEY_CURRENT_USER registry keys whose default value is the manifest path.

    `api` defaults to the `winreg` module, imported on first use.
    """

    def __init__(self, base: str = REGISTRY_BASES["chrome"], *, api: Any | None = None) -> None:
        self.base = base
        self._api = api

    def _winreg(self) -> Any:
        if self._api is None:
            self._api = _import_winreg()
        return self._api

    def key_path(self, hostname: str) -> str:
        return registry_key(self.base, hostname)

    def get(self, hostname: str) -> str | None:
        winreg = self._winreg()
        path = self.key_path(hostname)
        try:
            with winreg.OpenKey(winreg.HKEY_CURRENT_USER, path) as key:
                value, _kind = winreg.QueryValueEx(key, "")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StoreError(f"registry read failed for HKCU\\{path}: {exc}", hostname=hostname) from exc
        return None if value is None else str(value)

    def set(self, hostname: str, manifest_path: str) -> None:
        winreg = self._winreg()
        path = self.key_path(hostname)
        try:
            with winreg.CreateKey(winreg.HKEY_CURRENT_USER, path) as key:
                winreg.SetValueEx(key, "", 0, winreg.REG_SZ, str(manifest_path))
        except OSError as exc:
            raise StoreError(f"registry write failed for HKCU\\{path}: {exc}", hostname=hostname) from exc
        _LOGGER.debug("registry_key_written key=HKCU\\%s", path)

    def delete(self, hostname: str) -> None:
        winreg = self._winreg()
        path = self.key_path(hostname)
        try:
            winreg.DeleteKey(winreg.HKEY_CURRENT_USER, path)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StoreError(f"registry delete failed for HKCU\\{path}: {exc}", hostname=hostname) from exc
        _LOGGER.debug("registry_key_deleted key=HKCU\\%s", path)
