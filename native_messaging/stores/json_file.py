from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from ..errors import StoreError
from .base import REGISTRY_BASES, registry_key

_LOGGER = logging.getLogger("native_messaging.stores.json_file")


def default_store_file() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if isinstance(xdg, str) and xdg.strip():
        base = Path(xdg.strip()).expanduser()
    else:
        base = Path.home() / ".config"
    return base / "native-messaging" / "hosts.json"


class JsonFileRegistrationStore:
    """Registry-shaped discovery store persisted as one JSON object on disk.

    Records are keyed like the Windows registry (`<base>\\<hostname>`) so that a
    single file can hold registrations for several browsers.
    """

    def __init__(self, path: Path | None = None, *, base: str = REGISTRY_BASES["chrome"]) -> None:
        self.path = Path(path) if path is not None else default_store_file()
        self.base = base

    def _load(self, hostname: str) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StoreError(f"cannot read store {self.path}: {exc}", hostname=hostname) from exc
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise StoreError(f"store {self.path} is not valid JSON: {exc}", hostname=hostname) from exc
        if not isinstance(data, dict):
            raise StoreError(f"store {self.path} must hold a JSON object", hostname=hostname)
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, records: dict[str, str], hostname: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".hosts-", suffix=".json", dir=str(self.path.parent))
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fp:
                    fp.write(json.dumps(records, indent=2, sort_keys=True) + "\n")
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StoreError(f"cannot write store {self.path}: {exc}", hostname=hostname) from exc

    def get(self, hostname: str) -> str | None:
        return self._load(hostname).get(registry_key(self.base, hostname))

    def set(self, hostname: str, manifest_path: str) -> None:
        records = self._load(hostname)
        records[registry_key(self.base, hostname)] = str(manifest_path)
        self._save(records, hostname)
        _LOGGER.debug("store_record_written file=%s hostname=%s", self.path, hostname)

    def delete(self, hostname: str) -> None:
        records = self._load(hostname)
        if records.pop(registry_key(self.base, hostname), None) is None:
            return
        self._save(records, hostname)
        _LOGGER.debug("store_record_deleted file=%s hostname=%s", self.path, hostname)
