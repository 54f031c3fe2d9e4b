from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..errors import ConfigurationError

# HKCU-relative registry locations where Chromium-family browsers look up native hosts.
REGISTRY_BASES: dict[str, str] = {
    "chrome": r"Software\Google\Chrome\NativeMessagingHosts",
    "chrome-beta": r"Software\Google\Chrome Beta\NativeMessagingHosts",
    "chrome-dev": r"Software\Google\Chrome Dev\NativeMessagingHosts",
    "chrome-canary": r"Software\Google\Chrome SxS\NativeMessagingHosts",
    "chromium": r"Software\Chromium\NativeMessagingHosts",
    "brave": r"Software\BraveSoftware\Brave-Browser\NativeMessagingHosts",
    "edge": r"Software\Microsoft\Edge\NativeMessagingHosts",
}


def registry_base_for(browser: str) -> str:
    label = (browser or "").strip().lower()
    try:
        return REGISTRY_BASES[label]
    except KeyError:
        known = ", ".join(sorted(REGISTRY_BASES))
        raise ConfigurationError(f"unknown browser {browser!r} (expected one of: {known})") from None


def registry_key(base: str, hostname: str) -> str:
    return base.rstrip("\\") + "\\" + hostname


@runtime_checkable
class RegistrationStore(Protocol):
    """Key-value view of the browser's native host discovery mechanism.

    Keys are host names, values are absolute manifest paths. Implementations
    raise `StoreError` when the backend fails; a missing key is never an error.
    """

    def get(self, hostname: str) -> str | None: ...

    def set(self, hostname: str, manifest_path: str) -> None: ...

    def delete(self, hostname: str) -> None: ...
