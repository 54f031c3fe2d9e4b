from __future__ import annotations

from pathlib import Path


class NativeMessagingError(Exception):
    """Base class for every error raised by the native messaging host."""


class ConfigurationError(NativeMessagingError):
    pass


class FramingError(NativeMessagingError):
    """Truncated or malformed length-prefixed frame. Fatal to the channel."""


class DecodeError(NativeMessagingError):
    """Frame payload is not UTF-8 JSON whose top level is an object."""


class EncodeError(NativeMessagingError):
    pass


class StoreError(NativeMessagingError):
    def __init__(self, message: str, *, hostname: str) -> None:
        super().__init__(message)
        self.hostname = hostname


class RegistrationError(NativeMessagingError):
    """Raised by `Host.listen()` when the host is not registered with the browser."""

    def __init__(self, hostname: str, manifest_path: Path | str) -> None:
        super().__init__(f"native messaging host {hostname!r} is not registered (expected manifest {manifest_path})")
        self.hostname = hostname
        self.manifest_path = str(manifest_path)


__all__ = [
    "ConfigurationError",
    "DecodeError",
    "EncodeError",
    "FramingError",
    "NativeMessagingError",
    "RegistrationError",
    "StoreError",
]
