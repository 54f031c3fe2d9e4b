from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigurationError
from .stores import JsonFileRegistrationStore, RegistrationStore, WindowsRegistryStore, registry_base_for

STORE_KINDS = ("registry", "file")
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def expand_path(raw: str) -> Path:
    return Path(raw).expanduser()


def default_store_kind(platform: str) -> str:
    return "registry" if platform == "win32" else "file"


def default_executable_path() -> str:
    if getattr(sys, "frozen", False):
        return str(Path(sys.executable).resolve())
    argv0 = sys.argv[0] if sys.argv and sys.argv[0] else ""
    if not argv0 or argv0 == "-c":
        return str(Path(sys.executable).resolve())
    return str(Path(argv0).resolve())


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be a boolean (1/0, true/false), got {raw!r}")


def _parse_limit(name: str, raw: str) -> int | None:
    try:
        value = int(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative, got {value}")
    return value or None


@dataclass
class HostConfig:
    install_dir: Path | None = None
    executable_path: str | None = None
    browser: str = "chrome"
    store_kind: str = field(default_factory=lambda: default_store_kind(sys.platform))
    store_file: Path | None = None
    send_confirmation_receipt: bool = True
    max_message_bytes: int | None = None
    log_file: str | None = None
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, *, platform: str | None = None) -> HostConfig:
        env = os.environ if environ is None else environ
        platform = platform or sys.platform

        install_raw = env.get("NATIVE_HOST_INSTALL_DIR", "").strip()
        executable = env.get("NATIVE_HOST_EXECUTABLE", "").strip()
        browser = env.get("NATIVE_HOST_BROWSER", "").strip().lower() or "chrome"
        registry_base_for(browser)

        store_kind = env.get("NATIVE_HOST_STORE", "").strip().lower() or default_store_kind(platform)
        if store_kind not in STORE_KINDS:
            raise ConfigurationError(f"NATIVE_HOST_STORE must be one of {', '.join(STORE_KINDS)}, got {store_kind!r}")
        store_file_raw = env.get("NATIVE_HOST_STORE_FILE", "").strip()

        confirm_raw = env.get("NATIVE_HOST_CONFIRM", "")
        confirm = _parse_bool("NATIVE_HOST_CONFIRM", confirm_raw) if confirm_raw.strip() else True

        limit_raw = env.get("NATIVE_HOST_MAX_MESSAGE_BYTES", "")
        max_bytes = _parse_limit("NATIVE_HOST_MAX_MESSAGE_BYTES", limit_raw) if limit_raw.strip() else None

        log_level = env.get("NATIVE_HOST_LOG_LEVEL", "").strip().upper() or "WARNING"
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigurationError(f"NATIVE_HOST_LOG_LEVEL is not a logging level: {log_level!r}")

        return cls(
            install_dir=expand_path(install_raw) if install_raw else None,
            executable_path=str(expand_path(executable)) if executable else None,
            browser=browser,
            store_kind=store_kind,
            store_file=expand_path(store_file_raw) if store_file_raw else None,
            send_confirmation_receipt=confirm,
            max_message_bytes=max_bytes,
            log_file=env.get("NATIVE_HOST_LOG_FILE", "").strip() or None,
            log_level=log_level,
        )

    def to_env(self) -> dict[str, str]:
        """Environment that makes `from_env()` rebuild this config in a launched host."""
        env = {
            "NATIVE_HOST_BROWSER": self.browser,
            "NATIVE_HOST_STORE": self.store_kind,
            "NATIVE_HOST_CONFIRM": "1" if self.send_confirmation_receipt else "0",
            "NATIVE_HOST_LOG_LEVEL": self.log_level,
        }
        if self.install_dir is not None:
            env["NATIVE_HOST_INSTALL_DIR"] = str(self.install_dir)
        if self.executable_path:
            env["NATIVE_HOST_EXECUTABLE"] = self.executable_path
        if self.store_file is not None:
            env["NATIVE_HOST_STORE_FILE"] = str(self.store_file)
        if self.max_message_bytes is not None:
            env["NATIVE_HOST_MAX_MESSAGE_BYTES"] = str(self.max_message_bytes)
        if self.log_file:
            env["NATIVE_HOST_LOG_FILE"] = self.log_file
        return env

    def resolve_executable(self) -> str:
        return self.executable_path or default_executable_path()

    def resolve_install_dir(self) -> Path:
        if self.install_dir is not None:
            return self.install_dir
        return Path(self.resolve_executable()).parent

    def create_store(self) -> RegistrationStore:
        base = registry_base_for(self.browser)
        if self.store_kind == "registry":
            return WindowsRegistryStore(base)
        if self.store_kind == "file":
            return JsonFileRegistrationStore(self.store_file, base=base)
        raise ConfigurationError(f"unknown store kind: {self.store_kind!r}")


def configure_logging(config: HostConfig) -> None:
    """Send logs to stderr or `config.log_file`; stdout carries the wire protocol."""
    handler: logging.Handler
    if config.log_file:
        path = expand_path(config.log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        handlers=[handler],
        force=True,
    )


__all__ = ["STORE_KINDS", "HostConfig", "configure_logging", "default_executable_path", "default_store_kind"]
