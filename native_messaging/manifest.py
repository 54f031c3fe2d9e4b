from __future__ import annotations

import contextlib
import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ConfigurationError

MANIFEST_TYPE = "stdio"

# Chrome: lowercase alphanumerics, underscores and dots; no leading/trailing dot, no "..".
_HOSTNAME_RE = re.compile(r"^[a-z0-9_]+(\.[a-z0-9_]+)*$")


def validate_hostname(hostname: str) -> str:
    if not isinstance(hostname, str) or not _HOSTNAME_RE.match(hostname):
        raise ConfigurationError(
            f"invalid native messaging host name {hostname!r}: "
            "use lowercase letters, digits, '_' and single dots (not at either end)"
        )
    return hostname


def validate_origins(origins: list[str] | tuple[str, ...]) -> list[str]:
    if isinstance(origins, str):
        raise ConfigurationError("allowed_origins must be a sequence of origin strings, not a single string")
    out: list[str] = []
    for origin in origins:
        if not isinstance(origin, str) or not origin.strip():
            raise ConfigurationError(f"invalid allowed origin: {origin!r}")
        if "*" in origin:
            raise ConfigurationError(f"wildcard origins are not allowed: {origin!r}")
        out.append(origin.strip())
    return out


@dataclass(frozen=True, slots=True)
class HostManifest:
    name: str
    description: str
    path: str
    allowed_origins: list[str] = field(default_factory=list)
    type: str = MANIFEST_TYPE

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "path": self.path,
            "type": self.type,
            "allowed_origins": list(self.allowed_origins),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HostManifest:
        try:
            name = data["name"]
            path = data["path"]
        except KeyError as exc:
            raise ConfigurationError(f"manifest missing required field {exc.args[0]!r}") from exc
        origins = data.get("allowed_origins") or []
        if not isinstance(origins, list):
            raise ConfigurationError("manifest `allowed_origins` must be a list")
        return cls(
            name=str(name),
            description=str(data.get("description") or ""),
            path=str(path),
            allowed_origins=[str(o) for o in origins],
            type=str(data.get("type") or MANIFEST_TYPE),
        )


def build_manifest(hostname: str, description: str, executable_path: Path | str, allowed_origins: list[str]) -> HostManifest:
    return HostManifest(
        name=validate_hostname(hostname),
        description=str(description or ""),
        path=str(executable_path),
        allowed_origins=validate_origins(allowed_origins),
    )


def write_manifest(path: Path, manifest: HostManifest) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(manifest.to_dict(), indent=2) + "\n", encoding="utf-8")
    if os.name != "nt":
        with contextlib.suppress(OSError):
            path.chmod(0o644)


def load_manifest(path: Path) -> HostManifest:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigurationError(f"manifest not found: {path}") from exc
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"unreadable manifest {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"manifest {path} is not a JSON object")
    return HostManifest.from_dict(data)


__all__ = [
    "MANIFEST_TYPE",
    "HostManifest",
    "build_manifest",
    "load_manifest",
    "validate_hostname",
    "validate_origins",
    "write_manifest",
]
