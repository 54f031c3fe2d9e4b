"""Executable wrapper scripts for the manifest `path` field.

Browsers start the manifest `path` directly with no interpreter and a bare
environment, so the wrapper pins everything the host reads at startup: the
interpreter, the import root and the `NATIVE_HOST_*` settings used at install
time (host name, manifest directory, discovery store).
"""

from __future__ import annotations

import shlex
from collections.abc import Mapping
from pathlib import Path

DEFAULT_MODULE = "native_messaging.echo_host"


def default_launcher_path(install_dir: Path, hostname: str, *, platform: str) -> Path:
    suffix = ".cmd" if platform == "win32" else ""
    return install_dir / f"{hostname}-host{suffix}"


def _cmd_script(module: str, python_exe: str, root: Path, environment: Mapping[str, str]) -> list[str]:
    lines = ["@echo off", "setlocal"]
    lines += [f'set "{name}={value}"' for name, value in sorted(environment.items())]
    lines.append(f'set "PYTHONPATH={root};%PYTHONPATH%"')
    lines.append(f'"{python_exe}" -m {module} %*')
    return lines


def _sh_script(module: str, python_exe: str, root: Path, environment: Mapping[str, str]) -> list[str]:
    lines = ["#!/bin/sh"]
    lines += [f"export {name}={shlex.quote(value)}" for name, value in sorted(environment.items())]
    lines.append(f'export PYTHONPATH={shlex.quote(str(root))}"${{PYTHONPATH:+:$PYTHONPATH}}"')
    lines.append(f'exec {shlex.quote(python_exe)} -m {module} "$@"')
    return lines


def launcher_script(
    *,
    module: str,
    python_exe: str,
    root: Path,
    platform: str,
    environment: Mapping[str, str] | None = None,
) -> str:
    render = _cmd_script if platform == "win32" else _sh_script
    return "\n".join(render(module, str(python_exe), root, environment or {})) + "\n"


def write_launcher(
    path: Path,
    *,
    module: str = DEFAULT_MODULE,
    python_exe: str,
    root: Path,
    platform: str,
    environment: Mapping[str, str] | None = None,
) -> Path:
    text = launcher_script(module=module, python_exe=python_exe, root=root, platform=platform, environment=environment)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    if platform != "win32":
        path.chmod(0o755)
    return path


__all__ = ["DEFAULT_MODULE", "default_launcher_path", "launcher_script", "write_launcher"]
