from __future__ import annotations

import os
from pathlib import Path


def test_posix_launcher_script(tmp_path: Path) -> None:
    from native_messaging.launcher import default_launcher_path, write_launcher

    path = default_launcher_path(tmp_path, "com.example.echo", platform="linux")
    assert path == tmp_path / "com.example.echo-host"
    write_launcher(
        path,
        python_exe="/usr/bin/python3",
        root=Path("/srv/my app"),
        platform="linux",
        environment={"NATIVE_HOST_NAME": "com.example.echo", "NATIVE_HOST_INSTALL_DIR": "/opt/hosts"},
    )

    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "#!/bin/sh"
    assert lines[1:3] == [
        "export NATIVE_HOST_INSTALL_DIR=/opt/hosts",
        "export NATIVE_HOST_NAME=com.example.echo",
    ]
    assert lines[3] == "export PYTHONPATH='/srv/my app'\"${PYTHONPATH:+:$PYTHONPATH}\""
    assert lines[-1] == 'exec /usr/bin/python3 -m native_messaging.echo_host "$@"'
    if os.name != "nt":
        assert path.stat().st_mode & 0o777 == 0o755


def test_windows_launcher_script(tmp_path: Path) -> None:
    from native_messaging.launcher import default_launcher_path, launcher_script

    assert default_launcher_path(tmp_path, "com.example.echo", platform="win32").name == "com.example.echo-host.cmd"
    text = launcher_script(
        module="my_app.host",
        python_exe=r"C:\Python312\python.exe",
        root=Path("C:/app"),
        platform="win32",
        environment={"NATIVE_HOST_STORE": "registry"},
    )
    lines = text.splitlines()
    assert lines[:3] == ["@echo off", "setlocal", 'set "NATIVE_HOST_STORE=registry"']
    assert lines[-1] == r'"C:\Python312\python.exe" -m my_app.host %*'
    assert text.endswith("\n")


def test_launcher_environment_rebuilds_host_config(tmp_path: Path) -> None:
    from native_messaging.config import HostConfig

    config = HostConfig(
        install_dir=tmp_path,
        executable_path=str(tmp_path / "com.example.echo-host"),
        store_kind="file",
        store_file=tmp_path / "hosts.json",
        send_confirmation_receipt=False,
        max_message_bytes=4096,
    )
    assert HostConfig.from_env(config.to_env(), platform="linux") == config
