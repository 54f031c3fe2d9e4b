from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _reset_root_handlers():
    import logging

    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()


def _config(tmp_path: Path):
    from native_messaging.config import HostConfig

    return HostConfig(
        install_dir=tmp_path,
        executable_path=str(tmp_path / "echo-host"),
        store_kind="file",
        store_file=tmp_path / "hosts.json",
        log_file=str(tmp_path / "host.log"),
        log_level="INFO",
    )


def test_caller_origin_picks_extension_argument() -> None:
    from native_messaging.echo_host import caller_origin

    assert caller_origin(["--parent-window=0", "chrome-extension://abc/"]) == "chrome-extension://abc/"
    assert caller_origin(["moz-extension://xyz/"]) == "moz-extension://xyz/"
    assert caller_origin([]) is None


@pytest.mark.parametrize("exc_type", [BrokenPipeError, ConnectionResetError])
def test_run_reports_closed_output_pipe(tmp_path: Path, monkeypatch, exc_type: type[OSError]) -> None:
    from native_messaging import echo_host
    from native_messaging.host import Host

    def _listen(self: Host) -> None:
        raise exc_type(32, "Broken pipe")

    monkeypatch.setattr(Host, "listen", _listen)
    assert echo_host.run([], config=_config(tmp_path), hostname="com.example.echo") == 1
    log = (tmp_path / "host.log").read_text(encoding="utf-8")
    assert "echo_host_failed os_error" in log
    assert exc_type.__name__ in log


def test_run_reports_missing_registration(tmp_path: Path) -> None:
    from native_messaging import echo_host

    assert echo_host.run([], config=_config(tmp_path), hostname="com.example.echo") == 1
    assert "RegistrationError" in (tmp_path / "host.log").read_text(encoding="utf-8")
