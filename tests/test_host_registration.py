from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

ORIGIN = "chrome-extension://knldjmfmopnpolahpmmgbagdohdnhkik/"


def _host(tmp_path: Path, store=None, hostname: str = "com.example.echo"):
    from native_messaging.host import Host
    from native_messaging.stores import InMemoryRegistrationStore

    return Host(
        hostname,
        lambda m, h: None,
        store=store if store is not None else InMemoryRegistrationStore(),
        install_dir=tmp_path,
        executable_path=str(tmp_path / "bin" / "echo-host"),
    )


def test_manifest_path_is_derived_from_install_dir_and_hostname(tmp_path: Path) -> None:
    host = _host(tmp_path)
    assert host.manifest_path == tmp_path / "com.example.echo-manifest.json"


def test_manifest_path_defaults_to_executable_directory(tmp_path: Path) -> None:
    from native_messaging.config import HostConfig
    from native_messaging.host import Host
    from native_messaging.stores import InMemoryRegistrationStore

    exe = tmp_path / "dist" / "host.exe"
    host = Host(
        "com.example.echo",
        store=InMemoryRegistrationStore(),
        config=HostConfig(executable_path=str(exe)),
    )
    assert host.manifest_path == exe.parent / "com.example.echo-manifest.json"
    assert host.executable_path == str(exe)


def test_register_twice_leaves_one_record(tmp_path: Path) -> None:
    from native_messaging.stores import InMemoryRegistrationStore

    store = InMemoryRegistrationStore()
    host = _host(tmp_path, store)
    host.register()
    host.register()
    assert store.snapshot() == {"com.example.echo": str(host.manifest_path)}
    assert host.is_registered() is True


def test_register_overwrites_stale_record(tmp_path: Path) -> None:
    from native_messaging.stores import InMemoryRegistrationStore

    store = InMemoryRegistrationStore({"com.example.echo": "C:\\old\\com.example.echo-manifest.json"})
    host = _host(tmp_path, store)
    assert host.is_registered() is False
    host.register()
    assert host.is_registered() is True
    assert store.snapshot() == {"com.example.echo": str(host.manifest_path)}


def test_unregister_twice_is_a_noop(tmp_path: Path) -> None:
    from native_messaging.stores import InMemoryRegistrationStore

    store = InMemoryRegistrationStore({"com.example.other": "/x.json"})
    host = _host(tmp_path, store)
    host.register()
    host.unregister()
    host.unregister()
    assert store.snapshot() == {"com.example.other": "/x.json"}
    assert host.is_registered() is False


def test_generate_manifest_writes_expected_json(tmp_path: Path) -> None:
    from native_messaging.stores import InMemoryRegistrationStore

    store = InMemoryRegistrationStore()
    host = _host(tmp_path, store)
    manifest = host.generate_manifest("Echo host", [ORIGIN])

    raw = host.manifest_path.read_text(encoding="utf-8")
    data = json.loads(raw)
    assert list(data) == ["name", "description", "path", "type", "allowed_origins"]
    assert data == {
        "name": "com.example.echo",
        "description": "Echo host",
        "path": str(tmp_path / "bin" / "echo-host"),
        "type": "stdio",
        "allowed_origins": [ORIGIN],
    }
    assert manifest.to_dict() == data
    assert store.snapshot() == {}
    if os.name != "nt":
        assert host.manifest_path.stat().st_mode & 0o777 == 0o644


def test_generate_manifest_overwrites_previous_file(tmp_path: Path) -> None:
    from native_messaging.manifest import load_manifest

    host = _host(tmp_path)
    host.generate_manifest("first", [ORIGIN, "chrome-extension://bbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb/"])
    host.generate_manifest("second", [ORIGIN])
    manifest = load_manifest(host.manifest_path)
    assert manifest.description == "second"
    assert manifest.allowed_origins == [ORIGIN]


def test_generate_manifest_rejects_wildcard_origin(tmp_path: Path) -> None:
    from native_messaging.errors import ConfigurationError

    host = _host(tmp_path)
    with pytest.raises(ConfigurationError, match="wildcard"):
        host.generate_manifest("Echo host", ["chrome-extension://*/*"])
    assert not host.manifest_path.exists()


@pytest.mark.parametrize("hostname", ["Com.Example", ".leading", "trailing.", "double..dot", "has-dash", ""])
def test_invalid_hostname_is_rejected(tmp_path: Path, hostname: str) -> None:
    from native_messaging.errors import ConfigurationError

    with pytest.raises(ConfigurationError):
        _host(tmp_path, hostname=hostname)


def test_store_errors_reach_the_caller(tmp_path: Path) -> None:
    from native_messaging.errors import StoreError

    class _DeniedStore:
        def get(self, hostname: str) -> str | None:
            raise StoreError("access denied", hostname=hostname)

        def set(self, hostname: str, manifest_path: str) -> None:
            raise StoreError("access denied", hostname=hostname)

        def delete(self, hostname: str) -> None:
            raise StoreError("access denied", hostname=hostname)

    host = _host(tmp_path, _DeniedStore())
    for op in (host.register, host.unregister, host.is_registered, host.listen):
        with pytest.raises(StoreError, match="access denied"):
            op()
