from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any

from . import echo_host
from .config import STORE_KINDS, HostConfig, configure_logging, expand_path
from .errors import NativeMessagingError
from .host import Host
from .launcher import DEFAULT_MODULE, default_launcher_path, write_launcher
from .manifest import load_manifest
from .stores import REGISTRY_BASES

_LOGGER = logging.getLogger("native_messaging.cli")


def _print_json(payload: dict[str, Any]) -> None:
    sys.stdout.write(json.dumps(payload, indent=2) + "\n")
    sys.stdout.flush()


def _config_from_args(args: argparse.Namespace) -> HostConfig:
    config = HostConfig.from_env()
    overrides: dict[str, Any] = {}
    if args.install_dir:
        overrides["install_dir"] = expand_path(args.install_dir)
    if args.executable:
        overrides["executable_path"] = str(expand_path(args.executable))
    if args.browser:
        overrides["browser"] = args.browser
    if args.store:
        overrides["store_kind"] = args.store
    if args.store_file:
        overrides["store_file"] = expand_path(args.store_file)
    return dataclasses.replace(config, **overrides)


def _host(args: argparse.Namespace, config: HostConfig) -> Host:
    return Host(args.hostname, send_confirmation_receipt=config.send_confirmation_receipt, config=config)


def _cmd_install(args: argparse.Namespace, config: HostConfig) -> int:
    install_dir = config.resolve_install_dir()
    launcher = default_launcher_path(install_dir, args.hostname, platform=sys.platform)
    config = dataclasses.replace(config, install_dir=install_dir, executable_path=str(launcher))
    write_launcher(
        launcher,
        module=args.module,
        python_exe=args.python,
        root=expand_path(args.root).resolve(),
        platform=sys.platform,
        environment={"NATIVE_HOST_NAME": args.hostname, **config.to_env()},
    )
    host = _host(args, config)
    manifest = host.generate_manifest(args.description, args.origin)
    host.register()
    _print_json(
        {
            "hostname": host.hostname,
            "launcher": str(launcher),
            "manifest_path": str(host.manifest_path),
            "allowed_origins": manifest.allowed_origins,
            "registered": host.is_registered(),
        }
    )
    return 0


def _cmd_manifest(args: argparse.Namespace, config: HostConfig) -> int:
    host = _host(args, config)
    manifest = host.generate_manifest(args.description, args.origin)
    _print_json({"manifest_path": str(host.manifest_path), "manifest": manifest.to_dict()})
    return 0


def _cmd_register(args: argparse.Namespace, config: HostConfig) -> int:
    host = _host(args, config)
    host.register()
    _print_json({"hostname": host.hostname, "registered": host.is_registered()})
    return 0


def _cmd_unregister(args: argparse.Namespace, config: HostConfig) -> int:
    host = _host(args, config)
    host.unregister()
    _print_json({"hostname": host.hostname, "registered": host.is_registered()})
    return 0


def _cmd_status(args: argparse.Namespace, config: HostConfig) -> int:
    host = _host(args, config)
    recorded = host.store.get(host.hostname)
    report: dict[str, Any] = {
        "hostname": host.hostname,
        "manifest_path": str(host.manifest_path),
        "recorded_path": recorded,
        "registered": recorded == str(host.manifest_path),
        "state": host.state.value,
        "manifest": None,
    }
    if host.manifest_path.exists():
        report["manifest"] = load_manifest(host.manifest_path).to_dict()
    _print_json(report)
    return 0 if report["registered"] else 3


def _cmd_listen(args: argparse.Namespace, config: HostConfig) -> int:
    return echo_host.run(args.extra, config=config, hostname=args.hostname)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="native-messaging-host", description="Manage a browser native messaging host.")
    parser.add_argument("--hostname", default=echo_host.default_hostname(), help="native messaging host name")
    parser.add_argument("--install-dir", help="directory holding the host manifest")
    parser.add_argument("--executable", help="path written to the manifest `path` field")
    parser.add_argument("--browser", choices=sorted(REGISTRY_BASES), help="browser whose discovery store is used")
    parser.add_argument("--store", choices=STORE_KINDS, help="discovery store backend")
    parser.add_argument("--store-file", help="JSON store location (file backend)")
    sub = parser.add_subparsers(dest="command", required=True)

    def _manifest_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--description", default="Native messaging host", help="manifest description")
        p.add_argument(
            "--origin",
            action="append",
            required=True,
            help="allowed extension origin, e.g. chrome-extension://<id>/ (repeatable)",
        )

    p_install = sub.add_parser("install", help="write launcher + manifest and register the host")
    _manifest_args(p_install)
    p_install.add_argument("--python", default=sys.executable, help="interpreter used by the launcher")
    p_install.add_argument("--module", default=DEFAULT_MODULE, help="module the launcher runs with -m")
    p_install.add_argument("--root", default=str(Path.cwd()), help="directory added to PYTHONPATH by the launcher")
    p_install.set_defaults(func=_cmd_install)

    p_manifest = sub.add_parser("manifest", help="write the host manifest")
    _manifest_args(p_manifest)
    p_manifest.set_defaults(func=_cmd_manifest)

    sub.add_parser("register", help="point the discovery store at the manifest").set_defaults(func=_cmd_register)
    sub.add_parser("unregister", help="remove the discovery record").set_defaults(func=_cmd_unregister)
    sub.add_parser("status", help="print registration status as JSON").set_defaults(func=_cmd_status)

    p_listen = sub.add_parser("listen", help="run the echo host on stdin/stdout")
    p_listen.add_argument("extra", nargs="*", help="arguments passed by the browser")
    p_listen.set_defaults(func=_cmd_listen)
    return parser


def run(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = _config_from_args(args)
        configure_logging(config)
        return int(args.func(args, config))
    except NativeMessagingError as exc:
        _LOGGER.error("command_failed command=%s %s: %s", args.command, type(exc).__name__, exc)
        return 1
    except OSError as exc:
        _LOGGER.error("command_failed command=%s os_error: %s", args.command, exc)
        return 1


def main() -> None:
    try:
        raise SystemExit(run())
    except KeyboardInterrupt:
        raise SystemExit(0) from None


if __name__ == "__main__":
    main()
