"""Echo native messaging host.

Launched by the browser when the extension calls `connectNative()`. Every
message is answered with `{"id": <n>, "echo": <message>}`, after the automatic
confirmation receipt when that is enabled.
"""

from __future__ import annotations

import logging
import os
import sys

from .config import HostConfig, configure_logging
from .errors import NativeMessagingError
from .framing import Message
from .host import Host

DEFAULT_HOSTNAME = "com.example.native_echo"
_LOGGER = logging.getLogger("native_messaging.echo_host")


class EchoProcessor:
    def __init__(self) -> None:
        self.count = 0

    def handle(self, message: Message, host: Host) -> None:
        self.count += 1
        host.send_message({"id": self.count, "echo": message})


def caller_origin(argv: list[str]) -> str | None:
    """Origin of the calling extension; browsers pass it as the first argument."""
    for arg in argv:
        if arg.startswith(("chrome-extension://", "moz-extension://")):
            return arg
    return None


def default_hostname() -> str:
    return os.environ.get("NATIVE_HOST_NAME", "").strip() or DEFAULT_HOSTNAME


def run(argv: list[str] | None = None, *, config: HostConfig | None = None, hostname: str | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    try:
        config = config or HostConfig.from_env()
        configure_logging(config)
        host = Host.from_config(hostname or default_hostname(), EchoProcessor(), config)
        _LOGGER.info("echo_host_started hostname=%s origin=%s", host.hostname, caller_origin(argv))
        host.listen()
    except NativeMessagingError as exc:
        _LOGGER.error("echo_host_failed %s: %s", type(exc).__name__, exc)
        return 1
    except OSError as exc:
        _LOGGER.error("echo_host_failed os_error %s: %s", type(exc).__name__, exc)
        return 1
    return 0


def main() -> None:
    try:
        raise SystemExit(run())
    except KeyboardInterrupt:
        raise SystemExit(0) from None


if __name__ == "__main__":
    main()
