"""Native messaging host: receive loop plus registration lifecycle.

Typical first run::

    host = Host("com.example.echo", EchoProcessor())
    host.generate_manifest("Echo host", ["chrome-extension://<id>/"])
    host.register()
    host.listen()

Application behaviour comes from an injected `MessageProcessor` or from a
subclass overriding `process_received_message`.
"""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol, Union

from .channel import MessageChannel
from .config import HostConfig
from .errors import RegistrationError
from .framing import EndOfStream, Message
from .manifest import HostManifest, build_manifest, validate_hostname, write_manifest
from .stores import RegistrationStore

_LOGGER = logging.getLogger("native_messaging.host")

CONFIRMATION_KEY = "original"


class HostState(enum.Enum):
    UNREGISTERED = "unregistered"
    REGISTERED_IDLE = "registered_idle"
    LISTENING = "listening"
    TERMINATED = "terminated"


class MessageProcessor(Protocol):
    def handle(self, message: Message, host: Host) -> None: ...


Processor = Union[MessageProcessor, Callable[[Message, "Host"], None]]


def confirmation_receipt(message: Message) -> Message:
    return {CONFIRMATION_KEY: message}


def manifest_path_for(install_dir: Path, hostname: str) -> Path:
    return Path(install_dir) / f"{hostname}-manifest.json"


class Host:
    def __init__(
        self,
        hostname: str,
        processor: Processor | None = None,
        *,
        send_confirmation_receipt: bool = True,
        store: RegistrationStore | None = None,
        channel: MessageChannel | None = None,
        install_dir: Path | None = None,
        executable_path: str | None = None,
        config: HostConfig | None = None,
    ) -> None:
        self._hostname = validate_hostname(hostname)
        self._processor = processor
        self._send_confirmation_receipt = bool(send_confirmation_receipt)
        self._config = config or HostConfig()
        self._store = store if store is not None else self._config.create_store()
        self._channel = channel
        self._executable_path = executable_path or self._config.resolve_executable()
        self._manifest_path = manifest_path_for(install_dir or self._config.resolve_install_dir(), self._hostname)
        self._lock = threading.Lock()
        self._listening = False
        self._terminated = False

    @classmethod
    def from_config(cls, hostname: str, processor: Processor | None = None, config: HostConfig | None = None) -> Host:
        config = config or HostConfig.from_env()
        return cls(
            hostname,
            processor,
            send_confirmation_receipt=config.send_confirmation_receipt,
            config=config,
        )

    @property
    def hostname(self) -> str:
        return self._hostname

    @property
    def send_confirmation_receipt(self) -> bool:
        return self._send_confirmation_receipt

    @property
    def manifest_path(self) -> Path:
        return self._manifest_path

    @property
    def executable_path(self) -> str:
        return self._executable_path

    @property
    def store(self) -> RegistrationStore:
        return self._store

    @property
    def channel(self) -> MessageChannel:
        if self._channel is None:
            self._channel = MessageChannel.from_stdio(max_message_bytes=self._config.max_message_bytes)
        return self._channel

    @property
    def state(self) -> HostState:
        if self._listening:
            return HostState.LISTENING
        if self._terminated:
            return HostState.TERMINATED
        return HostState.REGISTERED_IDLE if self.is_registered() else HostState.UNREGISTERED

    # Messaging

    def listen(self) -> None:
        """Receive and dispatch messages until the browser closes the input stream.

        Raises `RegistrationError` before reading anything if the host is not
        registered. `FramingError`/`DecodeError` end the loop and propagate.
        """
        if not self.is_registered():
            raise RegistrationError(self._hostname, self._manifest_path)
        with self._lock:
            if self._listening:
                raise RuntimeError(f"host {self._hostname!r} is already listening")
            self._listening = True
            self._terminated = False
        _LOGGER.info("listen_started hostname=%s confirm=%s", self._hostname, self._send_confirmation_receipt)
        channel = self.channel
        received = 0
        try:
            while True:
                message = channel.receive()
                if isinstance(message, EndOfStream):
                    break
                received += 1
                _LOGGER.debug("message_received hostname=%s keys=%s", self._hostname, sorted(message))
                if self._send_confirmation_receipt:
                    self.send_message(confirmation_receipt(message))
                self.process_received_message(message)
        except Exception:
            _LOGGER.exception("listen_failed hostname=%s received=%s", self._hostname, received)
            raise
        finally:
            with self._lock:
                self._listening = False
                self._terminated = True
        _LOGGER.info("listen_finished hostname=%s received=%s", self._hostname, received)

    def send_message(self, message: Message) -> None:
        """Send one message to the browser; returns once the bytes are flushed."""
        self.channel.send(message)

    def process_received_message(self, message: Message) -> None:
        processor = self._processor
        if processor is None:
            raise NotImplementedError(
                f"{type(self).__name__} needs a message processor or a process_received_message override"
            )
        handle: Callable[[Message, Host], Any] | None = getattr(processor, "handle", None)
        if handle is None:
            handle = processor  # type: ignore[assignment]
        handle(message, self)

    # Registration lifecycle

    def generate_manifest(self, description: str, allowed_origins: list[str]) -> HostManifest:
        """Write the host manifest to `manifest_path`, replacing any previous one."""
        _LOGGER.info("manifest_generating hostname=%s path=%s", self._hostname, self._manifest_path)
        manifest = build_manifest(self._hostname, description, self._executable_path, allowed_origins)
        write_manifest(self._manifest_path, manifest)
        _LOGGER.info("manifest_generated hostname=%s origins=%s", self._hostname, manifest.allowed_origins)
        return manifest

    def register(self) -> None:
        self._store.set(self._hostname, str(self._manifest_path))
        _LOGGER.info("host_registered hostname=%s path=%s", self._hostname, self._manifest_path)

    def is_registered(self) -> bool:
        """True iff the store points this host name at the current manifest path.

        A record for another path (an older install location) does not count.
        """
        return self._store.get(self._hostname) == str(self._manifest_path)

    def unregister(self) -> None:
        self._store.delete(self._hostname)
        _LOGGER.info("host_unregistered hostname=%s", self._hostname)


__all__ = [
    "CONFIRMATION_KEY",
    "Host",
    "HostState",
    "MessageProcessor",
    "Processor",
    "confirmation_receipt",
    "manifest_path_for",
]
