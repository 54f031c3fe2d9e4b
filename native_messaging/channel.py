from __future__ import annotations

import logging
import sys
import threading
from typing import BinaryIO

from .framing import EndOfStream, Message, decode_message, encode_frame, serialize_message

_LOGGER = logging.getLogger("native_messaging.channel")

# Chrome drops host -> browser messages above 1 MiB.
BROWSER_INBOUND_LIMIT = 1024 * 1024


class MessageChannel:
    """One framed JSON message stream pair (browser -> host input, host -> browser output).

    `send()` may be called from several threads; writes are serialised so that
    frames never interleave. `receive()` is meant to be driven by a single loop.
    """

    def __init__(self, input_stream: BinaryIO, output_stream: BinaryIO, *, max_message_bytes: int | None = None) -> None:
        self._input = input_stream
        self._output = output_stream
        self._max_message_bytes = max_message_bytes
        self._write_lock = threading.Lock()

    @classmethod
    def from_stdio(cls, *, max_message_bytes: int | None = None) -> MessageChannel:
        # Native messaging requires strict stdout framing. Never write logs to stdout.
        return cls(sys.stdin.buffer, sys.stdout.buffer, max_message_bytes=max_message_bytes)

    def receive(self) -> Message | EndOfStream:
        """Block until a full message arrives or the browser closes the pipe."""
        _LOGGER.debug("waiting_for_message")
        return decode_message(self._input, max_bytes=self._max_message_bytes)

    def send(self, message: Message) -> None:
        """Frame and write `message`, returning only after the output is flushed."""
        payload = serialize_message(message)
        if len(payload) > BROWSER_INBOUND_LIMIT:
            _LOGGER.warning("message_exceeds_browser_limit bytes=%s limit=%s", len(payload), BROWSER_INBOUND_LIMIT)
        frame = encode_frame(payload)
        with self._write_lock:
            self._output.write(frame)
            self._output.flush()
        _LOGGER.debug("message_sent bytes=%s", len(payload))


__all__ = ["BROWSER_INBOUND_LIMIT", "MessageChannel"]
