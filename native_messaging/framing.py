"""Chrome Native Messaging framing.

Every message, in both directions, is a 4-byte little-endian unsigned length
followed by exactly that many bytes of UTF-8 JSON. There is no separator and no
terminator; the length prefix is the only synchronisation point, so any
truncation is fatal to the stream.
"""

from __future__ import annotations

import json
import struct
from typing import Any, BinaryIO

from .errors import DecodeError, EncodeError, FramingError

Message = dict[str, Any]

HEADER_SIZE = 4
MAX_FRAME_LENGTH = 0xFFFFFFFF
_HEADER = struct.Struct("<I")


class EndOfStream:
    """Orderly end of the input stream (the browser closed the pipe)."""

    __slots__ = ()
    _instance: EndOfStream | None = None

    def __new__(cls) -> EndOfStream:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "END_OF_STREAM"

    def __bool__(self) -> bool:
        return False


END_OF_STREAM = EndOfStream()


def encode_frame(payload: bytes) -> bytes:
    if len(payload) > MAX_FRAME_LENGTH:
        raise EncodeError(f"payload of {len(payload)} bytes does not fit a 32-bit length prefix")
    return _HEADER.pack(len(payload)) + payload


def serialize_message(message: Message) -> bytes:
    """Compact UTF-8 JSON for one message (no whitespace between tokens)."""
    if not isinstance(message, dict):
        raise EncodeError(f"native messages must be JSON objects, got {type(message).__name__}")
    try:
        raw = json.dumps(message, ensure_ascii=False, allow_nan=False, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise EncodeError(f"message is not JSON serializable: {exc}") from exc
    try:
        return raw.encode("utf-8")
    except UnicodeEncodeError:
        # Lone surrogates have no UTF-8 form; \uXXXX escapes keep the text intact.
        return json.dumps(message, ensure_ascii=True, allow_nan=False, separators=(",", ":")).encode("ascii")


def encode_message(message: Message) -> bytes:
    return encode_frame(serialize_message(message))


def _read_exact(stream: BinaryIO, n: int) -> bytes:
    """Read up to `n` bytes, stopping early only at end of stream."""
    buf = bytearray()
    while len(buf) < n:
        chunk = stream.read(n - len(buf))
        if not chunk:
            break
        buf.extend(chunk)
    return bytes(buf)


def read_frame(stream: BinaryIO, *, max_bytes: int | None = None) -> bytes | EndOfStream:
    """Read one frame payload from `stream`.

    Returns `END_OF_STREAM` when the stream closes before any prefix byte
    arrives. A partial prefix, a payload shorter than the prefix declares, or a
    declared length above `max_bytes` raise `FramingError`.
    """
    header = _read_exact(stream, HEADER_SIZE)
    if not header:
        return END_OF_STREAM
    if len(header) < HEADER_SIZE:
        raise FramingError(f"stream closed after {len(header)} of {HEADER_SIZE} length prefix bytes")
    (length,) = _HEADER.unpack(header)
    if max_bytes is not None and length > max_bytes:
        raise FramingError(f"frame length {length} exceeds limit of {max_bytes} bytes")
    payload = _read_exact(stream, length)
    if len(payload) < length:
        raise FramingError(f"stream closed after {len(payload)} of {length} payload bytes")
    return payload


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a JSON value")


def decode_payload(payload: bytes) -> Message:
    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"payload is not valid UTF-8: {exc}") from exc
    try:
        obj = json.loads(text, parse_constant=_reject_constant)
    except ValueError as exc:
        raise DecodeError(f"payload is not valid JSON: {exc}") from exc
    if not isinstance(obj, dict):
        raise DecodeError(f"payload must be a JSON object, got {type(obj).__name__}")
    return obj


def decode_message(stream: BinaryIO, *, max_bytes: int | None = None) -> Message | EndOfStream:
    payload = read_frame(stream, max_bytes=max_bytes)
    if isinstance(payload, EndOfStream):
        return payload
    return decode_payload(payload)


__all__ = [
    "END_OF_STREAM",
    "HEADER_SIZE",
    "MAX_FRAME_LENGTH",
    "EndOfStream",
    "Message",
    "decode_message",
    "decode_payload",
    "encode_frame",
    "encode_message",
    "read_frame",
    "serialize_message",
]
