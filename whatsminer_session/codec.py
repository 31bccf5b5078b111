"""
Framing for the miner's TCP API.

Every message in both directions is a 4-byte little-endian length followed by
that many bytes of UTF-8 JSON. Only this module touches the stream.
"""

from __future__ import annotations

import asyncio
import logging
import struct
from typing import TYPE_CHECKING

from .errors import FramingError, TransportError

if TYPE_CHECKING:
    from .command import Command

logger = logging.getLogger(__name__)

HEADER = struct.Struct("<I")
# Sizing hint only; longer frames are still read in full.
READ_BUFFER_HINT = 8192


def encode_frame(payload: bytes) -> bytes:
    """Length prefix followed by payload."""

    return HEADER.pack(len(payload)) + payload


async def send(writer: asyncio.StreamWriter, payload: bytes) -> None:
    """Write the length prefix and payload, then flush."""

    logger.debug("Sending %d bytes", len(payload))
    try:
        writer.write(encode_frame(payload))
        await writer.drain()
    except (OSError, RuntimeError) as exc:
        raise TransportError(f"Failed to send request: {exc}") from exc


async def _read_exactly(reader: asyncio.StreamReader, n: int, what: str) -> bytes:
    try:
        return await reader.readexactly(n)
    except asyncio.IncompleteReadError as exc:
        raise TransportError(f"Connection closed while reading {what} ({len(exc.partial)}/{n} bytes)") from exc
    except OSError as exc:
        raise TransportError(f"Failed to read {what}: {exc}") from exc


async def read_unknown(reader: asyncio.StreamReader) -> str:
    """Read one frame and return its body as text."""

    header = await _read_exactly(reader, HEADER.size, "response length")
    (resp_len,) = HEADER.unpack(header)
    logger.debug("Response length header: %d bytes", resp_len)
    if resp_len == 0:
        raise FramingError("Received a zero-length response")
    if resp_len > READ_BUFFER_HINT:
        logger.debug("Response of %d bytes exceeds the %d byte buffer hint", resp_len, READ_BUFFER_HINT)
    body = await _read_exactly(reader, resp_len, "response body")
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FramingError(f"Response is not valid UTF-8: {exc}") from exc


async def read(reader: asyncio.StreamReader, command: "Command"):
    """Read one frame and parse it with the command's response schema."""

    raw = await read_unknown(reader)
    return command.parse_response(raw)


async def process_unknown(reader: asyncio.StreamReader, writer: asyncio.StreamWriter, payload: bytes) -> str:
    """One full round trip: send payload, read the reply frame."""

    await send(writer, payload)
    return await read_unknown(reader)


async def process(reader: asyncio.StreamReader, writer: asyncio.StreamWriter, command: "Command"):
    """Round trip for a command built without authentication data."""

    await send(writer, command.to_request_bytes(None))
    return await read(reader, command)


__all__ = [
    "HEADER",
    "READ_BUFFER_HINT",
    "encode_frame",
    "process",
    "process_unknown",
    "read",
    "read_unknown",
    "send",
]
