import asyncio
import json

import pytest

from conftest import envelope, frame
from whatsminer_session import codec
from whatsminer_session.commands import GetFanSettings
from whatsminer_session.errors import FramingError, SerializationError, TransportError


class CollectingWriter:
    def __init__(self, fail=False):
        self.data = bytearray()
        self.fail = fail
        self.drained = 0
        self.writes = 0

    def write(self, data):
        if self.fail:
            raise ConnectionResetError("peer reset")
        self.writes += 1
        self.data.extend(data)

    async def drain(self):
        self.drained += 1


def reader_with(data: bytes, eof: bool = True) -> asyncio.StreamReader:
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    if eof:
        reader.feed_eof()
    return reader


@pytest.mark.asyncio
async def test_send_writes_little_endian_length_prefix():
    writer = CollectingWriter()
    await codec.send(writer, b'{"cmd":"get.device.info"}')

    assert bytes(writer.data[:4]) == (25).to_bytes(4, "little")
    assert bytes(writer.data[4:]) == b'{"cmd":"get.device.info"}'
    assert writer.drained == 1


def test_encode_frame_matches_wire_format():
    payload = b'{"cmd":"get.fan.setting"}'
    assert codec.encode_frame(payload) == frame(payload)
    assert codec.encode_frame(b"") == b"\x00\x00\x00\x00"


@pytest.mark.asyncio
async def test_send_issues_a_single_write():
    writer = CollectingWriter()
    await codec.send(writer, b"x" * 300)

    assert writer.writes == 1
    assert bytes(writer.data) == codec.encode_frame(b"x" * 300)


@pytest.mark.asyncio
async def test_send_wraps_socket_errors():
    with pytest.raises(TransportError):
        await codec.send(CollectingWriter(fail=True), b"x")


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", ["a", "{}", "ü" * 100, "x" * 20000])
async def test_frame_roundtrip(payload):
    writer = CollectingWriter()
    await codec.send(writer, payload.encode("utf-8"))

    assert await codec.read_unknown(reader_with(bytes(writer.data))) == payload


@pytest.mark.asyncio
async def test_read_unknown_reads_past_buffer_hint():
    body = "y" * (codec.READ_BUFFER_HINT * 3 + 7)
    assert await codec.read_unknown(reader_with(frame(body))) == body


@pytest.mark.asyncio
async def test_zero_length_frame_is_rejected():
    writer = CollectingWriter()
    await codec.send(writer, b"")
    with pytest.raises(FramingError):
        await codec.read_unknown(reader_with(bytes(writer.data)))


@pytest.mark.asyncio
async def test_non_utf8_body_is_rejected():
    with pytest.raises(FramingError):
        await codec.read_unknown(reader_with(frame(b"\xff\xfe\xfd")))


@pytest.mark.asyncio
@pytest.mark.parametrize("data", [b"", b"\x05\x00", frame(b"hello")[:-2]])
async def test_short_reads_are_transport_errors(data):
    with pytest.raises(TransportError):
        await codec.read_unknown(reader_with(data))


@pytest.mark.asyncio
async def test_read_parses_with_command_schema():
    msg = {"fan-poweroff-cool": 1, "fan-zero-speed": 0, "fan-temp-offset": -2}
    response = await codec.read(reader_with(frame(envelope(msg, desc="get.fan.setting"))), GetFanSettings())

    assert response.ok
    assert response.msg.fan_temp_offset == -2
    assert response.desc == "get.fan.setting"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        "not json",
        json.dumps({"code": 0, "when": 1, "desc": "missing msg"}),
        envelope({"fan-poweroff-cool": "x"}),
    ],
)
async def test_read_reports_schema_mismatch(body):
    with pytest.raises(SerializationError):
        await codec.read(reader_with(frame(body)), GetFanSettings())
