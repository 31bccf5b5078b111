import asyncio
import json
import struct

import pytest

SALT = "BQ5hoXV9"


def frame(payload):
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return struct.pack("<I", len(payload)) + payload


def envelope(msg, code=0, desc="", when=1700000000):
    return json.dumps({"code": code, "when": when, "msg": msg, "desc": desc})


class FakeMiner:
    """
    Loopback server speaking the miner's framing.

    The first request is answered with the salt. Every later request is
    recorded and answered by ``handler(request_dict, index)``, which returns
    the reply text (or None to close the connection without replying).
    """

    def __init__(self, handler=None, salt_reply=None, delay=0.0):
        self.handler = handler or (lambda request, index: envelope("ok", desc=request["cmd"]))
        self.salt_reply = salt_reply if salt_reply is not None else envelope({"salt": SALT}, desc="get.device.info")
        self.delay = delay
        self.handshake = None
        self.requests = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._server = None
        self.port = None

    async def _read_frame(self, reader):
        header = await reader.readexactly(4)
        (length,) = struct.unpack("<I", header)
        return json.loads((await reader.readexactly(length)).decode("utf-8"))

    async def _serve(self, reader, writer):
        try:
            self.handshake = await self._read_frame(reader)
            writer.write(frame(self.salt_reply))
            await writer.drain()
            while True:
                request = await self._read_frame(reader)
                self.in_flight += 1
                self.max_in_flight = max(self.max_in_flight, self.in_flight)
                index = len(self.requests)
                self.requests.append(request)
                if self.delay:
                    await asyncio.sleep(self.delay)
                reply = self.handler(request, index)
                self.in_flight -= 1
                if reply is None:
                    break
                writer.write(reply if isinstance(reply, bytes) else frame(reply))
                await writer.drain()
        except (asyncio.IncompleteReadError, ConnectionError):
            pass
        finally:
            writer.close()

    async def __aenter__(self):
        self._server = await asyncio.start_server(self._serve, "127.0.0.1", 0)
        self.port = self._server.sockets[0].getsockname()[1]
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self._server.close()
        await self._server.wait_closed()


@pytest.fixture
def fake_miner():
    return FakeMiner
