"""
Session with one miner.

Restrictions of the device side:
- an idle connection is dropped by the miner after about 300 seconds
- the API switch has to be enabled on the miner (this library can't do that)
- firmware has to speak API v3

One asyncio task owns the socket. Callers hand it framed requests through a
bounded queue and get the reply back on a future, so there is never more than
one request on the wire.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import socket
import weakref
from typing import Any, Union

from . import codec
from .account import Account, Password
from .auth import AuthData
from .command import Command
from .commands.device import GetDeviceInfo
from .errors import QueueClosedError, ReplyDroppedError, SaltNotFoundError, TransportError, WhatsminerError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 4433
QUEUE_SIZE = 10


class WorkItem:
    """Framed request waiting for the actor, with the future for its reply."""

    __slots__ = ("payload", "reply")

    def __init__(self, payload: bytes, reply: "asyncio.Future[str]"):
        self.payload = payload
        self.reply = reply


_SHUTDOWN = object()


class Actor:
    """
    Authenticated session with one miner.

    Create it with ``await Actor.connect(host, ...)`` and close it with
    ``await actor.close()`` or ``async with``. It can be shared by any number
    of tasks on the same event loop. Dropping the last reference without
    closing also stops the actor task once the queued requests are served.
    """

    def __init__(
        self,
        addr: str,
        account: Account,
        password: Password,
        salt: str,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        queue_size: int = QUEUE_SIZE,
    ):
        self.addr = addr
        self.account = account
        self.password = password
        self.salt = salt
        self._writer = writer
        self._queue: "asyncio.Queue[Any]" = asyncio.Queue(maxsize=queue_size)
        self._closing = False
        # the task must not hold a reference to self, or the handle is never collected
        self._task = asyncio.create_task(_run(self._queue, reader, writer, addr))
        self._finalizer = weakref.finalize(
            self, _handle_dropped, asyncio.get_running_loop(), self._queue, self._task, addr
        )
        self._finalizer.atexit = False

    @classmethod
    async def connect(
        cls,
        host: str,
        port: int = DEFAULT_PORT,
        account: Account = Account.SUPER,
        password: Union[Password, str, None] = None,
        queue_size: int = QUEUE_SIZE,
    ) -> "Actor":
        """Open the connection, fetch the session salt and start the actor task."""

        addr = f"{host}:{port}"
        password = Password.coerce(password, account)
        logger.info("Connecting to %s", addr)
        try:
            reader, writer = await asyncio.open_connection(host, port)
        except OSError as exc:
            raise TransportError(f"Failed to connect to {addr}: {exc}") from exc
        sock = writer.get_extra_info("socket")
        if sock is not None:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        try:
            salt = await get_salt(reader, writer)
        except BaseException:
            writer.close()
            raise
        logger.debug("Salt received from %s", addr)
        actor = cls(addr, account, password, salt, reader, writer, queue_size)
        logger.info("Session with %s established as %s", addr, account)
        return actor

    async def __aenter__(self) -> "Actor":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    @property
    def closed(self) -> bool:
        return self._closing or self._task.done()

    def auth_data(self, command: Command) -> AuthData:
        """Fresh authentication block for one invocation of command."""

        if self.closed:
            raise QueueClosedError(f"Session with {self.addr} is closed")
        logger.debug("Generating auth data for %s", command.name)
        return AuthData.generate(command.name, self.account, self.password, self.salt)

    async def send(self, command: Command) -> Any:
        """Execute command on this session and return its parsed response."""

        logger.info("Sending command %s", command.name)
        response = await command.execute(self)
        logger.debug("Command %s executed", command.name)
        return response

    async def submit(self, payload: bytes) -> str:
        """Queue a framed request and wait for the raw reply."""

        if self.closed:
            raise QueueClosedError(f"Session with {self.addr} is closed")
        reply: "asyncio.Future[str]" = asyncio.get_running_loop().create_future()
        await self._queue.put(WorkItem(payload, reply))
        if self._task.done():
            # the actor exited while we waited for room in the queue
            _drain(self._queue, self.addr)
        return await reply

    async def close(self) -> None:
        """Stop the actor after the queued requests, close the socket and wipe secrets."""

        self._finalizer.detach()
        if not self._closing:
            self._closing = True
            if not self._task.done():
                await self._queue.put(_SHUTDOWN)
        await asyncio.gather(self._task, return_exceptions=True)
        _drain(self._queue, self.addr)
        with contextlib.suppress(OSError):
            await self._writer.wait_closed()
        self.password.wipe()

    def __repr__(self) -> str:
        return f"Actor(addr={self.addr!r}, account={self.account!s}, closed={self.closed})"


def _handle_dropped(
    loop: asyncio.AbstractEventLoop, queue: "asyncio.Queue[Any]", task: asyncio.Task, addr: str
) -> None:
    if task.done() or loop.is_closed():
        return
    logger.info("Actor for %s: session handle dropped without close()", addr)
    loop.call_soon_threadsafe(_request_shutdown, queue, task)


def _request_shutdown(queue: "asyncio.Queue[Any]", task: asyncio.Task) -> None:
    try:
        queue.put_nowait(_SHUTDOWN)
    except asyncio.QueueFull:
        task.cancel()


def _drain(queue: "asyncio.Queue[Any]", addr: str) -> None:
    while not queue.empty():
        item = queue.get_nowait()
        if isinstance(item, WorkItem) and not item.reply.done():
            item.reply.set_exception(ReplyDroppedError(f"Session with {addr} stopped before replying"))


async def _run(
    queue: "asyncio.Queue[Any]",
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    addr: str,
) -> None:
    logger.info("Actor worker started for %s", addr)
    item = None
    try:
        while True:
            item = await queue.get()
            if item is _SHUTDOWN:
                logger.info("Actor for %s: shutdown requested", addr)
                break
            logger.debug("Actor for %s: processing request", addr)
            try:
                result: Union[str, WhatsminerError] = await codec.process_unknown(reader, writer, item.payload)
            except WhatsminerError as exc:
                logger.error("Actor for %s: error while processing request: %s", addr, exc)
                result = exc
            _deliver(addr, item, result)
            item = None
    finally:
        writer.close()
        if isinstance(item, WorkItem) and not item.reply.done():
            item.reply.set_exception(ReplyDroppedError(f"Session with {addr} stopped before replying"))
        _drain(queue, addr)
        logger.info("Actor worker for %s stopped", addr)


def _deliver(addr: str, item: WorkItem, result: Union[str, WhatsminerError]) -> None:
    if item.reply.done():
        if isinstance(result, WhatsminerError):
            logger.warning("Actor for %s: requester went away, dropping error result: %s", addr, result)
        else:
            logger.warning("Actor for %s: requester went away, dropping %d byte result", addr, len(result))
        return
    if isinstance(result, WhatsminerError):
        item.reply.set_exception(result)
    else:
        item.reply.set_result(result)


async def get_salt(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> str:
    """Unauthenticated ``get.device.info`` asking only for the salt."""

    response = await codec.process(reader, writer, GetDeviceInfo.salt_only())
    if response.msg is None or not response.msg.salt:
        raise SaltNotFoundError("Salt not found in get.device.info response")
    return response.msg.salt


__all__ = ["Actor", "DEFAULT_PORT", "QUEUE_SIZE", "WorkItem", "get_salt"]
