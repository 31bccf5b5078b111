"""Whatsminer API v3 session client: one authenticated TCP connection shared by many callers."""

from .account import Account, Password
from .actor import DEFAULT_PORT, QUEUE_SIZE, Actor
from .auth import AuthData, generate_token
from .command import Command, RawCommand
from .errors import (
    CommandDefinitionError,
    CommandRequiresAuthData,
    EncryptionError,
    FramingError,
    PasswordWipedError,
    QueueClosedError,
    ReplyDroppedError,
    SaltNotFoundError,
    SerializationError,
    TransportError,
    WhatsminerError,
)
from .request import Request
from .response import Response

__all__ = [
    "DEFAULT_PORT",
    "QUEUE_SIZE",
    "Account",
    "Actor",
    "AuthData",
    "Command",
    "CommandDefinitionError",
    "CommandRequiresAuthData",
    "EncryptionError",
    "FramingError",
    "Password",
    "PasswordWipedError",
    "QueueClosedError",
    "RawCommand",
    "ReplyDroppedError",
    "Request",
    "Response",
    "SaltNotFoundError",
    "SerializationError",
    "TransportError",
    "WhatsminerError",
    "generate_token",
]
