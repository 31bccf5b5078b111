from __future__ import annotations


class WhatsminerError(Exception):
    """Base class for every failure reported by this package."""


class TransportError(WhatsminerError):
    """Raised when connecting, reading or writing the TCP stream fails."""


class FramingError(WhatsminerError):
    """Raised when a frame has a zero length header or a non UTF-8 body."""


class SerializationError(WhatsminerError):
    """Raised when a response is not valid JSON or does not match its schema."""


class EncryptionError(WhatsminerError):
    """Raised when parameter encryption cannot be performed."""


class SaltNotFoundError(WhatsminerError):
    """Raised when the handshake response carries no salt."""


class CommandRequiresAuthData(WhatsminerError):
    """Raised when an encrypted command is built without authentication data."""

    def __init__(self, command: str):
        super().__init__(f"Command {command}: should have auth data")
        self.command = command


class CommandDefinitionError(WhatsminerError, TypeError):
    """Raised when a command class declares an impossible flag combination."""


class PasswordWipedError(WhatsminerError):
    """Raised when a wiped password is used to sign a request."""


class QueueClosedError(WhatsminerError):
    """Raised when submitting to a session whose actor no longer runs."""


class ReplyDroppedError(WhatsminerError):
    """Raised when the actor stopped before replying to a submitted request."""


__all__ = [
    "CommandDefinitionError",
    "CommandRequiresAuthData",
    "EncryptionError",
    "FramingError",
    "PasswordWipedError",
    "QueueClosedError",
    "ReplyDroppedError",
    "SaltNotFoundError",
    "SerializationError",
    "TransportError",
    "WhatsminerError",
]
