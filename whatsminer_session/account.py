from __future__ import annotations

import enum
from typing import Union

from .errors import PasswordWipedError


class Account(enum.Enum):
    """Fixed accounts known to the miner firmware (API v3)."""

    SUPER = "super"
    USER1 = "user1"
    USER2 = "user2"
    USER3 = "user3"

    def __str__(self) -> str:
        return self.value


class Password:
    """
    Account password kept in a mutable buffer so it can be wiped.

    Out of the box every account's password equals the account name; use
    ``Password.default(account)`` for that, or ``Password("...")`` once it was
    changed on the device.
    """

    __slots__ = ("_secret", "_default_for", "_wiped")

    def __init__(self, value: Union[str, bytes]):
        if isinstance(value, str):
            value = value.encode("utf-8")
        self._secret = bytearray(value)
        self._default_for = None
        self._wiped = False

    @classmethod
    def default(cls, account: Account) -> "Password":
        password = cls(account.value)
        password._default_for = account
        return password

    @classmethod
    def coerce(cls, value: Union["Password", str, bytes, None], account: Account) -> "Password":
        """Build a Password from user input, falling back to the account default.

        A Password argument is copied, so wiping the result leaves the
        caller's object usable.
        """

        if value is None:
            return cls.default(account)
        if isinstance(value, Password):
            if value.wiped:
                raise PasswordWipedError("Password was wiped")
            password = cls(bytes(value._secret))
            password._default_for = value._default_for
            return password
        return cls(value)

    @property
    def is_default(self) -> bool:
        return self._default_for is not None

    def reveal(self) -> str:
        if self._wiped:
            raise PasswordWipedError("Password was wiped")
        return self._secret.decode("utf-8")

    def wipe(self) -> None:
        for i in range(len(self._secret)):
            self._secret[i] = 0
        self._wiped = True

    @property
    def wiped(self) -> bool:
        return self._wiped

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Password):
            return NotImplemented
        return self._secret == other._secret

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        if self._default_for is not None:
            return f"Password.default({self._default_for!s})"
        return "Password(<hidden>)"

    def __del__(self):
        if hasattr(self, "_secret"):
            self.wipe()


__all__ = ["Account", "Password"]
