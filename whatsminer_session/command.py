from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, ClassVar, Optional

from pydantic import BaseModel, ValidationError

from .auth import AuthData
from .errors import CommandDefinitionError, CommandRequiresAuthData, SerializationError
from .request import Request
from .response import RawResponse

if TYPE_CHECKING:
    from .actor import Actor

logger = logging.getLogger(__name__)


class Command:
    """
    Base class for miner commands.

    Subclasses set ``name`` and, where needed, ``secured`` (the request
    carries an authentication block), ``encrypted`` (the parameter is AES
    encrypted with the block's key, implies ``secured``) and
    ``response_type``. They override ``params()`` when the command takes a
    parameter.

    Example::

        class SetMinerFastboot(Command):
            name = "set.miner.fastboot"
            secured = True
            response_type = Response[str]

            def __init__(self, enable: bool):
                self.enable = enable

            def params(self):
                return "enable" if self.enable else "disable"
    """

    name: ClassVar[str] = ""
    secured: ClassVar[bool] = False
    encrypted: ClassVar[bool] = False
    response_type: ClassVar[type[BaseModel]] = RawResponse

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if cls.encrypted and not cls.secured:
            raise CommandDefinitionError(f"{cls.__name__}: encrypted commands must also be secured")

    def params(self) -> Optional[str]:
        return None

    def to_request(self, auth_data: Optional[AuthData] = None) -> Request:
        parameter = self.params()
        if auth_data is not None:
            if parameter is not None and self.encrypted:
                parameter = auth_data.encrypt(parameter)
        elif self.encrypted:
            raise CommandRequiresAuthData(self.name)
        return Request(self.name, auth_data, parameter)

    def to_request_string(self, auth_data: Optional[AuthData] = None) -> str:
        return self.to_request(auth_data).to_json()

    def to_request_bytes(self, auth_data: Optional[AuthData] = None) -> bytes:
        return self.to_request(auth_data).to_bytes()

    @classmethod
    def parse_response(cls, raw: str) -> Any:
        """Decode a raw reply; override for replies that are not plain JSON envelopes."""

        try:
            return cls.response_type.model_validate_json(raw)
        except ValidationError as exc:
            raise SerializationError(f"{cls.name}: unexpected response: {exc}") from exc

    async def execute(self, actor: "Actor") -> Any:
        auth_data = actor.auth_data(self) if self.secured else None
        try:
            payload = self.to_request_bytes(auth_data)
        finally:
            if auth_data is not None:
                auth_data.wipe()
        logger.debug("Submitting %s (%d bytes)", self.name, len(payload))
        raw = await actor.submit(payload)
        return self.parse_response(raw)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class RawCommand(Command):
    """
    Command chosen at runtime by name.

    ``param`` may be any JSON value; anything but a string is sent as compact
    JSON text.
    """

    ENCRYPTED_COMMANDS = frozenset({"set.miner.pools", "set.user.change_passwd"})

    def __init__(self, name: str, param: Any = None, secured: Optional[bool] = None, encrypted: Optional[bool] = None):
        if encrypted is None:
            encrypted = name in self.ENCRYPTED_COMMANDS
        if secured is None:
            secured = name.startswith("set.") or encrypted
        if encrypted and not secured:
            raise CommandDefinitionError(f"{name}: encrypted commands must also be secured")
        self.name = name
        self.param = param
        self.secured = secured
        self.encrypted = encrypted

    def params(self) -> Optional[str]:
        if self.param is None or isinstance(self.param, str):
            return self.param
        return json.dumps(self.param, separators=(",", ":"), ensure_ascii=False)

    def parse_response(self, raw: str) -> Any:
        try:
            return RawResponse.model_validate_json(raw)
        except ValidationError as exc:
            raise SerializationError(f"{self.name}: unexpected response: {exc}") from exc

    def __repr__(self) -> str:
        return f"RawCommand({self.name!r}, secured={self.secured}, encrypted={self.encrypted})"


__all__ = ["Command", "RawCommand"]
