from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

MsgT = TypeVar("MsgT")

# Success; any other code is a device defined failure.
CODE_OK = 0


class Response(BaseModel, Generic[MsgT]):
    """Response envelope; ``msg`` is shaped per command."""

    code: int = Field(ge=-128, le=127)
    when: int = Field(ge=0)
    msg: MsgT
    desc: str

    @property
    def ok(self) -> bool:
        return self.code == CODE_OK


RawResponse = Response[Any]
