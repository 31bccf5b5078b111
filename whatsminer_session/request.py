from __future__ import annotations

import json
from typing import Any, Dict, Optional

from .auth import AuthData


class Request:
    """
    Request envelope sent to the miner.

    ``account``, ``ts`` and ``token`` are present only for secured commands,
    ``param`` only when the command has a parameter.
    """

    __slots__ = ("cmd", "auth_data", "parameter")

    def __init__(self, cmd: str, auth_data: Optional[AuthData] = None, parameter: Optional[str] = None):
        self.cmd = cmd
        self.auth_data = auth_data
        self.parameter = parameter

    def to_dict(self) -> Dict[str, Any]:
        request: Dict[str, Any] = {"cmd": self.cmd}
        if self.auth_data is not None:
            request.update(self.auth_data.to_dict())
        if self.parameter is not None:
            request["param"] = self.parameter
        return request

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    def to_bytes(self) -> bytes:
        return self.to_json().encode("utf-8")

    def __repr__(self) -> str:
        auth = "<hidden>" if self.auth_data is not None else None
        return f"Request(cmd={self.cmd!r}, auth_data={auth}, parameter=<hidden>)"
