from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from ..command import Command
from ..response import Response


def _kebab(name: str) -> str:
    return name.replace("_", "-")


class LogUpload(BaseModel):
    ip: str
    port: str
    proto: str


class TimeRandomized(BaseModel):
    start: int
    stop: int


class SystemSettings(BaseModel):
    model_config = ConfigDict(alias_generator=_kebab, populate_by_name=True)

    web_pool: int
    timezone: str
    zonename: str
    hostname: str
    # not reported by every firmware
    log_upload: Optional[LogUpload] = None
    time_randomized: TimeRandomized
    ntp_server: List[str]


class GetSystemSetting(Command):
    name = "get.system.setting"
    response_type = Response[SystemSettings]
