from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from ..command import Command
from ..response import Response


class FanSettings(BaseModel):
    model_config = ConfigDict(alias_generator=lambda name: name.replace("_", "-"), populate_by_name=True)

    fan_poweroff_cool: int
    fan_zero_speed: int
    fan_temp_offset: int


class GetFanSettings(Command):
    name = "get.fan.setting"
    response_type = Response[FanSettings]
