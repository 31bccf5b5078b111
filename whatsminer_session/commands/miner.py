from __future__ import annotations

import json
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..command import Command
from ..response import Response


class MinerSettings(BaseModel):
    model_config = ConfigDict(alias_generator=lambda name: name.replace("_", "-"), populate_by_name=True)

    power_limit: int
    upfreq_speed: int
    power_mode: str
    fast_boot: str
    target_freq: int
    # firmware 3.0.3 and later
    fast_mining: Optional[str] = None
    power: Optional[int] = None
    power_percent: Optional[int] = None


class GetMinerSettings(Command):
    name = "get.miner.setting"
    response_type = Response[MinerSettings]


class SetMinerFastboot(Command):
    """``set.miner.fastboot``: enable or disable fast boot."""

    name = "set.miner.fastboot"
    secured = True
    response_type = Response[str]

    def __init__(self, enable: bool = False):
        self.enable = enable

    def params(self) -> Optional[str]:
        return "enable" if self.enable else "disable"

    def __repr__(self) -> str:
        return f"SetMinerFastboot({self.enable})"


class Pool(BaseModel):
    """One stratum pool entry for ``set.miner.pools``."""

    pool: str
    worker: str
    password: str = Field(default="", serialization_alias="passwd")


class SetMinerPools(Command):
    """
    ``set.miner.pools``: replace the pool list.

    The parameter is the JSON list of pools, AES encrypted with the request's
    authentication key.
    """

    name = "set.miner.pools"
    secured = True
    encrypted = True
    response_type = Response[str]

    def __init__(self, pools: Iterable[Pool] = ()):
        self.pools: List[Pool] = list(pools)

    def params(self) -> Optional[str]:
        return json.dumps([pool.model_dump(by_alias=True) for pool in self.pools], separators=(",", ":"))

    def __repr__(self) -> str:
        return f"SetMinerPools(<{len(self.pools)} pools>)"
