from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..command import Command
from ..response import Response


def _kebab(name: str) -> str:
    return name.replace("_", "-")


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=_kebab, populate_by_name=True)


class GetDeviceInfoParam:
    """
    Sections requested from ``get.device.info``.

    All sections on (the default) or all off sends no parameter, which the
    device answers with everything.
    """

    # Order in which the selected sections are joined into the parameter.
    SECTIONS = ("error-code", "miner", "network", "power", "salt", "system")

    def __init__(
        self,
        miner: bool = True,
        power: bool = True,
        network: bool = True,
        system: bool = True,
        salt: bool = True,
        error_code: bool = True,
    ):
        self.miner = miner
        self.power = power
        self.network = network
        self.system = system
        self.salt = salt
        self.error_code = error_code

    @classmethod
    def only(cls, *sections: str) -> "GetDeviceInfoParam":
        unknown = set(sections) - set(cls.SECTIONS)
        if unknown:
            raise ValueError(f"Unknown device info sections: {', '.join(sorted(unknown))}")
        flags = {section.replace("-", "_"): section in sections for section in cls.SECTIONS}
        return cls(**flags)

    def selected(self) -> List[str]:
        return [section for section in self.SECTIONS if getattr(self, section.replace("-", "_"))]

    def to_param(self) -> Optional[str]:
        selected = self.selected()
        if not selected or len(selected) == len(self.SECTIONS):
            return None
        return ",".join(selected)


class Network(_Schema):
    ip: str
    proto: str
    netmask: str
    dns: str
    mac: str
    gateway: str
    hostname: str


class Miner(_Schema):
    working: str
    type: str
    hash_board: str
    detect_hash_rate: str
    cointype: str
    pool_strategy: str
    heatmode: str
    hash_percent: str
    eeprom_liquid_cooling: Optional[str] = None
    chipdata0: Optional[str] = None
    chipdata1: Optional[str] = None
    chipdata2: Optional[str] = None
    fast_boot: str
    board_num: str
    pcbsn0: Optional[str] = None
    pcbsn1: Optional[str] = None
    pcbsn2: Optional[str] = None
    miner_sn: str
    power_limit_set: str
    web_pool: int
    upfreq_speed: Optional[str] = Field(default=None, alias="UpfreqSpeed")
    permission: Optional[str] = None


class System(_Schema):
    api: str
    platform: str
    fwversion: str
    control_board_version: str
    btrom: Optional[str] = None
    apiswitch: str
    ledstatus: str


class Power(_Schema):
    type: str
    mode: str
    hwversion: str
    swversion: str
    model: str
    iin: float
    vin: float
    vout: int
    pin: int
    fanspeed: int
    temp0: float
    sn: str
    vendor: str


class DeviceInfo(_Schema):
    network: Optional[Network] = None
    miner: Optional[Miner] = None
    system: Optional[System] = None
    power: Optional[Power] = None
    salt: Optional[str] = None
    error_codes: Optional[List[Dict[str, str]]] = None


class GetDeviceInfo(Command):
    """``get.device.info``: network, miner, system, power, salt and error codes."""

    name = "get.device.info"
    response_type = Response[DeviceInfo]

    def __init__(self, param: Optional[GetDeviceInfoParam] = None):
        self.param = param if param is not None else GetDeviceInfoParam()

    @classmethod
    def salt_only(cls) -> "GetDeviceInfo":
        return cls(GetDeviceInfoParam.only("salt"))

    def params(self) -> Optional[str]:
        return self.param.to_param()

    def __repr__(self) -> str:
        return f"GetDeviceInfo({self.param.selected()})"


class DeviceCustomData(BaseModel):
    custom_sn: str
    msg0: str
    msg1: str
    msg2: str
    msg3: str
    msg4: str
    msg5: str
    msg6: str
    msg7: str
    msg8: str
    msg9: str


class GetDeviceCustomData(Command):
    name = "get.device.custom_data"
    response_type = Response[DeviceCustomData]
