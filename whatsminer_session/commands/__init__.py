"""Commands of the Whatsminer API v3 implemented by this package."""

from .device import (
    DeviceCustomData,
    DeviceInfo,
    GetDeviceCustomData,
    GetDeviceInfo,
    GetDeviceInfoParam,
)
from .fan import FanSettings, GetFanSettings
from .miner import GetMinerSettings, MinerSettings, Pool, SetMinerFastboot, SetMinerPools
from .system import GetSystemSetting, SystemSettings

__all__ = [
    "DeviceCustomData",
    "DeviceInfo",
    "FanSettings",
    "GetDeviceCustomData",
    "GetDeviceInfo",
    "GetDeviceInfoParam",
    "GetFanSettings",
    "GetMinerSettings",
    "GetSystemSetting",
    "MinerSettings",
    "Pool",
    "SetMinerFastboot",
    "SetMinerPools",
    "SystemSettings",
]
