import base64
import json

import pytest
from Crypto.Cipher import AES as ReferenceAES
from Crypto.Util.Padding import unpad

from whatsminer_session.account import Account
from whatsminer_session.auth import AuthData, generate_token
from whatsminer_session.command import Command, RawCommand
from whatsminer_session.commands import (
    GetDeviceInfo,
    GetDeviceInfoParam,
    GetFanSettings,
    GetMinerSettings,
    GetSystemSetting,
    Pool,
    SetMinerFastboot,
    SetMinerPools,
)
from whatsminer_session.errors import CommandDefinitionError, CommandRequiresAuthData
from whatsminer_session.response import Response


def _auth(cmd, ts=1111):
    return AuthData.generate(cmd, Account.SUPER, "password", "salty", ts=ts)


def test_unauthenticated_request_has_only_cmd():
    assert GetDeviceInfo().to_request_string(None) == '{"cmd":"get.device.info"}'
    assert GetFanSettings().to_request_string() == '{"cmd":"get.fan.setting"}'
    assert GetMinerSettings().to_request_bytes() == b'{"cmd":"get.miner.setting"}'
    assert GetSystemSetting().to_request_string() == '{"cmd":"get.system.setting"}'


def test_secured_request_carries_auth_block_and_plain_param():
    request = json.loads(SetMinerFastboot(True).to_request_string(_auth("set.miner.fastboot")))
    token, _ = generate_token("set.miner.fastboot", "password", "salty", 1111)

    assert request == {
        "cmd": "set.miner.fastboot",
        "account": "super",
        "ts": 1111,
        "token": token,
        "param": "enable",
    }
    assert SetMinerFastboot(False).params() == "disable"


def test_encrypted_request_param_decrypts_with_token_digest():
    pools = [Pool(pool="stratum+tcp://1.1.1.1:3333", worker="waru.777", password="test")]
    request = json.loads(SetMinerPools(pools).to_request_string(_auth("set.miner.pools")))
    _, digest = generate_token("set.miner.pools", "password", "salty", 1111)

    cipher = ReferenceAES.new(digest, ReferenceAES.MODE_ECB)
    plaintext = unpad(cipher.decrypt(base64.b64decode(request["param"])), 16)

    assert json.loads(plaintext) == [{"pool": "stratum+tcp://1.1.1.1:3333", "worker": "waru.777", "passwd": "test"}]
    assert "aes_key" not in request and "key" not in request


def test_encrypted_command_without_auth_fails():
    with pytest.raises(CommandRequiresAuthData) as excinfo:
        SetMinerPools([Pool(pool="p", worker="w")]).to_request(None)
    assert excinfo.value.command == "set.miner.pools"


def test_encrypted_flag_requires_secured_at_definition():
    with pytest.raises(CommandDefinitionError):

        class Broken(Command):
            name = "set.broken"
            encrypted = True

    with pytest.raises(TypeError):
        RawCommand("get.thing", secured=False, encrypted=True)


@pytest.mark.parametrize(
    "param,expected",
    [
        (GetDeviceInfoParam(), None),
        (GetDeviceInfoParam(False, False, False, False, False, False), None),
        (GetDeviceInfoParam.only("salt"), "salt"),
        (GetDeviceInfoParam.only("system", "network"), "network,system"),
        (GetDeviceInfoParam(miner=False), "error-code,network,power,salt,system"),
        (GetDeviceInfoParam.only("miner", "error-code"), "error-code,miner"),
    ],
)
def test_device_info_flag_param(param, expected):
    assert GetDeviceInfo(param).params() == expected


def test_device_info_rejects_unknown_section():
    with pytest.raises(ValueError):
        GetDeviceInfoParam.only("salt", "gpu")


def test_device_info_response_parses_kebab_case():
    raw = json.dumps(
        {
            "code": 0,
            "when": 1700000000,
            "desc": "get.device.info",
            "msg": {
                "salt": "BQ5hoXV9",
                "network": {
                    "ip": "10.0.0.2",
                    "proto": "dhcp",
                    "netmask": "255.255.255.0",
                    "dns": "10.0.0.1",
                    "mac": "C6:07:20:00:31:04",
                    "gateway": "10.0.0.1",
                    "hostname": "WhatsMiner",
                },
                "error-codes": [{"reason": "fan lost", "num": "110"}],
            },
        }
    )
    response = GetDeviceInfo.parse_response(raw)

    assert response.ok
    assert response.msg.salt == "BQ5hoXV9"
    assert response.msg.network.hostname == "WhatsMiner"
    assert response.msg.error_codes == [{"reason": "fan lost", "num": "110"}]
    assert response.msg.power is None


def test_response_code_is_exposed():
    response = SetMinerFastboot.parse_response(json.dumps({"code": -1, "when": 5, "msg": "invalid token", "desc": ""}))
    assert not response.ok
    assert response.code == -1


def test_raw_command_flags_follow_command_name():
    assert not RawCommand("get.device.info").secured
    assert RawCommand("set.miner.power", 3200).secured
    assert not RawCommand("set.miner.power", 3200).encrypted
    pools = RawCommand("set.miner.pools", [{"pool": "p"}])
    assert pools.secured and pools.encrypted


def test_raw_command_serialises_non_string_params():
    assert RawCommand("set.miner.power", 3200).params() == "3200"
    assert RawCommand("set.a", {"a": [1, True]}).params() == '{"a":[1,true]}'
    assert RawCommand("set.a", "text").params() == "text"
    assert RawCommand("get.a").to_request_string() == '{"cmd":"get.a"}'


def test_raw_command_parses_any_msg():
    raw = json.dumps({"code": 0, "when": 5, "msg": {"anything": [1, 2]}, "desc": "x"})
    assert RawCommand("get.x").parse_response(raw).msg == {"anything": [1, 2]}


def test_custom_command_definition():
    class GetThing(Command):
        name = "get.thing"
        response_type = Response[int]

    assert GetThing().to_request_string() == '{"cmd":"get.thing"}'
    assert GetThing.parse_response('{"code":0,"when":1,"msg":7,"desc":""}').msg == 7
