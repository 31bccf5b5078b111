from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Optional

from .account import Account, Password
from .actor import DEFAULT_PORT

DEFAULT_CONFIG_PATH = "miner-conf.json"
DEFAULT_TIMEOUT = 10  # seconds


@dataclass
class MinerConfig:
    """Connection settings resolved from CLI arguments and miner-conf.json."""

    host: str
    port: int = DEFAULT_PORT
    account: Account = Account.SUPER
    password: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT

    def make_password(self) -> Password:
        return Password.coerce(self.password, self.account)

    def __repr__(self) -> str:
        return (
            f"MinerConfig(host={self.host!r}, port={self.port}, account={self.account!s}, "
            f"password=<hidden>, timeout={self.timeout})"
        )


def load_miner_conf(path: str = DEFAULT_CONFIG_PATH) -> dict:
    """Load miner configuration file if exists, else return {}."""

    if not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def parse_account(value: str) -> Account:
    try:
        return Account(value.strip().lower())
    except ValueError:
        choices = ", ".join(account.value for account in Account)
        raise ValueError(f"Unknown account {value!r} (expected one of: {choices})") from None


def resolve_config(args: Any, conf: dict) -> MinerConfig:
    """
    Merge CLI arguments over the config file:
      - host is required from one of them
      - port defaults to 4433, login to 'super'
      - a missing password means the account's default password
    """

    host = getattr(args, "host", None) or conf.get("host")
    if not host:
        raise ValueError("host must be supplied either via CLI or miner-conf.json")
    port = getattr(args, "port", None) or conf.get("port") or DEFAULT_PORT
    login = getattr(args, "login", None) or conf.get("login") or Account.SUPER.value
    password = getattr(args, "password", None) or conf.get("password")
    timeout = getattr(args, "timeout", None) or conf.get("timeout") or DEFAULT_TIMEOUT
    return MinerConfig(host=host, port=int(port), account=parse_account(login), password=password, timeout=float(timeout))


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_TIMEOUT",
    "MinerConfig",
    "load_miner_conf",
    "parse_account",
    "resolve_config",
]
