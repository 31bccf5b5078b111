from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any, Dict, Optional

from .actor import DEFAULT_PORT, Actor
from .command import RawCommand
from .commands import GetDeviceInfo, GetDeviceInfoParam
from .config import DEFAULT_CONFIG_PATH, DEFAULT_TIMEOUT, MinerConfig, load_miner_conf, resolve_config
from .errors import WhatsminerError

logger = logging.getLogger(__name__)


def parse_scalar(value: str) -> Any:
    """
    Best-effort scalar parsing:
      - int (e.g., '3200')
      - float (e.g., '12.5')
      - bool true/false (case-insensitive)
      - null -> None
      - otherwise: keep as string
    """

    if value is None:
        return None
    v = value.strip()
    low = v.lower()
    if low == "true":
        return True
    if low == "false":
        return False
    if low in ("null", "none"):
        return None
    try:
        if v.startswith(("0x", "0X")):
            return int(v, 16)
        return int(v)
    except ValueError:
        pass
    try:
        return float(v)
    except ValueError:
        pass
    return v


def resolve_param_inputs(param_scalar: Optional[str], param_json: Optional[str], param_file: Optional[str]) -> Optional[Any]:
    """
    Resolve mutually exclusive param sources:
      - --param: scalar (auto-cast)
      - --param-json: JSON string -> object/array/primitive
      - --param-file: read JSON from file
    """

    if param_scalar is not None:
        return parse_scalar(param_scalar)
    if param_json is not None:
        try:
            return json.loads(param_json)
        except ValueError as exc:
            raise ValueError(f"Failed to parse --param-json: {exc}") from exc
    if param_file is not None:
        if not os.path.exists(param_file):
            raise FileNotFoundError(f"Param file not found: {param_file}")
        with open(param_file, "r", encoding="utf-8") as f:
            try:
                return json.load(f)
            except ValueError as exc:
                raise ValueError(f"Failed to parse param file JSON: {exc}") from exc
    return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Whatsminer API v3 session client. Use miner-conf.json or CLI args for connection credentials."
    )
    parser.add_argument("--config", "-c", default=DEFAULT_CONFIG_PATH, help=f"Path to miner-conf.json (default: {DEFAULT_CONFIG_PATH})")
    parser.add_argument("--host", help="Miner host (overrides config)")
    parser.add_argument("--port", type=int, help=f"Miner TCP port (default {DEFAULT_PORT})")
    parser.add_argument("--login", help="Account name: super, user1, user2 or user3 (default: super)")
    parser.add_argument("--password", help="Account password (default: same as account name)")
    parser.add_argument("--timeout", type=float, help=f"Seconds to wait for connect and for each reply (default {DEFAULT_TIMEOUT})")
    parser.add_argument("--verbose", "-v", action="count", default=0, help="Log more (-v info, -vv debug)")

    sub = parser.add_subparsers(dest="action", required=True)

    sub.add_parser("get-salt", help="Connect and show the session salt")

    info = sub.add_parser("info", help="Call get.device.info")
    info.add_argument(
        "--only",
        help=f"Comma separated sections to request, from: {','.join(GetDeviceInfoParam.SECTIONS)}",
    )

    callp = sub.add_parser("call", help="Call any API command")
    callp.add_argument("cmd", help="Command name, e.g., get.device.info or set.miner.pools")

    group = callp.add_mutually_exclusive_group()
    group.add_argument("--param", help="Scalar param value (int/float/bool/string). Example: --param 3200")
    group.add_argument("--param-json", help="Param as JSON string. Example: --param-json '[{\"pool\":...}]'.")
    group.add_argument("--param-file", help="Param from JSON file. Example: --param-file pools.json")

    callp.add_argument("--show-request", action="store_true", help="Print JSON request that will be sent (for debugging)")
    callp.add_argument("--save-response", help="Save response JSON to file")

    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


def configure_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def preview_request(actor: Actor, command: RawCommand) -> Dict[str, Any]:
    auth_data = actor.auth_data(command) if command.secured else None
    try:
        preview = command.to_request(auth_data).to_dict()
    finally:
        if auth_data is not None:
            auth_data.wipe()
    if command.encrypted and "param" in preview:
        preview["param"] = "<ENCRYPTED_BASE64>"
    return preview


async def run_action(args: argparse.Namespace, config: MinerConfig) -> Any:
    actor = await asyncio.wait_for(
        Actor.connect(config.host, config.port, config.account, config.make_password()),
        timeout=config.timeout,
    )
    async with actor:
        if args.action == "get-salt":
            return {"salt": actor.salt}

        if args.action == "info":
            param = GetDeviceInfoParam.only(*args.only.split(",")) if args.only else GetDeviceInfoParam()
            response = await asyncio.wait_for(actor.send(GetDeviceInfo(param)), timeout=config.timeout)
            return response.model_dump(mode="json", by_alias=True)

        command = RawCommand(args.cmd, resolve_param_inputs(args.param, args.param_json, args.param_file))
        if args.show_request:
            print("=== Request preview ===")
            print(json.dumps(preview_request(actor, command), indent=2, ensure_ascii=False))
            print("=======================")
        response = await asyncio.wait_for(actor.send(command), timeout=config.timeout)
        return response.model_dump(mode="json")


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = resolve_config(args, load_miner_conf(args.config))
    except ValueError as exc:
        print("Error:", exc, file=sys.stderr)
        build_parser().print_help()
        return 2

    try:
        result = asyncio.run(run_action(args, config))
    except (WhatsminerError, ValueError, OSError, asyncio.TimeoutError) as exc:
        logger.debug("Action %s failed", args.action, exc_info=True)
        print("Error while calling API:", str(exc) or type(exc).__name__, file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, ensure_ascii=False))
    if getattr(args, "save_response", None):
        with open(args.save_response, "w", encoding="utf-8") as f:
            json.dump(result, f, indent=2, ensure_ascii=False)
        print("Saved response to", args.save_response)
    return 0


if __name__ == "__main__":
    sys.exit(main())
