from __future__ import annotations

import json
import os
from typing import Any, Dict, Iterable, Optional

from .crypto import SaltedHash, md5_crypt_hash
from .protocol import PRIVILEGED_COMMANDS
from .session import send_command, send_privileged_command
from .transport import DEFAULT_PORT, DEFAULT_TIMEOUT


def call_whatsminer(
    host: str,
    port: int,
    cmd: str,
    params: Optional[Dict[str, Any]] = None,
    password: Optional[str] = None,
    timeout: Optional[float] = DEFAULT_TIMEOUT,
    check: bool = False,
    hasher: SaltedHash = md5_crypt_hash,
) -> Dict[str, Any]:
    """
    Generic caller for the btminer API.
      - commands in PRIVILEGED_COMMANDS fetch a token, sign and encrypt
        (password required)
      - everything else is sent as plaintext JSON
    """

    if cmd == "download_logs":
        raise ValueError("download_logs streams a file; use whatsminer_api.download_logs instead.")
    if cmd in PRIVILEGED_COMMANDS:
        if password is None:
            raise ValueError(f"Password is required for privileged command {cmd}.")
        return send_privileged_command(
            host, port, password, cmd, params, timeout=timeout, check=check, hasher=hasher
        )
    return send_command(host, port, cmd, params, timeout=timeout, check=check)


def load_miner_conf(path: str = "miner-conf.json") -> dict:
    """Load miner configuration file if exists, else return {}."""

    if not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def parse_param_pairs(pairs: Iterable[str]) -> Dict[str, str]:
    """Turn ``KEY=VALUE`` strings into a dict. Values stay strings, as the firmware expects."""

    params: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected KEY=VALUE, got {pair!r}")
        params[key.strip()] = value
    return params


def resolve_param_inputs(
    param_pairs: Optional[Iterable[str]], param_json: Optional[str], param_file: Optional[str]
) -> Optional[Dict[str, Any]]:
    """
    Resolve mutually exclusive param sources:
      - --param KEY=VALUE (repeatable)
      - --param-json: JSON object string
      - --param-file: read JSON object from file
    """

    if param_pairs:
        return parse_param_pairs(param_pairs)
    value: Any = None
    if param_json is not None:
        try:
            value = json.loads(param_json)
        except ValueError as exc:
            raise ValueError(f"Failed to parse --param-json: {exc}") from exc
    elif param_file is not None:
        if not os.path.exists(param_file):
            raise FileNotFoundError(f"Param file not found: {param_file}")
        with open(param_file, "r", encoding="utf-8") as f:
            try:
                value = json.load(f)
            except ValueError as exc:
                raise ValueError(f"Failed to parse param file JSON: {exc}") from exc
    else:
        return None
    if not isinstance(value, dict):
        raise ValueError("Command params must be a JSON object")
    return value


__all__ = [
    "DEFAULT_PORT",
    "DEFAULT_TIMEOUT",
    "call_whatsminer",
    "load_miner_conf",
    "parse_param_pairs",
    "resolve_param_inputs",
]
