"""Message shapes of the btminer JSON API: commands, tokens, status codes."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import ProtocolError, TokenError

# Device status codes
CODE_INVALID_COMMAND = 14
CODE_INVALID_JSON = 23
CODE_PERMISSION_DENIED = 45
CODE_COMMAND_OK = 131
CODE_COMMAND_ERROR = 132
CODE_TOKEN_OK = 134
CODE_TOKEN_CHECK_ERROR = 135
CODE_TOKEN_OVER_MAX_TIMES = 136
CODE_BASE64_DECODE_ERROR = 137

STATUS_CODES = {
    CODE_INVALID_COMMAND: "invalid API command or data",
    CODE_INVALID_JSON: "invalid json message",
    CODE_PERMISSION_DENIED: "permission denied",
    CODE_COMMAND_OK: "command OK",
    CODE_COMMAND_ERROR: "command error",
    CODE_TOKEN_OK: "get token message OK",
    CODE_TOKEN_CHECK_ERROR: "check token error",
    CODE_TOKEN_OVER_MAX_TIMES: "token over max times",
    CODE_BASE64_DECODE_ERROR: "base64 decode error",
}

PLAIN_COMMANDS = frozenset({
    "summary", "pools", "edevs", "devdetails", "get_psu", "get_version",
    "get_token", "status", "get_miner_info", "get_error_code",
})

PRIVILEGED_COMMANDS = frozenset({
    "update_pools", "restart_btminer", "power_off", "power_on", "set_led",
    "set_low_power", "reboot", "factory_reset", "update_pwd", "net_config",
    "download_logs", "set_target_freq", "enable_btminer_fast_boot",
    "disable_btminer_fast_boot", "enable_web_pools", "disable_web_pools",
    "set_hostname", "set_zone", "load_log", "set_power_pct", "pre_power_on",
})


@dataclass(frozen=True)
class Token:
    """Single-use authentication material issued by get_token."""

    time: str
    salt: str
    newsalt: str


def build_command(cmd: str, params: Optional[Dict[str, Any]] = None, sign: Optional[str] = None) -> Dict[str, Any]:
    command: Dict[str, Any] = {"cmd": cmd}
    if params:
        command.update(params)
    if sign is not None:
        command["token"] = sign
    return command


def encode_message(obj: Any) -> bytes:
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def decode_message(data: bytes) -> Dict[str, Any]:
    """Parse a complete response; anything but a JSON object is a ProtocolError."""

    try:
        obj = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        preview = data[:80].decode("utf-8", errors="replace")
        raise ProtocolError(f"Malformed JSON response: {preview!r}") from exc
    if not isinstance(obj, dict):
        raise ProtocolError(f"Expected a JSON object, got {type(obj).__name__}")
    return obj


def is_error(response: Dict[str, Any]) -> bool:
    return response.get("STATUS") == "E"


def check_status(response: Dict[str, Any]) -> Dict[str, Any]:
    """Return response unchanged, or raise ProtocolError when STATUS is "E"."""

    if is_error(response):
        code = response.get("Code")
        description = response.get("Description") or response.get("Msg")
        known = STATUS_CODES.get(code, "unknown code")
        raise ProtocolError(
            f"Device returned error {code} ({known}): {description}",
            code=code,
            description=description,
            response=response,
        )
    return response


def parse_token(response: Dict[str, Any]) -> Token:
    if is_error(response):
        raise TokenError(
            f"get_token failed with code {response.get('Code')}: {response.get('Msg')}",
            code=response.get("Code"),
            description=response.get("Description"),
            response=response,
        )
    msg = response.get("Msg")
    if not isinstance(msg, dict):
        raise TokenError("get_token response has no Msg object", response=response)
    missing = [field for field in ("time", "salt", "newsalt") if not msg.get(field)]
    if missing:
        raise TokenError(f"get_token response is missing {', '.join(missing)}", response=response)
    return Token(time=str(msg["time"]), salt=str(msg["salt"]), newsalt=str(msg["newsalt"]))


def find_message_end(buffer: bytes) -> Optional[int]:
    """
    Offset just past the first complete top-level JSON object in buffer,
    or None while it is still incomplete. Leading whitespace is allowed.
    """

    depth = 0
    in_string = False
    escaped = False
    for index, byte in enumerate(buffer):
        if in_string:
            if escaped:
                escaped = False
            elif byte == 0x5C:  # backslash
                escaped = True
            elif byte == 0x22:  # quote
                in_string = False
            continue
        if byte == 0x7B:  # {
            depth += 1
        elif depth == 0:
            if byte not in b" \t\r\n":
                raise ProtocolError(f"Unexpected byte 0x{byte:02x} before JSON header")
        elif byte == 0x22:
            in_string = True
        elif byte == 0x7D:  # }
            depth -= 1
            if depth == 0:
                return index + 1
    return None


__all__ = [
    "PLAIN_COMMANDS",
    "PRIVILEGED_COMMANDS",
    "STATUS_CODES",
    "Token",
    "build_command",
    "check_status",
    "decode_message",
    "encode_message",
    "find_message_end",
    "is_error",
    "parse_token",
]
