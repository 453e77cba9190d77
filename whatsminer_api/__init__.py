"""Whatsminer btminer API client: plaintext queries and token-authenticated, AES-encrypted commands."""

from .core import (
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    call_whatsminer,
    load_miner_conf,
    resolve_param_inputs,
)
from .crypto import decrypt_response, derive_key, derive_sign, encrypt_command, md5_crypt_hash
from .errors import (
    CredentialError,
    DecodeError,
    DecryptError,
    MinerConnectionError,
    ProtocolError,
    StreamWriteError,
    TokenError,
    WhatsminerError,
)
from . import commands
from .logs import LogDownload, download_logs
from .protocol import PLAIN_COMMANDS, PRIVILEGED_COMMANDS, Token, check_status
from .session import CommandSession, SessionState, get_token, send_command, send_privileged_command
from .transport import exchange

__all__ = [
    "DEFAULT_PORT",
    "DEFAULT_TIMEOUT",
    "PLAIN_COMMANDS",
    "PRIVILEGED_COMMANDS",
    "CommandSession",
    "CredentialError",
    "DecodeError",
    "DecryptError",
    "LogDownload",
    "MinerConnectionError",
    "ProtocolError",
    "SessionState",
    "StreamWriteError",
    "Token",
    "TokenError",
    "WhatsminerError",
    "call_whatsminer",
    "commands",
    "check_status",
    "decrypt_response",
    "derive_key",
    "derive_sign",
    "download_logs",
    "encrypt_command",
    "exchange",
    "get_token",
    "load_miner_conf",
    "md5_crypt_hash",
    "resolve_param_inputs",
    "send_command",
    "send_privileged_command",
]
