"""
Command sessions.

A plaintext command is one connection: send ``{"cmd": ...}``, read the JSON
reply until the miner closes. A privileged command re-authenticates every
time and therefore costs two connections:

    START -> TOKEN_REQUESTED -> TOKEN_RECEIVED -> CONNECTED -> SENT
          -> RECEIVED -> DONE

with FAILED reachable from any state. Tokens are never cached.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Any, Dict, List, Optional

from .crypto import SaltedHash, decrypt_response, derive_key, derive_sign, encrypt_command, md5_crypt_hash
from .errors import ProtocolError
from .protocol import (
    Token,
    build_command,
    check_status,
    decode_message,
    encode_message,
    parse_token,
)
from .transport import DEFAULT_TIMEOUT, MinerConnection, exchange, open_connection

_LOGGER = logging.getLogger(__name__)


class SessionState(Enum):
    START = auto()
    TOKEN_REQUESTED = auto()
    TOKEN_RECEIVED = auto()
    CONNECTED = auto()
    SENT = auto()
    RECEIVED = auto()
    DONE = auto()
    FAILED = auto()


def send_command(
    host: str,
    port: int,
    cmd: str,
    params: Optional[Dict[str, Any]] = None,
    timeout: Optional[float] = DEFAULT_TIMEOUT,
    check: bool = False,
) -> Dict[str, Any]:
    """Plaintext command: one connection, no token, no encryption."""

    request = build_command(cmd, params)
    response = decode_message(exchange(host, port, encode_message(request), timeout=timeout))
    return check_status(response) if check else response


def get_token(host: str, port: int, timeout: Optional[float] = DEFAULT_TIMEOUT) -> Token:
    return parse_token(send_command(host, port, "get_token", timeout=timeout))


def unwrap_encrypted(outer: Dict[str, Any], key: str) -> Dict[str, Any]:
    """
    Decrypt an ``{"enc": "<base64>"}`` reply. A reply that carries a STATUS
    instead of ``enc`` is a plaintext device error and is returned as is.
    """

    if "enc" in outer:
        inner = decrypt_response(outer["enc"], key)
        if not isinstance(inner, dict):
            raise ProtocolError(f"Decrypted response is not a JSON object: {inner!r}")
        return inner
    if "STATUS" in outer:
        _LOGGER.debug("Device answered in plaintext with code %s", outer.get("Code"))
        return outer
    raise ProtocolError("Encrypted response has neither 'enc' nor 'STATUS'", response=outer)


class CommandSession:
    """
    Drives one privileged command through the token handshake.

    ``history`` lists every state visited. After a failure ``state`` is
    FAILED, ``failed_state`` is where it happened and ``error`` holds the
    exception, which is also re-raised.
    """

    def __init__(
        self,
        host: str,
        port: int,
        password: str,
        cmd: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        hasher: SaltedHash = md5_crypt_hash,
    ) -> None:
        if password is None:
            raise ValueError(f"Command {cmd} requires the miner password.")
        self.host = host
        self.port = port
        self.cmd = cmd
        self.params = dict(params or {})
        self.timeout = timeout
        self._password = password
        self._hasher = hasher
        self.state = SessionState.START
        self.history: List[SessionState] = [SessionState.START]
        self.failed_state: Optional[SessionState] = None
        self.error: Optional[BaseException] = None
        self.token: Optional[Token] = None
        self.response: Optional[Dict[str, Any]] = None
        self._key: Optional[str] = None

    def advance(self, state: SessionState) -> None:
        _LOGGER.debug("%s@%s:%s %s -> %s", self.cmd, self.host, self.port, self.state.name, state.name)
        self.state = state
        self.history.append(state)

    def fail(self, exc: BaseException) -> None:
        self.failed_state = self.state
        self.error = exc
        _LOGGER.debug("%s@%s:%s failed in %s: %s", self.cmd, self.host, self.port, self.state.name, exc)
        self.advance(SessionState.FAILED)

    def authenticate(self) -> str:
        """Fetch a fresh token and return the sign for this command."""

        self.advance(SessionState.TOKEN_REQUESTED)
        self.token = get_token(self.host, self.port, timeout=self.timeout)
        self.advance(SessionState.TOKEN_RECEIVED)
        self._key = derive_key(self.token.salt, self._password, hasher=self._hasher)
        return derive_sign(self.token.newsalt, self._key, self.token.time, hasher=self._hasher)

    def open(self) -> MinerConnection:
        conn = open_connection(self.host, self.port, timeout=self.timeout)
        self.advance(SessionState.CONNECTED)
        return conn

    def send_encrypted(self, conn: MinerConnection, sign: str) -> None:
        command = build_command(self.cmd, self.params, sign=sign)
        conn.send(encode_message({"enc": 1, "data": encrypt_command(command, self._key)}))
        self.advance(SessionState.SENT)

    def decrypt(self, outer: Dict[str, Any]) -> Dict[str, Any]:
        return unwrap_encrypted(outer, self._key)

    def finish(self, response: Dict[str, Any], check: bool = False) -> Dict[str, Any]:
        if check:
            check_status(response)
        self.response = response
        self.advance(SessionState.DONE)
        return response

    def run(self, check: bool = False) -> Dict[str, Any]:
        if self.state is not SessionState.START:
            raise RuntimeError("A CommandSession can only be run once")
        try:
            sign = self.authenticate()
            with self.open() as conn:
                self.send_encrypted(conn, sign)
                raw = conn.recv_until_close()
            self.advance(SessionState.RECEIVED)
            return self.finish(self.decrypt(decode_message(raw)), check=check)
        except Exception as exc:
            self.fail(exc)
            raise


def send_privileged_command(
    host: str,
    port: int,
    password: str,
    cmd: str,
    params: Optional[Dict[str, Any]] = None,
    timeout: Optional[float] = DEFAULT_TIMEOUT,
    check: bool = False,
    hasher: SaltedHash = md5_crypt_hash,
) -> Dict[str, Any]:
    session = CommandSession(host, port, password, cmd, params, timeout=timeout, hasher=hasher)
    return session.run(check=check)


__all__ = [
    "CommandSession",
    "SessionState",
    "get_token",
    "send_command",
    "send_privileged_command",
    "unwrap_encrypted",
]
