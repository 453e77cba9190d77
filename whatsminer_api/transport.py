from __future__ import annotations

import logging
import socket
from typing import Iterator, Optional

from .errors import MinerConnectionError

_LOGGER = logging.getLogger(__name__)

DEFAULT_PORT = 4028
DEFAULT_TIMEOUT = 10  # seconds
RECV_CHUNK_SIZE = 4096


class MinerConnection:
    """
    One TCP connection carrying exactly one request/response exchange.

    The device has no framing: a response ends when the miner closes the
    stream. ``timeout`` bounds every blocking read; ``None`` blocks forever.
    """

    def __init__(self, sock: socket.socket, host: str, port: int) -> None:
        self._sock = sock
        self.host = host
        self.port = port
        self.closed = False

    def __enter__(self) -> "MinerConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._sock.close()
        _LOGGER.debug("Closed connection to %s:%s", self.host, self.port)

    def send(self, data: bytes) -> None:
        """Write the whole request once. No delimiter is appended."""

        try:
            self._sock.sendall(data)
        except OSError as exc:
            raise MinerConnectionError(f"Failed to send to {self.host}:{self.port}: {exc}") from exc
        _LOGGER.debug("Sent %d bytes to %s:%s", len(data), self.host, self.port)

    def iter_chunks(self) -> Iterator[bytes]:
        """Yield inbound chunks in arrival order until the peer closes."""

        while True:
            try:
                chunk = self._sock.recv(RECV_CHUNK_SIZE)
            except socket.timeout as exc:
                raise MinerConnectionError(
                    f"Timed out waiting for {self.host}:{self.port} to close the response"
                ) from exc
            except OSError as exc:
                raise MinerConnectionError(f"Failed to read from {self.host}:{self.port}: {exc}") from exc
            if not chunk:
                return
            _LOGGER.debug("Received %d bytes from %s:%s", len(chunk), self.host, self.port)
            yield chunk

    def recv_until_close(self) -> bytes:
        """Receive until EOF and return everything read."""

        return b"".join(self.iter_chunks())


def open_connection(host: str, port: int = DEFAULT_PORT, timeout: Optional[float] = DEFAULT_TIMEOUT) -> MinerConnection:
    """Connect to the miner. Connect failures raise MinerConnectionError."""

    try:
        sock = socket.create_connection((host, port), timeout=timeout)
    except OSError as exc:
        raise MinerConnectionError(f"Failed to connect to {host}:{port}: {exc}") from exc
    _LOGGER.debug("Connected to %s:%s", host, port)
    return MinerConnection(sock, host, port)


def exchange(host: str, port: int, request_bytes: bytes, timeout: Optional[float] = DEFAULT_TIMEOUT) -> bytes:
    """Send request_bytes on a fresh connection and read the reply until close."""

    with open_connection(host, port, timeout=timeout) as conn:
        conn.send(request_bytes)
        return conn.recv_until_close()


__all__ = [
    "DEFAULT_PORT",
    "DEFAULT_TIMEOUT",
    "MinerConnection",
    "exchange",
    "open_connection",
]
