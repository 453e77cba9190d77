"""
download_logs: an encrypted JSON header followed, on the same connection and
without any delimiter, by a raw archive that runs until the miner closes.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .crypto import SaltedHash, md5_crypt_hash
from .errors import MinerConnectionError, StreamWriteError
from .protocol import check_status, decode_message, find_message_end
from .session import CommandSession, SessionState
from .transport import DEFAULT_TIMEOUT

_LOGGER = logging.getLogger(__name__)

DEFAULT_LOG_EXTENSION = ".tgz"


@dataclass
class LogDownload:
    header: Dict[str, Any]
    path: Optional[str]
    size: int


def default_log_basename(host: str, now: Optional[float] = None) -> str:
    stamp = time.strftime("%Y%m%d-%H%M%S", time.localtime(now))
    return f"whatsminer-logs-{host}-{stamp}"


def _log_path(host: str, basename: Optional[str], extension: str, directory: str) -> str:
    if extension and not extension.startswith("."):
        extension = "." + extension
    return os.path.join(directory, (basename or default_log_basename(host)) + extension)


def download_logs(
    host: str,
    port: int,
    password: str,
    basename: Optional[str] = None,
    extension: str = DEFAULT_LOG_EXTENSION,
    directory: str = ".",
    params: Optional[Dict[str, Any]] = None,
    timeout: Optional[float] = DEFAULT_TIMEOUT,
    check: bool = False,
    hasher: SaltedHash = md5_crypt_hash,
) -> LogDownload:
    """
    Authenticate, send download_logs and stream the archive to disk.

    A partial file is left behind when the stream breaks; treat it as invalid.
    """

    session = CommandSession(host, port, password, "download_logs", params, timeout=timeout, hasher=hasher)
    try:
        sign = session.authenticate()
        with session.open() as conn:
            session.send_encrypted(conn, sign)
            chunks = conn.iter_chunks()
            buffer = b""
            end = None
            for chunk in chunks:
                buffer += chunk
                end = find_message_end(buffer)
                if end is not None:
                    break
            if end is None:
                raise MinerConnectionError("Connection closed before the download_logs header arrived")

            outer = decode_message(buffer[:end])
            header = session.decrypt(outer)
            if check:
                check_status(header)
            if "enc" not in outer:
                result = LogDownload(header=header, path=None, size=0)
            else:
                path = _log_path(host, basename, extension, directory)
                size = _stream_to_file(path, buffer[end:], chunks)
                _LOGGER.debug("Wrote %d log bytes to %s", size, path)
                result = LogDownload(header=header, path=path, size=size)
        session.advance(SessionState.RECEIVED)
        session.finish(header, check=check)
        return result
    except Exception as exc:
        session.fail(exc)
        raise


def _stream_to_file(path: str, head: bytes, chunks) -> int:
    try:
        f = open(path, "wb")
    except OSError as exc:
        raise StreamWriteError(f"Cannot open {path} for writing: {exc}") from exc
    size = 0
    with f:
        try:
            if head:
                f.write(head)
                size += len(head)
            for chunk in chunks:
                f.write(chunk)
                size += len(chunk)
        except OSError as exc:
            if isinstance(exc, MinerConnectionError):
                raise
            raise StreamWriteError(f"Failed writing {path}: {exc}") from exc
    return size


__all__ = ["DEFAULT_LOG_EXTENSION", "LogDownload", "default_log_basename", "download_logs"]
