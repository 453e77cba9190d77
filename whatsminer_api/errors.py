from __future__ import annotations

from typing import Any, Dict, Optional


class WhatsminerError(Exception):
    """Base class for every error raised by whatsminer_api."""


class MinerConnectionError(WhatsminerError, ConnectionError):
    """Socket connect or I/O failure. Never retried internally."""


class ProtocolError(WhatsminerError):
    """Malformed response, or a device reply with STATUS "E"."""

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        description: Optional[str] = None,
        response: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.description = description
        self.response = response


class TokenError(ProtocolError):
    """get_token failed or returned an incomplete Msg."""


class CredentialError(WhatsminerError, ValueError):
    """Salt or password cannot be fed to the salted hash."""


class DecryptError(WhatsminerError, ValueError):
    """Ciphertext is not valid base64 or not block aligned."""


class DecodeError(WhatsminerError, ValueError):
    """Decrypted text is not valid JSON (usually a wrong password)."""


class StreamWriteError(WhatsminerError, OSError):
    """The log download destination could not be opened or written."""


__all__ = [
    "CredentialError",
    "DecodeError",
    "DecryptError",
    "MinerConnectionError",
    "ProtocolError",
    "StreamWriteError",
    "TokenError",
    "WhatsminerError",
]
