from __future__ import annotations

import base64
import binascii
import hashlib
import json
from importlib import import_module, util
from typing import Any, Callable

from passlib.hash import md5_crypt

from .errors import CredentialError, DecodeError, DecryptError

BLOCK_SIZE = 16
MD5_CRYPT_MAX_SALT = 8  # openssl passwd -1 silently truncates longer salts

# (salt, password) -> hash field of "$1$<salt>$<hash>"
SaltedHash = Callable[[str, str], str]


class MissingAESCipher(ImportError):
    """Raised when no AES cipher implementation is available."""


def _load_aes_cipher():
    # pycryptodomex installs "Cryptodome", pycryptodome installs "Crypto"
    for package in ("Cryptodome", "Crypto"):
        if util.find_spec(package) is not None:
            return import_module(f"{package}.Cipher.AES")
    raise MissingAESCipher(
        "AES cipher not available. Install pycryptodome or pycryptodomex:\n"
        "  pip install pycryptodome\n"
        "  # or\n"
        "  pip install pycryptodomex"
    )


AES = _load_aes_cipher()


def md5_crypt_hash(salt: str, password: str) -> str:
    """
    MD5-crypt ("$1$") hash of password, returning only the hash field.

    Matches ``openssl passwd -1 -salt <salt> <password> | cut -f 4 -d '$'``.
    """

    if not salt:
        raise CredentialError("Salt must not be empty")
    if not salt.isascii():
        raise CredentialError(f"Salt must be ASCII: {salt!r}")
    try:
        full = md5_crypt.using(salt=salt[:MD5_CRYPT_MAX_SALT]).hash(password)
    except ValueError as exc:
        raise CredentialError(f"Invalid salt {salt!r}: {exc}") from exc
    return full.split("$")[3]


def derive_key(salt: str, password: str, hasher: SaltedHash = md5_crypt_hash) -> str:
    """Session key: salted hash of the operator password."""

    return hasher(salt, password)


def derive_sign(newsalt: str, key: str, time: str, hasher: SaltedHash = md5_crypt_hash) -> str:
    """Proof of password knowledge sent as the command's ``token`` field."""

    return hasher(newsalt, f"{key}{time}")


def sha256_digest_bytes(s: str) -> bytes:
    """Return sha256 digest bytes for input string s (utf-8)."""

    return hashlib.sha256(s.encode("utf-8")).digest()


def zero_pad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    """Append 1..block_size zero bytes so the length is block aligned."""

    return data + b"\0" * (block_size - len(data) % block_size)


def encrypt_command(command_obj: Any, key: str) -> str:
    """
    Encrypt a command object for the ``{"enc": 1, "data": ...}`` envelope:
      - serialize to compact JSON (utf-8)
      - zero-fill to a multiple of 16 bytes
      - AES-256-ECB with key = sha256(key), no padding scheme
      - base64 encode
    """

    data = json.dumps(command_obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    cipher = AES.new(sha256_digest_bytes(key), AES.MODE_ECB)
    return base64.b64encode(cipher.encrypt(zero_pad(data))).decode("ascii")


def decrypt_response(ciphertext_b64: str, key: str) -> Any:
    """
    Reverse of encrypt_command. The plaintext is cut at its first zero byte,
    so a payload that legitimately contains one would be truncated.
    """

    try:
        raw = base64.b64decode(ciphertext_b64)
    except (binascii.Error, ValueError, TypeError) as exc:
        raise DecryptError(f"Ciphertext is not valid base64: {exc}") from exc
    if len(raw) % BLOCK_SIZE:
        raise DecryptError(f"Ciphertext length {len(raw)} is not a multiple of {BLOCK_SIZE}")

    cipher = AES.new(sha256_digest_bytes(key), AES.MODE_ECB)
    plain = cipher.decrypt(raw).split(b"\0", 1)[0]
    try:
        return json.loads(plain.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise DecodeError("Decrypted payload is not valid JSON (wrong password?)") from exc


__all__ = [
    "AES",
    "BLOCK_SIZE",
    "SaltedHash",
    "decrypt_response",
    "derive_key",
    "derive_sign",
    "encrypt_command",
    "md5_crypt_hash",
    "sha256_digest_bytes",
    "zero_pad",
]
