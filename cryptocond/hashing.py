"""
Hashing primitives for crypto-conditions and secret derivation.

All digests use SHA-256. Text inputs are encoded as UTF-8.
"""

import base64
import hashlib
import hmac
from typing import Union


def _to_bytes(data: Union[bytes, str]) -> bytes:
    if isinstance(data, str):
        return data.encode('utf-8')
    return bytes(data)


def sha256_digest(data: Union[bytes, str]) -> bytes:
    """Raw 32-byte SHA-256 digest."""
    return hashlib.sha256(_to_bytes(data)).digest()


def hmac_sha256_b64(message: Union[bytes, str], key: Union[bytes, str]) -> str:
    """
    HMAC-SHA256 of ``message`` under ``key``, standard base64 encoded.

    Used as the bcrypt prehash: the 44-character result sidesteps bcrypt's
    72-byte password truncation and NUL-byte termination.
    """
    mac = hmac.new(_to_bytes(key), _to_bytes(message), hashlib.sha256)
    return base64.b64encode(mac.digest()).decode('ascii')


def pepper_digest(password: str, pepper: str) -> bytes:
    """
    SHA-256 over the password followed by the trimmed pepper.

    Seeds the permanent salt, so the same password under two different
    peppers (accounts) yields unrelated salts.
    """
    return sha256_digest(f"{password}{(pepper or '').strip()}")
