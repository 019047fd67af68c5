"""
Input validation for cryptocond.

Normalizes caller-supplied hex strings, bcrypt salts and cost factors
before they reach the codec or the derivation engine.
"""

import re
from typing import Any, Optional, Tuple

from .config import BCRYPT_MIN_ROUNDS, BCRYPT_ROUNDS_RANGE
from .errors import DataCompletenessError, InvalidInputError


HEX_PATTERN = re.compile(r'^(?:[a-fA-F0-9]{2})+$')

# $2b$10$ followed by the 22-character salt body in the bcrypt alphabet
BCRYPT_SALT_PATTERN = re.compile(r'^\$2[aby]\$(\d{2})\$[./A-Za-z0-9]{22}$')


def require_text(value: Optional[str], field_name: str) -> str:
    """
    Ensure a text argument is present and not blank.

    The value is returned unmodified; surrounding whitespace is
    significant for passwords.

    Raises:
        DataCompletenessError: If the value is missing or blank
    """
    if value is None or not isinstance(value, str) or not value.strip():
        raise DataCompletenessError("must not be empty", field=field_name)
    return value


def validate_hex(value: Optional[str], field_name: str, min_bytes: Optional[int] = None) -> bytes:
    """
    Validate a hexadecimal string and return the bytes it encodes.

    Args:
        value: Hex string, either case, surrounding whitespace ignored
        field_name: Name of the field (for error messages)
        min_bytes: Minimum decoded length (optional)

    Raises:
        DataCompletenessError: If the value is missing or empty
        InvalidInputError: If the value is not an even-length hex string
            or decodes to fewer than ``min_bytes`` bytes
    """
    if value is None:
        raise DataCompletenessError("cannot be empty", field=field_name)
    if not isinstance(value, str):
        raise InvalidInputError("must be a string", field=field_name)

    value = value.strip()

    if not value:
        raise DataCompletenessError("cannot be empty", field=field_name)

    if not HEX_PATTERN.match(value):
        raise InvalidInputError("must be valid hexadecimal", field=field_name)

    data = bytes.fromhex(value)
    if min_bytes is not None and len(data) < min_bytes:
        raise InvalidInputError(
            f"must encode at least {min_bytes} bytes, got {len(data)}",
            field=field_name,
        )
    return data


def validate_rounds(rounds: Any) -> int:
    """
    Normalize a bcrypt cost factor.

    Missing values and values below the minimum are raised to
    BCRYPT_MIN_ROUNDS; values above the bcrypt maximum are rejected.
    """
    if rounds is None:
        return BCRYPT_MIN_ROUNDS
    if isinstance(rounds, bool):
        raise InvalidInputError("must be an integer", field="rounds")
    try:
        rounds = int(rounds)
    except (TypeError, ValueError):
        raise InvalidInputError("must be an integer", field="rounds")

    if rounds > BCRYPT_ROUNDS_RANGE[1]:
        raise InvalidInputError(f"must not exceed {BCRYPT_ROUNDS_RANGE[1]}", field="rounds")
    return max(rounds, BCRYPT_MIN_ROUNDS)


def validate_salt(salt: str) -> Tuple[str, int]:
    """
    Validate a bcrypt salt string such as ``$2b$10$N9qo8uLOickgx2ZMRZoMye``.

    Returns:
        Tuple of (salt, cost factor encoded in the salt)

    Raises:
        InvalidInputError: If the salt is malformed or its cost is out of range
    """
    if not isinstance(salt, str):
        raise InvalidInputError("must be a string", field="existing_salt")

    salt = salt.strip()
    match = BCRYPT_SALT_PATTERN.match(salt)
    if not match:
        raise InvalidInputError("must be a bcrypt salt like $2b$10$<22 chars>", field="existing_salt")

    rounds = int(match.group(1))
    low, high = BCRYPT_ROUNDS_RANGE
    if not low <= rounds <= high:
        raise InvalidInputError(f"cost factor must be between {low} and {high}", field="existing_salt")
    return salt, rounds
