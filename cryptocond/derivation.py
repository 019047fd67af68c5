"""
Secret Derivation Engine

Produces the preimage behind a PREIMAGE-SHA-256 condition, either from
system randomness or reproducibly from a password with bcrypt-sha256:

    prehash  = base64(HMAC-SHA256(key=salt, msg=password))
    fullhash = bcrypt(prehash, salt)
    preimage = last 32 characters of fullhash, as ASCII bytes

The salt is caller-supplied (to re-derive an earlier secret), a
"permanent" salt computed from password and pepper (so the password alone
regenerates the secret), or a fresh random bcrypt salt.

Derived values live only for the duration of the call and are never logged.
"""

import logging
import secrets
from dataclasses import dataclass, field
from typing import Optional

import bcrypt

from .config import PREIMAGE_SIZE
from .errors import InternalError, InvalidInputError
from .hashing import hmac_sha256_b64, pepper_digest
from .logging_config import audit_log
from .validation import require_text, validate_rounds, validate_salt

logger = logging.getLogger(__name__)


# bcrypt's own base64 alphabet; differs from RFC 4648 in symbol order
BCRYPT_ALPHABET = "./ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
BCRYPT_MAXSALT = 16
BCRYPT_SALT_B64_LEN = 22
# "$2b$10$"
BCRYPT_SALT_HEADER_LEN = 7
SALT_CHECK_INPUT = b"test"


@dataclass(frozen=True)
class BcryptSha256Hash:
    """Output of one bcrypt-sha256 computation."""
    fullhash: str = field(repr=False)
    salt: str = field(repr=False)
    salt_random: bool
    rounds: int

    @property
    def hash(self) -> str:
        """The bcrypt checksum without the salt prefix."""
        return self.fullhash[len(self.salt):]


@dataclass(frozen=True)
class SecretDerivationResult:
    """
    A freshly derived preimage and how it was obtained.

    ``salt`` and ``rounds`` are set only for password-derived secrets;
    ``is_salt_random`` marks salts the caller must record to re-derive.
    """
    preimage: bytes = field(repr=False)
    salt: Optional[str] = field(default=None, repr=False)
    rounds: Optional[int] = None
    is_random: bool = False
    is_salt_random: bool = False


def bcrypt_b64encode(data: bytes) -> str:
    """
    Encode bytes with the bcrypt base64 alphabet, without padding.

    Each 3-byte group becomes 4 symbols; a trailing single byte becomes
    2 symbols and a trailing pair 3, as in OpenBSD's encode_base64.
    """
    out = []
    i = 0
    n = len(data)
    while i < n:
        c1 = data[i]
        i += 1
        out.append(BCRYPT_ALPHABET[c1 >> 2])
        c1 = (c1 & 0x03) << 4
        if i >= n:
            out.append(BCRYPT_ALPHABET[c1])
            break

        c2 = data[i]
        i += 1
        c1 |= (c2 >> 4) & 0x0F
        out.append(BCRYPT_ALPHABET[c1])
        c1 = (c2 & 0x0F) << 2
        if i >= n:
            out.append(BCRYPT_ALPHABET[c1])
            break

        c2 = data[i]
        i += 1
        c1 |= (c2 >> 6) & 0x03
        out.append(BCRYPT_ALPHABET[c1])
        out.append(BCRYPT_ALPHABET[c2 & 0x3F])
    return "".join(out)


def splice_salt(template: str, body: str) -> str:
    """Replace the salt body of a ``$2b$NN$<body>`` template with ``body``."""
    parts = template.split("$")
    parts[-1] = body[:len(parts[-1])]
    return "$".join(parts)


def check_salt(salt: str) -> None:
    """
    Confirm bcrypt accepts ``salt`` verbatim.

    bcrypt echoes the salt it actually used at the start of every hash; an
    alphabet or padding mistake shows up as a different echo or as an
    outright rejection.

    Raises:
        InternalError: If the salt is rejected or not echoed exactly
    """
    try:
        rehashed = bcrypt.hashpw(SALT_CHECK_INPUT, salt.encode("ascii")).decode("ascii")
    except ValueError as e:
        audit_log.self_check_failed("permanent_salt")
        raise InternalError("INVALID Permanent Salt generated: rejected by bcrypt", field="salt") from e

    if rehashed[:BCRYPT_SALT_HEADER_LEN + BCRYPT_SALT_B64_LEN] != salt:
        audit_log.self_check_failed("permanent_salt")
        raise InternalError("INVALID Permanent Salt generated: salt echo mismatch", field="salt")


def permanent_salt(password: str, pepper: Optional[str], rounds: int) -> str:
    """
    Derive a bcrypt salt from the password and a per-account pepper.

    The first 16 bytes of SHA-256(password + pepper) are encoded in the
    bcrypt alphabet and spliced into a syntactically valid salt of the
    requested cost factor.
    """
    seed = pepper_digest(password, pepper)[:BCRYPT_MAXSALT]
    body = bcrypt_b64encode(seed)[:BCRYPT_SALT_B64_LEN]

    template = bcrypt.gensalt(rounds=rounds).decode("ascii")
    salt = splice_salt(template, body)
    check_salt(salt)
    return salt


def bcrypt_sha256(
    password: str,
    rounds: Optional[int] = None,
    existing_salt: Optional[str] = None,
    use_permanent_salt: bool = False,
    pepper: Optional[str] = None,
) -> BcryptSha256Hash:
    """
    Hash a password with HMAC-SHA256 followed by bcrypt.

    Args:
        password: The secret phrase
        rounds: bcrypt cost factor (raised to the minimum of 10 if lower);
            ignored when an existing salt carries its own
        existing_salt: Salt of an earlier derivation
        use_permanent_salt: Derive the salt from password and pepper
        pepper: Per-account personalization string for permanent salts
    """
    existing_salt = (existing_salt or "").strip() or None
    salt_random = False

    if existing_salt:
        salt, rounds = validate_salt(existing_salt)
    elif use_permanent_salt:
        rounds = validate_rounds(rounds)
        salt = permanent_salt(password, pepper, rounds)
    else:
        rounds = validate_rounds(rounds)
        salt = bcrypt.gensalt(rounds=rounds).decode("ascii")
        salt_random = True

    prehash = hmac_sha256_b64(password, salt)
    try:
        fullhash = bcrypt.hashpw(prehash.encode("ascii"), salt.encode("ascii")).decode("ascii")
    except ValueError as e:
        if existing_salt:
            raise InvalidInputError("rejected by bcrypt", field="existing_salt") from e
        raise InternalError("bcrypt rejected a generated salt", field="salt") from e

    logger.debug(
        "bcrypt-sha256 computed (rounds=%d, permanent_salt=%s, salt_random=%s)",
        rounds, bool(use_permanent_salt and not existing_salt), salt_random,
    )
    return BcryptSha256Hash(fullhash=fullhash, salt=salt, salt_random=salt_random, rounds=rounds)


def derive_secret(
    password: Optional[str] = None,
    pepper: Optional[str] = None,
    existing_salt: Optional[str] = None,
    rounds: Optional[int] = None,
    use_permanent_salt: bool = True,
) -> SecretDerivationResult:
    """
    Produce a preimage for a PREIMAGE-SHA-256 condition.

    Without a password, 32 random bytes are drawn. With one, the preimage
    is the trailing 32 characters of the bcrypt-sha256 hash text. That
    slice includes the last salt symbol and must stay exactly as is to
    re-derive secrets of conditions already published.

    Raises:
        DataCompletenessError: If a password is given but blank
        InternalError: If the derived preimage is too short or the
            permanent salt fails its self-check
    """
    if password is None:
        audit_log.secret_derived("random")
        return SecretDerivationResult(preimage=secrets.token_bytes(PREIMAGE_SIZE), is_random=True)

    require_text(password, "password")
    bcrypt_data = bcrypt_sha256(
        password,
        rounds=rounds,
        existing_salt=existing_salt,
        use_permanent_salt=use_permanent_salt,
        pepper=pepper,
    )

    fullhash = bcrypt_data.fullhash
    if len(fullhash) < PREIMAGE_SIZE:
        raise InternalError(
            f"bcrypt-sha256 returned a hash length ({len(fullhash)}) "
            f"less than required preimage size {PREIMAGE_SIZE}"
        )
    preimage = fullhash[-PREIMAGE_SIZE:].encode("ascii")

    audit_log.secret_derived("password", rounds=bcrypt_data.rounds, salt_random=bcrypt_data.salt_random)
    return SecretDerivationResult(
        preimage=preimage,
        salt=bcrypt_data.salt,
        rounds=bcrypt_data.rounds,
        is_random=False,
        is_salt_random=bcrypt_data.salt_random,
    )
