"""
Condition Builder

Turns a secret (random, password-derived, or supplied) into the hex
condition and fulfillment an escrow needs, and checks candidate secrets
against a published condition.

Before returning, every build is checked end to end: the encoded
condition and fulfillment must decode back to the values they were built
from, and a password-derived preimage must re-derive identically from the
salt it reports. A failed check raises InternalError; it is never retried
because the inputs would reproduce it.
"""

import logging
from typing import Optional, Union

from pydantic import ValidationError

from .codec import (
    condition_to_hex,
    decode_condition,
    decode_fulfillment,
    encode_condition,
    encode_fulfillment,
    fulfillment_from_hex,
    fulfillment_to_hex,
)
from .conditions import Condition, PreimageSha256Fulfillment
from .config import (
    DROPS_PER_PREIMAGE_BLOCK,
    FULFILLMENT_BASE_FEE_DROPS,
    PREIMAGE_BLOCK_SIZE,
    PREIMAGE_SIZE,
    default_rounds,
)
from .derivation import SecretDerivationResult, derive_secret
from .errors import ConditionError, InternalError, InvalidInputError
from .logging_config import audit_log
from .models import ConditionRequest, ConditionResult, FulfillmentResult, SaltMetadata
from .validation import validate_hex

logger = logging.getLogger(__name__)


# ============================================================
# Fees
# ============================================================

def preimage_cost_drops(preimage_length: int) -> int:
    """10 drops for every started 16-byte block of preimage."""
    if preimage_length < 0:
        raise InvalidInputError("must be non-negative", field="preimage_length")
    blocks = -(-preimage_length // PREIMAGE_BLOCK_SIZE)
    return DROPS_PER_PREIMAGE_BLOCK * blocks


def fulfillment_fee_drops(preimage_length: int) -> int:
    """
    Transaction cost of finishing an escrow with a fulfillment.

    330 drops plus 10 drops per 16 bytes of preimage, e.g. 350 drops for
    a 32-byte preimage.
    """
    return FULFILLMENT_BASE_FEE_DROPS + preimage_cost_drops(preimage_length)


# ============================================================
# Preimage helpers
# ============================================================

def _preimage_bytes(preimage: Union[bytes, str]) -> bytes:
    if isinstance(preimage, str):
        return validate_hex(preimage, "preimage")
    if not isinstance(preimage, (bytes, bytearray)):
        raise InvalidInputError("must be bytes or a hex string", field="preimage")
    return bytes(preimage)


def condition_from_preimage(preimage: Union[bytes, str]) -> Condition:
    """PREIMAGE-SHA-256 condition with SHA-256(preimage) and cost len(preimage)."""
    return PreimageSha256Fulfillment(preimage=_preimage_bytes(preimage)).condition()


def fulfillment_from_preimage_hex(preimage_hex: str) -> FulfillmentResult:
    """Fulfillment hex and fee for a secret key the caller already holds."""
    preimage = validate_hex(preimage_hex, "preimage")
    return FulfillmentResult(
        fulfillment_hex=fulfillment_to_hex(PreimageSha256Fulfillment(preimage=preimage)),
        preimage_size=len(preimage),
        fee_drops=fulfillment_fee_drops(len(preimage)),
    )


def verify_preimage(preimage: Union[bytes, str], condition_hex: str) -> bool:
    """
    Check a candidate secret against a published condition.

    Comparison is case-insensitive. Malformed candidates do not match;
    nothing is raised, so callers can try several secrets in turn.
    """
    try:
        computed = condition_to_hex(condition_from_preimage(preimage))
    except ConditionError as e:
        logger.debug("candidate preimage rejected: %s", e.code)
        computed = None

    expected = condition_hex.strip().upper() if isinstance(condition_hex, str) else None
    match = computed is not None and computed == expected
    audit_log.condition_verified(expected, match)
    return match


def verify_fulfillment(fulfillment_hex: str, condition_hex: str) -> bool:
    """Check an encoded PREIMAGE-SHA-256 fulfillment against a condition."""
    try:
        fulfillment = fulfillment_from_hex(fulfillment_hex)
    except ConditionError as e:
        logger.debug("fulfillment rejected: %s", e.code)
        return False

    if not isinstance(fulfillment, PreimageSha256Fulfillment):
        logger.warning(
            "cannot check %s fulfillments locally", fulfillment.type_id.info.name
        )
        return False
    return verify_preimage(fulfillment.preimage, condition_hex)


# ============================================================
# Builder
# ============================================================

class ConditionBuilder:
    """
    Builds escrow conditions from a ConditionRequest.

    Secret source, in order of precedence:
    1. ``existing_preimage``: a secret key the caller already holds
    2. ``password``: bcrypt-sha256 with the existing, permanent or a random salt
    3. neither: 32 random bytes
    """

    def __init__(self, rounds: Optional[int] = None):
        self.rounds = rounds if rounds is not None else default_rounds()

    def build(self, request: ConditionRequest) -> ConditionResult:
        existing = (request.existing_preimage or "").strip()
        if existing:
            secret = SecretDerivationResult(
                preimage=validate_hex(existing, "existing_preimage")
            )
            audit_log.secret_derived("existing")
        else:
            secret = self._derive(request)

        result = self._assemble(secret)

        if secret.salt:
            self._check_rederivation(request, secret, result)

        audit_log.condition_built(result.condition_hex, result.preimage_length, result.fee_drops)
        return result

    def _derive(self, request: ConditionRequest, existing_salt: Optional[str] = None) -> SecretDerivationResult:
        password = request.password.get_secret_value() if request.password is not None else None
        return derive_secret(
            password,
            pepper=request.pepper,
            existing_salt=existing_salt or request.existing_salt,
            rounds=request.rounds if request.rounds is not None else self.rounds,
            use_permanent_salt=request.permanent_salt,
        )

    def _assemble(self, secret: SecretDerivationResult) -> ConditionResult:
        preimage = secret.preimage
        if len(preimage) < PREIMAGE_SIZE:
            raise InternalError(
                f"Preimage length {len(preimage)} is less than required size {PREIMAGE_SIZE}"
            )

        fulfillment = PreimageSha256Fulfillment(preimage=preimage)
        condition = fulfillment.condition()
        condition_bytes = encode_condition(condition)
        fulfillment_bytes = encode_fulfillment(fulfillment)

        if decode_condition(condition_bytes) != condition or decode_fulfillment(fulfillment_bytes) != fulfillment:
            audit_log.self_check_failed("codec_round_trip")
            raise InternalError("Encoded condition or fulfillment does not decode to its source")

        return ConditionResult(
            condition_hex=condition_bytes.hex().upper(),
            fulfillment_hex=fulfillment_bytes.hex().upper(),
            preimage_hex=preimage.hex().upper(),
            salt_metadata=SaltMetadata(
                value=secret.salt,
                is_random=secret.is_salt_random,
                rounds=secret.rounds,
            ),
            random_secret=secret.is_random,
            preimage_length=len(preimage),
            preimage_cost_drops=preimage_cost_drops(len(preimage)),
            fee_drops=fulfillment_fee_drops(len(preimage)),
        )

    def _check_rederivation(
        self,
        request: ConditionRequest,
        secret: SecretDerivationResult,
        result: ConditionResult
    ) -> None:
        again = self._assemble(self._derive(request, existing_salt=secret.salt))
        if again.condition_hex != result.condition_hex or again.preimage_hex != result.preimage_hex:
            audit_log.self_check_failed("rederivation")
            raise InternalError("Re-derived condition differs from the original derivation")


def build_condition(
    password: Optional[str] = None,
    pepper: Optional[str] = "",
    existing_salt: Optional[str] = None,
    rounds: Optional[int] = None,
    existing_preimage: Optional[str] = None,
    permanent_salt: bool = True,
) -> ConditionResult:
    """
    Build a condition with a default ConditionBuilder.

    Raises:
        InvalidInputError: If an argument has the wrong type
    """
    try:
        request = ConditionRequest(
            password=password,
            pepper=pepper,
            existing_salt=existing_salt,
            rounds=rounds,
            existing_preimage=existing_preimage,
            permanent_salt=permanent_salt,
        )
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or None
        raise InvalidInputError(error["msg"], field=field) from e
    return ConditionBuilder().build(request)
