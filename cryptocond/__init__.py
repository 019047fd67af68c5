"""
cryptocond - PREIMAGE-SHA-256 crypto-conditions for ledger escrows

Version: 1.0.0
License: Apache 2.0

Protects the finish of an escrow with a secret. The secret is either 32
random bytes or is derived from a password with bcrypt-sha256, optionally
personalized by a per-account pepper so the password alone regenerates it.

The condition and fulfillment are DER-encoded per
draft-thomas-crypto-conditions-04 and must be accepted byte-for-byte by
the ledger's validators.

Usage:
    from cryptocond import build_condition, verify_preimage, fulfillment_fee_drops

    # Random secret
    result = build_condition()

    # Password-derived secret, reproducible for the same account
    result = build_condition(password="correct horse", pepper="rEscrowOwnerAccount")

    escrow_create["Condition"] = result.condition_hex
    escrow_finish["Fulfillment"] = result.fulfillment_hex
    escrow_finish["Fee"] = str(result.fee_drops)

    # Later: does a candidate secret open the escrow?
    verify_preimage(result.preimage_hex, escrow_create["Condition"])
"""

__version__ = "1.0.0"
__license__ = "Apache-2.0"

# Errors
from .errors import (
    ConditionError,
    DataCompletenessError,
    InternalError,
    TypeMismatchError,
    InvalidInputError,
    DecodeError,
)

# Types
from .conditions import (
    ConditionType,
    ConditionCategory,
    CONDITION_TYPES,
    Condition,
    Fulfillment,
    PreimageSha256Fulfillment,
    PrefixSha256Fulfillment,
    ThresholdSha256Fulfillment,
    RsaSha256Fulfillment,
    Ed25519Sha256Fulfillment,
    type_by_name,
)

# Codec
from .codec import (
    encode_condition,
    decode_condition,
    encode_fulfillment,
    decode_fulfillment,
    condition_to_hex,
    condition_from_hex,
    fulfillment_to_hex,
    fulfillment_from_hex,
)

# Secret derivation
from .derivation import (
    SecretDerivationResult,
    bcrypt_b64encode,
    bcrypt_sha256,
    derive_secret,
    permanent_salt,
)

# Builder
from .builder import (
    ConditionBuilder,
    build_condition,
    condition_from_preimage,
    fulfillment_from_preimage_hex,
    fulfillment_fee_drops,
    preimage_cost_drops,
    verify_fulfillment,
    verify_preimage,
)
from .models import ConditionRequest, ConditionResult, FulfillmentResult, SaltMetadata


__all__ = [
    # Version
    "__version__",

    # Errors
    "ConditionError",
    "DataCompletenessError",
    "InternalError",
    "TypeMismatchError",
    "InvalidInputError",
    "DecodeError",

    # Types
    "ConditionType",
    "ConditionCategory",
    "CONDITION_TYPES",
    "Condition",
    "Fulfillment",
    "PreimageSha256Fulfillment",
    "PrefixSha256Fulfillment",
    "ThresholdSha256Fulfillment",
    "RsaSha256Fulfillment",
    "Ed25519Sha256Fulfillment",
    "type_by_name",

    # Codec
    "encode_condition",
    "decode_condition",
    "encode_fulfillment",
    "decode_fulfillment",
    "condition_to_hex",
    "condition_from_hex",
    "fulfillment_to_hex",
    "fulfillment_from_hex",

    # Secret derivation
    "SecretDerivationResult",
    "bcrypt_b64encode",
    "bcrypt_sha256",
    "derive_secret",
    "permanent_salt",

    # Builder
    "ConditionBuilder",
    "build_condition",
    "condition_from_preimage",
    "fulfillment_from_preimage_hex",
    "fulfillment_fee_drops",
    "preimage_cost_drops",
    "verify_fulfillment",
    "verify_preimage",
    "ConditionRequest",
    "ConditionResult",
    "FulfillmentResult",
    "SaltMetadata",
]
