"""
Crypto-condition binary codec.

Converts Condition and Fulfillment values to and from DER through the
schemas in ``cryptocond.schemas``. Decoding is strict: the input must be
exactly the canonical DER encoding of the value it decodes to, with no
trailing bytes. Prefix and threshold fulfillments embed further
fulfillments, so conversion recurses, bounded by MAX_FULFILLMENT_DEPTH.
"""

from types import MappingProxyType
from typing import Callable, Dict, FrozenSet, Iterable, Mapping, Tuple

from .conditions import (
    CONDITION_TYPES,
    Condition,
    ConditionCategory,
    ConditionType,
    Ed25519Sha256Fulfillment,
    Fulfillment,
    PrefixSha256Fulfillment,
    PreimageSha256Fulfillment,
    RsaSha256Fulfillment,
    ThresholdSha256Fulfillment,
)
from .errors import (
    ConditionError,
    DataCompletenessError,
    DecodeError,
    InvalidInputError,
    TypeMismatchError,
)
from .schemas import ConditionSchema, FulfillmentSchema
from .validation import validate_hex


# Bound on prefix/threshold nesting accepted when decoding
MAX_FULFILLMENT_DEPTH = 32

_CONDITION_NAMES = {info.asn1_condition: ctype for ctype, info in CONDITION_TYPES.items()}
_FULFILLMENT_NAMES = {info.asn1_fulfillment: ctype for ctype, info in CONDITION_TYPES.items()}


def _require(value, message: str, field: str):
    if value is None:
        raise DataCompletenessError(message, field=field)
    return value


def _unsigned(value, field: str) -> int:
    value = int(value)
    if value < 0:
        raise InvalidInputError("must be non-negative", field=field)
    return value


def _decoded_unsigned(value: int, field: str) -> int:
    if value < 0:
        raise DecodeError("negative INTEGER where a cost or length was expected", field=field)
    return value


def _check_choice_tag(data: bytes) -> None:
    if not data:
        raise DecodeError("no data")
    tag = data[0]
    if tag & 0xE0 != 0xA0:
        raise DecodeError(f"expected a constructed context tag, got 0x{tag:02X}")
    ConditionType.coerce(tag & 0x1F)


def _decode(data: bytes, schema, convert: Callable, encode: Callable, what: str):
    data = bytes(data)
    _check_choice_tag(data)
    try:
        value = convert(schema.load(data, strict=True))
    except ConditionError:
        raise
    except (ValueError, TypeError) as e:
        raise DecodeError(f"malformed {what}: {e}") from e

    # Non-minimal lengths or integers, indefinite lengths and unsorted
    # SET OF elements all decode but do not re-encode to the same bytes
    if encode(value) != data:
        raise DecodeError(f"{what} is not in canonical DER form")
    return value


# ============================================================
# Subtypes bit string
# ============================================================

def subtypes_to_bits(subtypes: Iterable[int]) -> Tuple[int, ...]:
    """
    BIT STRING value for a set of type ids.

    Bit ``id`` is set for every member; the string ends at the largest id
    so no trailing zero bits are encoded.
    """
    ids = {ConditionType.coerce(s) for s in subtypes}
    size = max(ids, default=0) + 1
    return tuple(1 if i in ids else 0 for i in range(size))


def bits_to_subtypes(bits: Iterable[int]) -> FrozenSet[ConditionType]:
    return frozenset(ConditionType.coerce(i) for i, bit in enumerate(bits) if bit)


# ============================================================
# Conditions
# ============================================================

def _condition_schema(condition: Condition) -> ConditionSchema:
    ctype = ConditionType.coerce(condition.type_id)
    fingerprint = condition.fingerprint
    if not fingerprint:
        raise DataCompletenessError("Hash not set", field="fingerprint")
    cost = _require(condition.cost, "Cost not set", "cost")

    body = {
        'fingerprint': bytes(fingerprint),
        'cost': _unsigned(cost, "cost"),
    }
    if ctype.category is ConditionCategory.COMPOUND:
        body['subtypes'] = subtypes_to_bits(condition.subtypes)
    return ConditionSchema(name=ctype.info.asn1_condition, value=body)


def _condition_from_schema(schema: ConditionSchema) -> Condition:
    ctype = _CONDITION_NAMES[schema.name]
    body = schema.chosen

    subtypes = frozenset()
    if ctype.category is ConditionCategory.COMPOUND:
        subtypes = bits_to_subtypes(body['subtypes'].native)

    return Condition(
        fingerprint=body['fingerprint'].native,
        type_id=ctype,
        cost=_decoded_unsigned(body['cost'].native, "cost"),
        subtypes=subtypes,
    )


def encode_condition(condition: Condition) -> bytes:
    """
    Serialize a Condition to DER.

    Raises:
        DataCompletenessError: If type_id, fingerprint or cost is unset
        TypeMismatchError: If type_id or a subtype is not one of the five known kinds
    """
    return _condition_schema(condition).dump()


def decode_condition(data: bytes) -> Condition:
    """Parse a DER Condition; the inverse of encode_condition."""
    return _decode(data, ConditionSchema, _condition_from_schema, encode_condition, "condition")


# ============================================================
# Fulfillments
# ============================================================

def _preimage_body(f: PreimageSha256Fulfillment) -> Dict:
    return {'preimage': bytes(_require(f.preimage, "Preimage not set", "preimage"))}


def _prefix_body(f: PrefixSha256Fulfillment) -> Dict:
    prefix = _require(f.prefix, "Prefix not set", "prefix")
    max_len = _require(f.max_message_length, "maxMessageLength not set", "max_message_length")
    sub = _require(f.subfulfillment, "Subfulfillment not set", "subfulfillment")
    return {
        'prefix': bytes(prefix),
        'maxMessageLength': _unsigned(max_len, "max_message_length"),
        'subfulfillment': _fulfillment_schema(sub, explicit=2),
    }


def _threshold_body(f: ThresholdSha256Fulfillment) -> Dict:
    # DER orders SET OF elements by their encodings
    return {
        'subfulfillments': sorted(
            (_fulfillment_schema(sub) for sub in f.subfulfillments), key=lambda s: s.dump()
        ),
        'subconditions': sorted(
            (_condition_schema(sub) for sub in f.subconditions), key=lambda s: s.dump()
        ),
    }


def _rsa_body(f: RsaSha256Fulfillment) -> Dict:
    return {
        'modulus': bytes(_require(f.modulus, "Modulus not set", "modulus")),
        'signature': bytes(_require(f.signature, "Signature not set", "signature")),
    }


def _ed25519_body(f: Ed25519Sha256Fulfillment) -> Dict:
    return {
        'publicKey': bytes(_require(f.public_key, "Public key not set", "public_key")),
        'signature': bytes(_require(f.signature, "Signature not set", "signature")),
    }


_FULFILLMENT_BODIES: Mapping[ConditionType, Tuple[type, Callable[..., Dict]]] = MappingProxyType({
    ConditionType.PREIMAGE_SHA256: (PreimageSha256Fulfillment, _preimage_body),
    ConditionType.PREFIX_SHA256: (PrefixSha256Fulfillment, _prefix_body),
    ConditionType.THRESHOLD_SHA256: (ThresholdSha256Fulfillment, _threshold_body),
    ConditionType.RSA_SHA256: (RsaSha256Fulfillment, _rsa_body),
    ConditionType.ED25519_SHA256: (Ed25519Sha256Fulfillment, _ed25519_body),
})


def _fulfillment_schema(fulfillment: Fulfillment, **tagging) -> FulfillmentSchema:
    ctype = ConditionType.coerce(getattr(fulfillment, "type_id", None))
    cls, body = _FULFILLMENT_BODIES[ctype]
    if not isinstance(fulfillment, cls):
        raise TypeMismatchError(
            f"{type(fulfillment).__name__} does not carry a {ctype.info.name} payload",
            field="type_id",
        )
    return FulfillmentSchema(name=ctype.info.asn1_fulfillment, value=body(fulfillment), **tagging)


def _fulfillment_from_schema(schema: FulfillmentSchema, depth: int) -> Fulfillment:
    if depth > MAX_FULFILLMENT_DEPTH:
        raise DecodeError(f"fulfillment nesting exceeds {MAX_FULFILLMENT_DEPTH} levels")

    ctype = _FULFILLMENT_NAMES[schema.name]
    body = schema.chosen

    if ctype is ConditionType.PREIMAGE_SHA256:
        return PreimageSha256Fulfillment(preimage=body['preimage'].native)

    if ctype is ConditionType.PREFIX_SHA256:
        return PrefixSha256Fulfillment(
            prefix=body['prefix'].native,
            max_message_length=_decoded_unsigned(body['maxMessageLength'].native, "max_message_length"),
            subfulfillment=_fulfillment_from_schema(body['subfulfillment'], depth + 1),
        )

    if ctype is ConditionType.THRESHOLD_SHA256:
        return ThresholdSha256Fulfillment(
            subfulfillments=tuple(
                _fulfillment_from_schema(sub, depth + 1) for sub in body['subfulfillments']
            ),
            subconditions=tuple(_condition_from_schema(sub) for sub in body['subconditions']),
        )

    if ctype is ConditionType.RSA_SHA256:
        return RsaSha256Fulfillment(modulus=body['modulus'].native, signature=body['signature'].native)
    return Ed25519Sha256Fulfillment(public_key=body['publicKey'].native, signature=body['signature'].native)


def encode_fulfillment(fulfillment: Fulfillment) -> bytes:
    """
    Serialize a Fulfillment to DER.

    Raises:
        DataCompletenessError: If a required payload field is unset
        TypeMismatchError: If the value is not one of the five fulfillment kinds
    """
    return _fulfillment_schema(fulfillment).dump()


def decode_fulfillment(data: bytes) -> Fulfillment:
    """Parse a DER Fulfillment; the inverse of encode_fulfillment."""
    return _decode(
        data,
        FulfillmentSchema,
        lambda schema: _fulfillment_from_schema(schema, 0),
        encode_fulfillment,
        "fulfillment",
    )


# ============================================================
# Hex helpers
# ============================================================

def condition_to_hex(condition: Condition) -> str:
    """Upper-case hex of the encoded condition, as ledgers display it."""
    return encode_condition(condition).hex().upper()


def condition_from_hex(value: str) -> Condition:
    return decode_condition(validate_hex(value, "condition"))


def fulfillment_to_hex(fulfillment: Fulfillment) -> str:
    return encode_fulfillment(fulfillment).hex().upper()


def fulfillment_from_hex(value: str) -> Fulfillment:
    return decode_fulfillment(validate_hex(value, "fulfillment"))
