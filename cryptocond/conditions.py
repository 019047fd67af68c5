"""
Crypto-condition value types.

Implements the data model of draft-thomas-crypto-conditions-04:

- ConditionType: the five known condition kinds, keyed by CHOICE tag
- CONDITION_TYPES: read-only registry of per-kind metadata, built at import
- Condition: fingerprint, cost and (for compound kinds) subtypes
- Fulfillment: tagged union of the five fulfillment payloads. Prefix and
  threshold fulfillments nest other fulfillments, so the union is declared
  first and referenced by name from the nested variants.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import ClassVar, FrozenSet, Mapping, Optional, Tuple

from .errors import DataCompletenessError, TypeMismatchError
from .hashing import sha256_digest


class ConditionCategory(str, Enum):
    """Simple kinds commit to a single hash; compound kinds also list subtypes."""
    SIMPLE = "simple"
    COMPOUND = "compound"


class ConditionType(IntEnum):
    """Condition kinds by their context tag number."""
    PREIMAGE_SHA256 = 0
    PREFIX_SHA256 = 1
    THRESHOLD_SHA256 = 2
    RSA_SHA256 = 3
    ED25519_SHA256 = 4

    @classmethod
    def coerce(cls, type_id) -> "ConditionType":
        """
        Resolve a type id to a known kind.

        Raises:
            DataCompletenessError: If type_id is not set
            TypeMismatchError: If type_id names no known kind
        """
        if type_id is None:
            raise DataCompletenessError("typeId not set", field="type_id")
        if isinstance(type_id, cls):
            return type_id
        if isinstance(type_id, bool) or not isinstance(type_id, int):
            raise TypeMismatchError(f'typeId "{type_id!r}" is not an integer', field="type_id")
        try:
            return cls(type_id)
        except ValueError:
            raise TypeMismatchError(f'unknown type for typeId "{type_id}"', field="type_id")

    @property
    def info(self) -> "TypeInfo":
        return CONDITION_TYPES[self]

    @property
    def category(self) -> ConditionCategory:
        return CONDITION_TYPES[self].category


@dataclass(frozen=True)
class TypeInfo:
    """Registry entry for one condition kind."""
    name: str
    asn1_condition: str
    asn1_fulfillment: str
    category: ConditionCategory


CONDITION_TYPES: Mapping[ConditionType, TypeInfo] = MappingProxyType({
    ConditionType.PREIMAGE_SHA256: TypeInfo(
        "preimage-sha-256", "preimageSha256Condition", "preimageSha256Fulfillment", ConditionCategory.SIMPLE
    ),
    ConditionType.PREFIX_SHA256: TypeInfo(
        "prefix-sha-256", "prefixSha256Condition", "prefixSha256Fulfillment", ConditionCategory.COMPOUND
    ),
    ConditionType.THRESHOLD_SHA256: TypeInfo(
        "threshold-sha-256", "thresholdSha256Condition", "thresholdSha256Fulfillment", ConditionCategory.COMPOUND
    ),
    ConditionType.RSA_SHA256: TypeInfo(
        "rsa-sha-256", "rsaSha256Condition", "rsaSha256Fulfillment", ConditionCategory.SIMPLE
    ),
    ConditionType.ED25519_SHA256: TypeInfo(
        "ed25519-sha-256", "ed25519Sha256Condition", "ed25519Sha256Fulfillment", ConditionCategory.SIMPLE
    ),
})


def type_by_name(name: str) -> ConditionType:
    """Look up a kind by its registered name, e.g. ``preimage-sha-256``."""
    for type_id, info in CONDITION_TYPES.items():
        if info.name == name:
            return type_id
    raise TypeMismatchError(f'unknown condition type name "{name}"')


@dataclass(frozen=True)
class Condition:
    """
    A public commitment to a fingerprint and a cost.

    Fields may be left unset while a condition is being assembled;
    encoding rejects incomplete values.
    """
    fingerprint: Optional[bytes] = None
    type_id: Optional[int] = None
    cost: Optional[int] = None
    subtypes: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def type(self) -> ConditionType:
        return ConditionType.coerce(self.type_id)


class Fulfillment:
    """Base of the fulfillment tagged union; ``type_id`` selects the branch."""
    type_id: ClassVar[ConditionType]


@dataclass(frozen=True)
class PreimageSha256Fulfillment(Fulfillment):
    preimage: Optional[bytes] = None
    type_id: ClassVar[ConditionType] = ConditionType.PREIMAGE_SHA256

    def condition(self) -> Condition:
        """Condition satisfied by this preimage."""
        if self.preimage is None:
            raise DataCompletenessError("Preimage not set", field="preimage")
        return Condition(
            fingerprint=sha256_digest(self.preimage),
            type_id=ConditionType.PREIMAGE_SHA256,
            cost=len(self.preimage),
        )


@dataclass(frozen=True)
class PrefixSha256Fulfillment(Fulfillment):
    prefix: Optional[bytes] = None
    max_message_length: Optional[int] = None
    subfulfillment: Optional["Fulfillment"] = None
    type_id: ClassVar[ConditionType] = ConditionType.PREFIX_SHA256


@dataclass(frozen=True)
class ThresholdSha256Fulfillment(Fulfillment):
    subfulfillments: Tuple["Fulfillment", ...] = ()
    subconditions: Tuple[Condition, ...] = ()
    type_id: ClassVar[ConditionType] = ConditionType.THRESHOLD_SHA256


@dataclass(frozen=True)
class RsaSha256Fulfillment(Fulfillment):
    modulus: Optional[bytes] = None
    signature: Optional[bytes] = None
    type_id: ClassVar[ConditionType] = ConditionType.RSA_SHA256


@dataclass(frozen=True)
class Ed25519Sha256Fulfillment(Fulfillment):
    public_key: Optional[bytes] = None
    signature: Optional[bytes] = None
    type_id: ClassVar[ConditionType] = ConditionType.ED25519_SHA256

