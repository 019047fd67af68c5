"""
ASN.1 schemas of draft-thomas-crypto-conditions-04 (Section 7).

    Condition ::= CHOICE {
        preimageSha256   [0] SimpleSha256Condition,
        prefixSha256     [1] CompoundSha256Condition,
        thresholdSha256  [2] CompoundSha256Condition,
        rsaSha256        [3] SimpleSha256Condition,
        ed25519Sha256    [4] SimpleSha256Condition
    }

    Fulfillment ::= CHOICE {
        preimageSha256   [0] PreimageFulfillment,
        prefixSha256     [1] PrefixFulfillment,
        thresholdSha256  [2] ThresholdFulfillment,
        rsaSha256        [3] RsaSha256Fulfillment,
        ed25519Sha256    [4] Ed25519Sha256Fulfillment
    }

Alternative names match ``TypeInfo.asn1_condition`` and
``TypeInfo.asn1_fulfillment``. Prefix and threshold fulfillments contain
further fulfillments, so the Fulfillment CHOICE is declared first and its
alternatives are attached once the nested schemas exist.
"""

from asn1crypto import core


# ============================================================
# Conditions
# ============================================================

class SimpleSha256Condition(core.Sequence):
    _fields = [
        ('fingerprint', core.OctetString, {'implicit': 0}),
        ('cost', core.Integer, {'implicit': 1}),
    ]


class CompoundSha256Condition(core.Sequence):
    _fields = [
        ('fingerprint', core.OctetString, {'implicit': 0}),
        ('cost', core.Integer, {'implicit': 1}),
        ('subtypes', core.BitString, {'implicit': 2}),
    ]


class ConditionSchema(core.Choice):
    _alternatives = [
        ('preimageSha256Condition', SimpleSha256Condition, {'implicit': 0}),
        ('prefixSha256Condition', CompoundSha256Condition, {'implicit': 1}),
        ('thresholdSha256Condition', CompoundSha256Condition, {'implicit': 2}),
        ('rsaSha256Condition', SimpleSha256Condition, {'implicit': 3}),
        ('ed25519Sha256Condition', SimpleSha256Condition, {'implicit': 4}),
    ]


class ConditionSet(core.SetOf):
    _child_spec = ConditionSchema


# ============================================================
# Fulfillments
# ============================================================

class FulfillmentSchema(core.Choice):
    pass


class PreimageFulfillment(core.Sequence):
    _fields = [
        ('preimage', core.OctetString, {'implicit': 0}),
    ]


class PrefixFulfillment(core.Sequence):
    _fields = [
        ('prefix', core.OctetString, {'implicit': 0}),
        ('maxMessageLength', core.Integer, {'implicit': 1}),
        ('subfulfillment', FulfillmentSchema, {'explicit': 2}),
    ]


class FulfillmentSet(core.SetOf):
    _child_spec = FulfillmentSchema


class ThresholdFulfillment(core.Sequence):
    _fields = [
        ('subfulfillments', FulfillmentSet, {'implicit': 0}),
        ('subconditions', ConditionSet, {'implicit': 1}),
    ]


class RsaSha256Fulfillment(core.Sequence):
    _fields = [
        ('modulus', core.OctetString, {'implicit': 0}),
        ('signature', core.OctetString, {'implicit': 1}),
    ]


class Ed25519Sha256Fulfillment(core.Sequence):
    _fields = [
        ('publicKey', core.OctetString, {'implicit': 0}),
        ('signature', core.OctetString, {'implicit': 1}),
    ]


FulfillmentSchema._alternatives = [
    ('preimageSha256Fulfillment', PreimageFulfillment, {'implicit': 0}),
    ('prefixSha256Fulfillment', PrefixFulfillment, {'implicit': 1}),
    ('thresholdSha256Fulfillment', ThresholdFulfillment, {'implicit': 2}),
    ('rsaSha256Fulfillment', RsaSha256Fulfillment, {'implicit': 3}),
    ('ed25519Sha256Fulfillment', Ed25519Sha256Fulfillment, {'implicit': 4}),
]
