"""
Crypto-condition error taxonomy.

Every failure raised by the codec, the derivation engine and the builder is a
ConditionError carrying a stable ``code`` for programmatic handling. None of
these errors are retryable: the computations are deterministic, so the same
inputs reproduce the same failure.
"""

from typing import Any, Dict, Optional


class ConditionError(Exception):
    """Base error for all crypto-condition failures."""

    code = "CONDITION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None, **details: Any):
        self.message = message
        self.field = field
        self.details: Dict[str, Any] = details
        if field:
            super().__init__(f"{field}: {message}")
        else:
            super().__init__(message)

    def as_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.field:
            d["field"] = self.field
        if self.details:
            d["details"] = self.details
        return d


class DataCompletenessError(ConditionError):
    """A required field or argument is missing or empty."""

    code = "DATA_INCOMPLETE"


class InternalError(ConditionError):
    """An invariant was violated (short preimage, self-check mismatch, bad salt)."""

    code = "INTERNAL"


class TypeMismatchError(ConditionError):
    """A condition type id does not name one of the known kinds."""

    code = "TYPE_MISMATCH"


class InvalidInputError(ConditionError, ValueError):
    """A supplied value is present but malformed (bad hex, rounds out of range)."""

    code = "INVALID_INPUT"


class DecodeError(ConditionError, ValueError):
    """Binary input does not follow the condition/fulfillment grammar."""

    code = "DECODE"
