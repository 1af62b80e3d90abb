"""
Royalty Ledger - Error Kinds and Call Results

Every ledger operation reports its outcome as a RoyaltyResult: either a
success carrying a typed value, or a failure carrying one RoyaltyErrorKind.
Failures are returned to the caller, never raised.

Error categories:
- Authorization: who may act
- Validation: malformed or out-of-band inputs
- Lookup: unknown agreement ids
- Capacity / lifecycle: global cap and expiration
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCategory(Enum):
    """Broad grouping of error kinds."""

    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    LOOKUP = "lookup"
    CAPACITY = "capacity"


class RoyaltyErrorKind(Enum):
    """Every way a ledger operation can be rejected."""

    # Authorization
    NOT_AUTHORIZED = "not_authorized"
    AUTHORITY_NOT_VERIFIED = "authority_not_verified"
    ALREADY_SET = "already_set"
    # Validation
    INVALID_ASSET_ID = "invalid_asset_id"
    INVALID_RATE = "invalid_rate"
    INVALID_RATE_BOUND = "invalid_rate_bound"
    INVALID_EXPIRATION = "invalid_expiration"
    INVALID_CURRENCY = "invalid_currency"
    INVALID_RECIPIENT = "invalid_recipient"
    INVALID_PERCENTAGE = "invalid_percentage"
    INVALID_TIER = "invalid_tier"
    INVALID_THRESHOLD = "invalid_threshold"
    INVALID_SALE_AMOUNT = "invalid_sale_amount"
    # Lookup
    NOT_FOUND = "not_found"
    # Capacity / lifecycle
    CAPACITY_EXCEEDED = "capacity_exceeded"
    EXPIRED = "expired"

    @property
    def code(self) -> int:
        """Numeric code used by the on-chain contract."""
        return ERROR_CODES[self]

    @property
    def category(self) -> ErrorCategory:
        return ERROR_CATEGORIES[self]


ERROR_CODES = {
    RoyaltyErrorKind.NOT_AUTHORIZED: 100,
    RoyaltyErrorKind.INVALID_ASSET_ID: 101,
    RoyaltyErrorKind.INVALID_RATE: 102,
    RoyaltyErrorKind.INVALID_SALE_AMOUNT: 103,
    RoyaltyErrorKind.NOT_FOUND: 105,
    RoyaltyErrorKind.INVALID_RECIPIENT: 106,
    RoyaltyErrorKind.INVALID_PERCENTAGE: 107,
    RoyaltyErrorKind.INVALID_EXPIRATION: 109,
    RoyaltyErrorKind.EXPIRED: 110,
    RoyaltyErrorKind.ALREADY_SET: 111,
    RoyaltyErrorKind.AUTHORITY_NOT_VERIFIED: 112,
    RoyaltyErrorKind.INVALID_RATE_BOUND: 113,
    RoyaltyErrorKind.INVALID_CURRENCY: 116,
    RoyaltyErrorKind.CAPACITY_EXCEEDED: 118,
    RoyaltyErrorKind.INVALID_TIER: 119,
    RoyaltyErrorKind.INVALID_THRESHOLD: 120,
}

ERROR_CATEGORIES = {
    RoyaltyErrorKind.NOT_AUTHORIZED: ErrorCategory.AUTHORIZATION,
    RoyaltyErrorKind.AUTHORITY_NOT_VERIFIED: ErrorCategory.AUTHORIZATION,
    RoyaltyErrorKind.ALREADY_SET: ErrorCategory.AUTHORIZATION,
    RoyaltyErrorKind.INVALID_ASSET_ID: ErrorCategory.VALIDATION,
    RoyaltyErrorKind.INVALID_RATE: ErrorCategory.VALIDATION,
    RoyaltyErrorKind.INVALID_RATE_BOUND: ErrorCategory.VALIDATION,
    RoyaltyErrorKind.INVALID_EXPIRATION: ErrorCategory.VALIDATION,
    RoyaltyErrorKind.INVALID_CURRENCY: ErrorCategory.VALIDATION,
    RoyaltyErrorKind.INVALID_RECIPIENT: ErrorCategory.VALIDATION,
    RoyaltyErrorKind.INVALID_PERCENTAGE: ErrorCategory.VALIDATION,
    RoyaltyErrorKind.INVALID_TIER: ErrorCategory.VALIDATION,
    RoyaltyErrorKind.INVALID_THRESHOLD: ErrorCategory.VALIDATION,
    RoyaltyErrorKind.INVALID_SALE_AMOUNT: ErrorCategory.VALIDATION,
    RoyaltyErrorKind.NOT_FOUND: ErrorCategory.LOOKUP,
    RoyaltyErrorKind.CAPACITY_EXCEEDED: ErrorCategory.CAPACITY,
    RoyaltyErrorKind.EXPIRED: ErrorCategory.CAPACITY,
}


@dataclass(frozen=True)
class RoyaltyResult:
    """
    Outcome of a single ledger call.

    Exactly one of `value` (on success) or `error` (on failure) is meaningful.
    """

    ok: bool
    value: Any = None
    error: RoyaltyErrorKind | None = None

    @classmethod
    def success(cls, value: Any = True) -> "RoyaltyResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: RoyaltyErrorKind) -> "RoyaltyResult":
        return cls(ok=False, error=error)

    def __bool__(self) -> bool:
        return self.ok

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        if self.ok:
            return {"ok": True, "value": self.value}
        return {
            "ok": False,
            "error": self.error.value,
            "code": self.error.code,
            "category": self.error.category.value,
        }
