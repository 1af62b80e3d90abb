"""
Royalty Ledger - Agreements

Owns the royalty agreements, keyed by an auto-incrementing id, and enforces
the creation and amendment rules against the Parameter Store.

Key rules:
- Ids come from the global counter and are never reused
- The rate must sit inside the global band at the time of every write
- The expiration must not lie in the past at the time of every write
- Only the creator of an agreement may amend it
- Agreements are never deleted
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from audit_log import RoyaltyUpdate, UpdateAuditLog
from call_context import CallContext
from parameter_store import ParameterStore
from royalty_errors import RoyaltyErrorKind, RoyaltyResult

logger = logging.getLogger(__name__)


class Currency(Enum):
    """Currencies an agreement may be denominated in."""

    STX = "STX"
    CURA = "CURA"

    @classmethod
    def parse(cls, value: "Currency | str") -> "Currency | None":
        """Resolve an enum member or its string name; None if unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class RoyaltyAgreement:
    """A royalty configuration tied to one asset and its creator."""

    id: int
    asset_id: int
    creator: str
    rate: int  # basis points
    expiration: int  # block height
    currency: Currency
    min_rate: int
    max_rate: int
    active: bool = True

    def is_expired(self, block_height: int) -> bool:
        """Expiration is exclusive: reaching the height already counts."""
        return block_height >= self.expiration

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "asset_id": self.asset_id,
            "creator": self.creator,
            "rate": self.rate,
            "expiration": self.expiration,
            "currency": self.currency.value,
            "min_rate": self.min_rate,
            "max_rate": self.max_rate,
            "active": self.active,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RoyaltyAgreement":
        return cls(
            id=int(data["id"]),
            asset_id=int(data["asset_id"]),
            creator=data["creator"],
            rate=int(data["rate"]),
            expiration=int(data["expiration"]),
            currency=Currency(data["currency"]),
            min_rate=int(data["min_rate"]),
            max_rate=int(data["max_rate"]),
            active=bool(data.get("active", True)),
        )


class RoyaltyLedger:
    """
    Collection of royalty agreements.

    Every validation runs before any write, so a rejected call leaves the
    ledger, the id counter and the audit log untouched.
    """

    def __init__(self, parameters: ParameterStore, audit_log: UpdateAuditLog | None = None):
        """
        Initialize the ledger.

        Args:
            parameters: Store holding the global bounds, cap and authority
            audit_log: Log receiving the latest amendment of each agreement
        """
        self.parameters = parameters
        self.audit_log = audit_log if audit_log is not None else UpdateAuditLog()
        self.agreements: dict[int, RoyaltyAgreement] = {}

    # =========================================================================
    # Creation
    # =========================================================================

    def create_royalty(
        self,
        ctx: CallContext,
        asset_id: int,
        rate: int,
        expiration: int,
        currency: Currency | str,
        min_rate: int,
        max_rate: int,
    ) -> RoyaltyResult:
        """
        Create a royalty agreement owned by the caller.

        Args:
            ctx: Caller identity and current block height
            asset_id: Royalty subject, must be positive
            rate: Royalty rate in basis points, within the global band
            expiration: Block height after which distribution is refused
            currency: STX or CURA
            min_rate: Per-agreement lower band (stored only)
            max_rate: Per-agreement upper band (stored only)

        Returns:
            RoyaltyResult carrying the new agreement id
        """
        params = self.parameters.get_parameters()

        # First failing check wins
        if not params.has_capacity():
            return self._reject("create", ctx, RoyaltyErrorKind.CAPACITY_EXCEEDED)
        if asset_id <= 0:
            return self._reject("create", ctx, RoyaltyErrorKind.INVALID_ASSET_ID)
        if not params.rate_in_bounds(rate):
            return self._reject("create", ctx, RoyaltyErrorKind.INVALID_RATE)
        if expiration < ctx.block_height:
            return self._reject("create", ctx, RoyaltyErrorKind.INVALID_EXPIRATION)
        parsed_currency = Currency.parse(currency)
        if parsed_currency is None:
            return self._reject("create", ctx, RoyaltyErrorKind.INVALID_CURRENCY)
        if not self.parameters.authority_set:
            return self._reject("create", ctx, RoyaltyErrorKind.AUTHORITY_NOT_VERIFIED)

        agreement_id = self.parameters.allocate_agreement_id()
        self.agreements[agreement_id] = RoyaltyAgreement(
            id=agreement_id,
            asset_id=asset_id,
            creator=ctx.caller,
            rate=rate,
            expiration=expiration,
            currency=parsed_currency,
            min_rate=min_rate,
            max_rate=max_rate,
        )

        logger.info(
            "Created royalty agreement %d for asset %d (rate=%d bps, expires at %d)",
            agreement_id, asset_id, rate, expiration,
        )
        return RoyaltyResult.success(agreement_id)

    # =========================================================================
    # Amendment
    # =========================================================================

    def update_royalty(
        self,
        ctx: CallContext,
        agreement_id: int,
        new_rate: int,
        new_expiration: int,
    ) -> RoyaltyResult:
        """
        Overwrite the rate and expiration of an agreement.

        Only the creator may amend. The audit log keeps this amendment as the
        agreement's single update record.
        """
        agreement = self.agreements.get(agreement_id)
        if agreement is None:
            return self._reject("update", ctx, RoyaltyErrorKind.NOT_FOUND)
        if agreement.creator != ctx.caller:
            return self._reject("update", ctx, RoyaltyErrorKind.NOT_AUTHORIZED)
        if not self.parameters.get_parameters().rate_in_bounds(new_rate):
            return self._reject("update", ctx, RoyaltyErrorKind.INVALID_RATE)
        if new_expiration < ctx.block_height:
            return self._reject("update", ctx, RoyaltyErrorKind.INVALID_EXPIRATION)

        self.agreements[agreement_id] = replace(
            agreement, rate=new_rate, expiration=new_expiration
        )
        self.audit_log.record(
            agreement_id,
            RoyaltyUpdate(
                update_rate=new_rate,
                update_expiration=new_expiration,
                update_timestamp=ctx.block_height,
                updater=ctx.caller,
            ),
        )

        logger.info(
            "Updated royalty agreement %d: rate=%d bps, expires at %d",
            agreement_id, new_rate, new_expiration,
        )
        return RoyaltyResult.success(True)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_royalty(self, agreement_id: int) -> RoyaltyResult:
        agreement = self.agreements.get(agreement_id)
        if agreement is None:
            return RoyaltyResult.failure(RoyaltyErrorKind.NOT_FOUND)
        return RoyaltyResult.success(agreement)

    def get_royalty_count(self) -> RoyaltyResult:
        """Total agreements ever created, not the number currently active."""
        return RoyaltyResult.success(self.parameters.get_parameters().next_agreement_id)

    def require_creator(self, ctx: CallContext, agreement_id: int) -> RoyaltyResult:
        """Resolve an agreement the caller is allowed to manage."""
        agreement = self.agreements.get(agreement_id)
        if agreement is None:
            return RoyaltyResult.failure(RoyaltyErrorKind.NOT_FOUND)
        if agreement.creator != ctx.caller:
            return RoyaltyResult.failure(RoyaltyErrorKind.NOT_AUTHORIZED)
        return RoyaltyResult.success(agreement)

    def _reject(self, operation: str, ctx: CallContext, error: RoyaltyErrorKind) -> RoyaltyResult:
        logger.debug(
            "Rejected %s by %s at height %d: %s",
            operation, ctx.caller, ctx.block_height, error.value,
        )
        return RoyaltyResult.failure(error)
