"""
Royalty Ledger - Recipient & Tier Registry

Per-agreement sub-records, each keyed by an (agreement_id, index) tuple:
- Recipients: fractional payout shares in basis points
- Tiers: sale-amount thresholds with their own rate

Both writes are upserts: re-adding at an existing key overwrites it.
Only the agreement creator may write either kind of record.

Note: the percentages of one agreement's recipients are not capped to a
combined 10000, and the Distribution Engine reads neither recipients nor
tiers. Both are stored for downstream consumers.
"""

import logging
from dataclasses import dataclass
from typing import Any

from call_context import CallContext
from royalty_config import BASIS_POINTS
from royalty_errors import RoyaltyErrorKind, RoyaltyResult
from royalty_ledger import RoyaltyLedger

logger = logging.getLogger(__name__)

SlotKey = tuple[int, int]  # (agreement_id, index)


@dataclass(frozen=True)
class RoyaltyRecipient:
    """A payout share for one slot of an agreement."""

    recipient: str
    percentage: int  # basis points

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"recipient": self.recipient, "percentage": self.percentage}


@dataclass(frozen=True)
class RoyaltyTier:
    """A rate that applies from a sale-amount threshold upwards."""

    threshold: int
    rate: int  # basis points

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"threshold": self.threshold, "rate": self.rate}


class RecipientTierRegistry:
    """Recipients and tiers, scoped by agreement id."""

    def __init__(self, ledger: RoyaltyLedger):
        self.ledger = ledger
        self.recipients: dict[SlotKey, RoyaltyRecipient] = {}
        self.tiers: dict[SlotKey, RoyaltyTier] = {}

    # =========================================================================
    # Writes
    # =========================================================================

    def add_royalty_recipient(
        self,
        ctx: CallContext,
        agreement_id: int,
        recipient: str,
        percentage: int,
        slot_index: int,
    ) -> RoyaltyResult:
        """
        Store a payout recipient at a slot of an agreement.

        Args:
            ctx: Caller identity and current block height
            agreement_id: Agreement the slot belongs to
            recipient: Principal receiving the share; may not be the caller
            percentage: Share in basis points, 1 to 10000
            slot_index: Caller-chosen slot

        Returns:
            RoyaltyResult carrying True on success
        """
        lookup = self.ledger.require_creator(ctx, agreement_id)
        if not lookup.ok:
            return self._reject("add_recipient", ctx, lookup.error)
        if recipient == ctx.caller:
            return self._reject("add_recipient", ctx, RoyaltyErrorKind.INVALID_RECIPIENT)
        if percentage <= 0 or percentage > BASIS_POINTS:
            return self._reject("add_recipient", ctx, RoyaltyErrorKind.INVALID_PERCENTAGE)

        self.recipients[(agreement_id, slot_index)] = RoyaltyRecipient(
            recipient=recipient, percentage=percentage
        )
        logger.info(
            "Recipient %s set at slot %d of agreement %d (%d bps)",
            recipient, slot_index, agreement_id, percentage,
        )
        return RoyaltyResult.success(True)

    def add_royalty_tier(
        self,
        ctx: CallContext,
        agreement_id: int,
        tier_index: int,
        threshold: int,
        rate: int,
    ) -> RoyaltyResult:
        """Store a rate tier for an agreement. Tier indexes start at 1."""
        lookup = self.ledger.require_creator(ctx, agreement_id)
        if not lookup.ok:
            return self._reject("add_tier", ctx, lookup.error)
        if tier_index <= 0:
            return self._reject("add_tier", ctx, RoyaltyErrorKind.INVALID_TIER)
        if threshold <= 0:
            return self._reject("add_tier", ctx, RoyaltyErrorKind.INVALID_THRESHOLD)
        if not self.ledger.parameters.get_parameters().rate_in_bounds(rate):
            return self._reject("add_tier", ctx, RoyaltyErrorKind.INVALID_RATE)

        self.tiers[(agreement_id, tier_index)] = RoyaltyTier(threshold=threshold, rate=rate)
        logger.info(
            "Tier %d of agreement %d set: threshold=%d, rate=%d bps",
            tier_index, agreement_id, threshold, rate,
        )
        return RoyaltyResult.success(True)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_recipient(self, agreement_id: int, slot_index: int) -> RoyaltyRecipient | None:
        return self.recipients.get((agreement_id, slot_index))

    def get_tier(self, agreement_id: int, tier_index: int) -> RoyaltyTier | None:
        return self.tiers.get((agreement_id, tier_index))

    def recipients_for(self, agreement_id: int) -> list[tuple[int, RoyaltyRecipient]]:
        """All (slot, recipient) pairs of an agreement, ordered by slot."""
        return sorted(
            [
                (slot, record)
                for (owner_id, slot), record in self.recipients.items()
                if owner_id == agreement_id
            ],
            key=lambda pair: pair[0],
        )

    def tiers_for(self, agreement_id: int) -> list[tuple[int, RoyaltyTier]]:
        """All (tier_index, tier) pairs of an agreement, ordered by index."""
        return sorted(
            [
                (index, record)
                for (owner_id, index), record in self.tiers.items()
                if owner_id == agreement_id
            ],
            key=lambda pair: pair[0],
        )

    def total_recipient_percentage(self, agreement_id: int) -> int:
        """Sum of recipient shares; may exceed 10000 since it is not capped."""
        return sum(record.percentage for _, record in self.recipients_for(agreement_id))

    def _reject(self, operation: str, ctx: CallContext, error: RoyaltyErrorKind) -> RoyaltyResult:
        logger.debug("Rejected %s by %s: %s", operation, ctx.caller, error.value)
        return RoyaltyResult.failure(error)
