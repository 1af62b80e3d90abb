"""
Royalty Ledger - Distribution Engine

Turns a sale amount into a payout for one agreement and emits a transfer
instruction for the host to execute. The engine never moves funds itself.

Payout = floor(sale_amount * rate / 10000), computed with integers only.
The payout always goes to the agreement creator at the flat agreement rate;
recipients and tiers are not consulted.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from call_context import CallContext
from royalty_config import BASIS_POINTS
from royalty_errors import RoyaltyErrorKind, RoyaltyResult
from royalty_ledger import RoyaltyLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferInstruction:
    """A funds movement the host must apply to the asset ledger."""

    amount: int
    sender: str
    recipient: str
    asset: str
    agreement_id: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "amount": self.amount,
            "from": self.sender,
            "to": self.recipient,
            "asset": self.asset,
            "agreement_id": self.agreement_id,
        }


TransferSink = Callable[[TransferInstruction], None]


def compute_payout(sale_amount: int, rate: int) -> int:
    """Royalty owed on a sale, floored to a whole unit."""
    return (sale_amount * rate) // BASIS_POINTS


class DistributionEngine:
    """Computes payouts against the agreements of a RoyaltyLedger."""

    def __init__(self, ledger: RoyaltyLedger, transfer_sink: TransferSink):
        """
        Initialize the engine.

        Args:
            ledger: Ledger holding the agreements
            transfer_sink: Callable receiving every emitted TransferInstruction
        """
        self.ledger = ledger
        self.transfer_sink = transfer_sink

    def distribute_royalty(
        self,
        ctx: CallContext,
        agreement_id: int,
        sale_amount: int,
    ) -> RoyaltyResult:
        """
        Compute and emit the royalty payout for a sale.

        The caller pays; the agreement creator receives. Distribution succeeds
        only while ctx.block_height is strictly below the expiration.

        Returns:
            RoyaltyResult carrying the payout amount
        """
        agreement = self.ledger.agreements.get(agreement_id)
        if agreement is None:
            return self._reject(ctx, RoyaltyErrorKind.NOT_FOUND)
        if agreement.is_expired(ctx.block_height):
            return self._reject(ctx, RoyaltyErrorKind.EXPIRED)
        if sale_amount <= 0:
            return self._reject(ctx, RoyaltyErrorKind.INVALID_SALE_AMOUNT)

        payout = compute_payout(sale_amount, agreement.rate)
        instruction = TransferInstruction(
            amount=payout,
            sender=ctx.caller,
            recipient=agreement.creator,
            asset=self.ledger.parameters.get_parameters().payment_asset,
            agreement_id=agreement_id,
        )
        self.transfer_sink(instruction)

        logger.info(
            "Distributed %d on sale of %d for agreement %d (%s -> %s)",
            payout, sale_amount, agreement_id, ctx.caller, agreement.creator,
        )
        return RoyaltyResult.success(payout)

    def _reject(self, ctx: CallContext, error: RoyaltyErrorKind) -> RoyaltyResult:
        logger.debug(
            "Rejected distribution by %s at height %d: %s",
            ctx.caller, ctx.block_height, error.value,
        )
        return RoyaltyResult.failure(error)
