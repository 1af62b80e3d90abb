"""
Royalty Ledger - Parameter Store

Holds the global configuration every other component validates against:
rate bounds, the agreement cap, the authority identity and the payment asset.

The authority is a one-shot field: it starts empty and may be set exactly
once. While it is empty, every authority-gated setter is refused.
"""

import logging
from dataclasses import dataclass
from typing import Any

from call_context import CallContext
from royalty_config import BASIS_POINTS, LedgerConfig
from royalty_errors import RoyaltyErrorKind, RoyaltyResult

logger = logging.getLogger(__name__)


@dataclass
class GlobalParameters:
    """Process-wide ledger parameters."""

    next_agreement_id: int
    max_agreements: int
    min_rate: int
    max_rate: int
    payment_asset: str
    authority: str | None = None

    def rate_in_bounds(self, rate: int) -> bool:
        """Inclusive check against the global rate band."""
        return self.min_rate <= rate <= self.max_rate

    def has_capacity(self) -> bool:
        return self.next_agreement_id < self.max_agreements

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "next_agreement_id": self.next_agreement_id,
            "max_agreements": self.max_agreements,
            "min_rate": self.min_rate,
            "max_rate": self.max_rate,
            "payment_asset": self.payment_asset,
            "authority": self.authority,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GlobalParameters":
        return cls(
            next_agreement_id=int(data["next_agreement_id"]),
            max_agreements=int(data["max_agreements"]),
            min_rate=int(data["min_rate"]),
            max_rate=int(data["max_rate"]),
            payment_asset=data["payment_asset"],
            authority=data.get("authority"),
        )


class ParameterStore:
    """
    Owner of the GlobalParameters instance.

    Components receive the store at construction time instead of reaching for
    module-level state.
    """

    def __init__(self, config: LedgerConfig | None = None):
        config = config or LedgerConfig()
        self.params = GlobalParameters(
            next_agreement_id=0,
            max_agreements=config.max_agreements,
            min_rate=config.min_rate,
            max_rate=config.max_rate,
            payment_asset=config.payment_asset,
        )

    @property
    def authority_set(self) -> bool:
        return self.params.authority is not None

    def get_parameters(self) -> GlobalParameters:
        return self.params

    def set_authority(self, ctx: CallContext, principal: str) -> RoyaltyResult:
        """Set the authority principal. Only the first call succeeds."""
        if self.params.authority is not None:
            logger.debug("Authority already set, rejecting %s", ctx.caller)
            return RoyaltyResult.failure(RoyaltyErrorKind.ALREADY_SET)

        self.params.authority = principal
        logger.info("Authority set to %s by %s", principal, ctx.caller)
        return RoyaltyResult.success(True)

    def set_min_rate(self, ctx: CallContext, value: int) -> RoyaltyResult:
        """Lower the floor of the rate band; must stay below max_rate."""
        if not self.authority_set:
            return RoyaltyResult.failure(RoyaltyErrorKind.NOT_AUTHORIZED)
        if value < 0 or value >= self.params.max_rate:
            return RoyaltyResult.failure(RoyaltyErrorKind.INVALID_RATE_BOUND)

        self.params.min_rate = value
        logger.info("Minimum royalty rate set to %d by %s", value, ctx.caller)
        return RoyaltyResult.success(True)

    def set_max_rate(self, ctx: CallContext, value: int) -> RoyaltyResult:
        """Raise the ceiling of the rate band; must stay above min_rate."""
        if not self.authority_set:
            return RoyaltyResult.failure(RoyaltyErrorKind.NOT_AUTHORIZED)
        if value <= self.params.min_rate or value > BASIS_POINTS:
            return RoyaltyResult.failure(RoyaltyErrorKind.INVALID_RATE_BOUND)

        self.params.max_rate = value
        logger.info("Maximum royalty rate set to %d by %s", value, ctx.caller)
        return RoyaltyResult.success(True)

    def set_payment_asset(self, ctx: CallContext, asset: str) -> RoyaltyResult:
        if not self.authority_set:
            return RoyaltyResult.failure(RoyaltyErrorKind.NOT_AUTHORIZED)

        self.params.payment_asset = asset
        logger.info("Payment asset set to %s by %s", asset, ctx.caller)
        return RoyaltyResult.success(True)

    def allocate_agreement_id(self) -> int:
        """Hand out the next id and advance the counter. Ids are never reused."""
        agreement_id = self.params.next_agreement_id
        self.params.next_agreement_id += 1
        return agreement_id
