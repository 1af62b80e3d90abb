"""
Royalty Ledger - Update Audit Log

Keeps the most recent amendment of each agreement. A new update for the same
agreement replaces the previous record; no history is retained.
"""

import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoyaltyUpdate:
    """Who amended an agreement, to what, and at which height."""

    update_rate: int
    update_expiration: int
    update_timestamp: int  # block height of the update
    updater: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "update_rate": self.update_rate,
            "update_expiration": self.update_expiration,
            "update_timestamp": self.update_timestamp,
            "updater": self.updater,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RoyaltyUpdate":
        return cls(
            update_rate=int(data["update_rate"]),
            update_expiration=int(data["update_expiration"]),
            update_timestamp=int(data["update_timestamp"]),
            updater=data["updater"],
        )


class UpdateAuditLog:
    """Latest RoyaltyUpdate per agreement id."""

    def __init__(self):
        self.updates: dict[int, RoyaltyUpdate] = {}

    def record(self, agreement_id: int, update: RoyaltyUpdate) -> None:
        if agreement_id in self.updates:
            logger.debug("Replacing audit record for agreement %d", agreement_id)
        self.updates[agreement_id] = update

    def get_update(self, agreement_id: int) -> RoyaltyUpdate | None:
        return self.updates.get(agreement_id)

    def __len__(self) -> int:
        return len(self.updates)
