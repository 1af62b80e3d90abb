"""
Royalty Ledger - Configuration

Boot-time defaults for the global parameters, read from the environment.
Call `load_dotenv()` before `LedgerConfig.from_env()` to honor a `.env` file.

Environment variables:
    ROYALTY_MAX_AGREEMENTS  Hard cap on agreements ever created (default 1000)
    ROYALTY_MIN_RATE        Lower rate bound in basis points (default 100)
    ROYALTY_MAX_RATE        Upper rate bound in basis points (default 2000)
    ROYALTY_PAYMENT_ASSET   Asset reference used for payouts
    ROYALTY_AUTHORITY       Optional authority principal applied at boot
"""

import os
from dataclasses import dataclass
from typing import Any

# Basis points: 10000 = 100%
BASIS_POINTS = 10000

DEFAULT_MAX_AGREEMENTS = 1000
DEFAULT_MIN_RATE = 100  # 1%
DEFAULT_MAX_RATE = 2000  # 20%
DEFAULT_PAYMENT_ASSET = "SP000000000000000000002Q6VF78.payments"


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class LedgerConfig:
    """Initial values for a fresh ledger."""

    max_agreements: int = DEFAULT_MAX_AGREEMENTS
    min_rate: int = DEFAULT_MIN_RATE
    max_rate: int = DEFAULT_MAX_RATE
    payment_asset: str = DEFAULT_PAYMENT_ASSET
    authority: str | None = None

    def __post_init__(self):
        if self.max_agreements < 0:
            raise ValueError("max_agreements must be non-negative")
        if not 0 <= self.min_rate <= BASIS_POINTS or not 0 <= self.max_rate <= BASIS_POINTS:
            raise ValueError(f"Rate bounds must lie within 0-{BASIS_POINTS} basis points")
        if self.min_rate >= self.max_rate:
            raise ValueError(
                f"min_rate ({self.min_rate}) must be below max_rate ({self.max_rate})"
            )

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        """Build a config from ROYALTY_* environment variables."""
        return cls(
            max_agreements=_int_from_env("ROYALTY_MAX_AGREEMENTS", DEFAULT_MAX_AGREEMENTS),
            min_rate=_int_from_env("ROYALTY_MIN_RATE", DEFAULT_MIN_RATE),
            max_rate=_int_from_env("ROYALTY_MAX_RATE", DEFAULT_MAX_RATE),
            payment_asset=os.getenv("ROYALTY_PAYMENT_ASSET") or DEFAULT_PAYMENT_ASSET,
            authority=os.getenv("ROYALTY_AUTHORITY") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "max_agreements": self.max_agreements,
            "min_rate": self.min_rate,
            "max_rate": self.max_rate,
            "payment_asset": self.payment_asset,
            "authority": self.authority,
        }
