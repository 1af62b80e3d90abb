"""
Per-call inputs supplied by the hosting environment.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class CallContext:
    """Identity of the caller and the block height the call executes at."""

    caller: str
    block_height: int = 0

    def __post_init__(self):
        if not self.caller:
            raise ValueError("caller is required")
        if self.block_height < 0:
            raise ValueError("block_height must be non-negative")

    def at(self, block_height: int) -> "CallContext":
        """Same caller at another height."""
        return CallContext(caller=self.caller, block_height=block_height)

    def as_caller(self, caller: str) -> "CallContext":
        """Another caller at the same height."""
        return CallContext(caller=caller, block_height=self.block_height)
