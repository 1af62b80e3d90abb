"""
Royalty Ledger - Settlement

Reference collaborators on the host side of the transfer boundary:

- TransferRecorder: a transfer sink that queues emitted instructions
- BalanceLedger: an in-memory asset ledger that applies them

A real deployment replaces BalanceLedger with the chain's own asset ledger.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from distribution import TransferInstruction

logger = logging.getLogger(__name__)


class TransferRecorder:
    """Transfer sink that keeps every instruction it receives, in order."""

    def __init__(self):
        self.transfers: list[TransferInstruction] = []

    def __call__(self, instruction: TransferInstruction) -> None:
        self.transfers.append(instruction)

    def drain(self) -> list[TransferInstruction]:
        """Return the queued instructions and clear the queue."""
        pending, self.transfers = self.transfers, []
        return pending

    def __len__(self) -> int:
        return len(self.transfers)


class BalanceLedger:
    """
    Per-principal balances of the payment asset.

    Applies transfer instructions atomically: an instruction the sender
    cannot cover is refused without touching any balance.
    """

    def __init__(self, initial_balances: dict[str, int] | None = None):
        self.balances: dict[str, int] = dict(initial_balances or {})
        self.history: list[dict[str, Any]] = []

    def balance_of(self, principal: str) -> int:
        return self.balances.get(principal, 0)

    def mint(self, principal: str, amount: int) -> tuple[bool, dict[str, Any]]:
        """Credit a principal out of thin air (test and demo funding)."""
        if amount <= 0:
            return False, {"error": "Mint amount must be positive"}
        self.balances[principal] = self.balance_of(principal) + amount
        return True, {"principal": principal, "new_balance": self.balances[principal]}

    def apply(self, instruction: TransferInstruction) -> tuple[bool, dict[str, Any]]:
        """
        Apply one transfer instruction.

        Returns:
            Tuple of (success, result)
        """
        if instruction.amount < 0:
            return False, {"error": "Transfer amount cannot be negative"}

        if instruction.amount == 0 or instruction.sender == instruction.recipient:
            # Nothing moves; still recorded for the audit trail
            self._record(instruction, "noop")
            return True, {"status": "noop", "amount": instruction.amount}

        sender_balance = self.balance_of(instruction.sender)
        if sender_balance < instruction.amount:
            logger.warning(
                "Insufficient balance for %s: has %d, needs %d",
                instruction.sender, sender_balance, instruction.amount,
            )
            return False, {
                "error": "Insufficient balance",
                "available": sender_balance,
                "required": instruction.amount,
            }

        self.balances[instruction.sender] = sender_balance - instruction.amount
        self.balances[instruction.recipient] = self.balance_of(instruction.recipient) + instruction.amount
        self._record(instruction, "applied")

        return True, {
            "status": "applied",
            "amount": instruction.amount,
            "sender_balance": self.balances[instruction.sender],
            "recipient_balance": self.balances[instruction.recipient],
        }

    def apply_all(self, instructions: list[TransferInstruction]) -> list[tuple[bool, dict[str, Any]]]:
        return [self.apply(instruction) for instruction in instructions]

    def _record(self, instruction: TransferInstruction, status: str) -> None:
        self.history.append({
            **instruction.to_dict(),
            "status": status,
            "applied_at": datetime.now(UTC).isoformat(),
        })
