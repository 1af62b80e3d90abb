"""
Shared state for the royalty ledger API.

Holds the RoyaltyContract instance all blueprints operate on, plus the
in-memory balance ledger that settles emitted transfers. Both are built from
the environment when first used and can be swapped out by tests.
"""

import logging
import threading

from royalty_config import LedgerConfig
from royalty_contract import RoyaltyContract
from settlement import BalanceLedger

logger = logging.getLogger(__name__)

# The API serializes calls so the ledger sees one writer at a time. Reads take
# the lock too; reentrant so routes holding it can still call get_contract().
contract_lock = threading.RLock()

contract: RoyaltyContract | None = None
balances: BalanceLedger = BalanceLedger()


def get_contract() -> RoyaltyContract:
    global contract
    with contract_lock:
        if contract is None:
            contract = RoyaltyContract.from_config(LedgerConfig.from_env())
            logger.info("Royalty contract initialized from environment")
        return contract


def reset_state(new_contract: RoyaltyContract | None = None) -> RoyaltyContract:
    """Replace the shared contract and balances (used by tests and the CLI)."""
    global contract, balances
    with contract_lock:
        if new_contract is None:
            new_contract = RoyaltyContract.from_config(LedgerConfig.from_env())
        contract = new_contract
        balances = BalanceLedger()
        return contract
