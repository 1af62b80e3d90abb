"""
Tests for the Distribution Engine (src/distribution.py)

Tests cover:
- Payout arithmetic (integer floor)
- Exclusive expiration boundary
- Sale amount validation
- Transfer instruction emission
"""

import pytest

from call_context import CallContext
from conftest import CREATOR, RECIPIENT
from distribution import DistributionEngine, TransferInstruction, compute_payout
from royalty_config import DEFAULT_PAYMENT_ASSET
from royalty_errors import RoyaltyErrorKind
from settlement import TransferRecorder


@pytest.fixture
def recorder():
    return TransferRecorder()


@pytest.fixture
def engine(ledger, ctx, recorder):
    ledger.create_royalty(ctx, 1, 1000, 100, "STX", 100, 2000)
    return DistributionEngine(ledger, recorder)


class TestComputePayout:

    @pytest.mark.parametrize("sale,rate,expected", [
        (10000, 1000, 1000),
        (10000, 500, 500),
        (3, 500, 0),
        (19999, 1, 1),
        (9999, 1, 0),
        (12345, 2000, 2469),
    ])
    def test_floor(self, sale, rate, expected):
        assert compute_payout(sale, rate) == expected

    def test_large_amounts_exact(self):
        """No float rounding on large integers."""
        assert compute_payout(10**30 + 7, 1234) == ((10**30 + 7) * 1234) // 10000


class TestDistributeRoyalty:

    def test_distribute_success(self, engine, recorder):
        ctx = CallContext(caller=CREATOR, block_height=50)
        result = engine.distribute_royalty(ctx, 0, 10000)

        assert result.ok is True
        assert result.value == 1000
        assert recorder.transfers == [
            TransferInstruction(
                amount=1000,
                sender=CREATOR,
                recipient=CREATOR,
                asset=DEFAULT_PAYMENT_ASSET,
                agreement_id=0,
            )
        ]

    def test_buyer_pays_creator(self, engine, recorder):
        result = engine.distribute_royalty(CallContext(caller=RECIPIENT, block_height=10), 0, 500)

        assert result.value == 50
        assert recorder.transfers[0].sender == RECIPIENT
        assert recorder.transfers[0].recipient == CREATOR

    def test_zero_payout_still_emitted(self, engine, recorder):
        result = engine.distribute_royalty(CallContext(caller=RECIPIENT), 0, 3)

        assert result.value == 0
        assert recorder.transfers[0].amount == 0

    def test_not_found(self, engine, recorder, ctx):
        assert engine.distribute_royalty(ctx, 42, 10000).error == RoyaltyErrorKind.NOT_FOUND
        assert len(recorder) == 0

    @pytest.mark.parametrize("height,expired", [(0, False), (99, False), (100, True), (150, True)])
    def test_expiration_is_exclusive(self, engine, height, expired):
        result = engine.distribute_royalty(CallContext(caller=CREATOR, block_height=height), 0, 10000)

        if expired:
            assert result.error == RoyaltyErrorKind.EXPIRED
        else:
            assert result.ok is True

    @pytest.mark.parametrize("amount", [0, -1])
    def test_invalid_sale_amount(self, engine, recorder, ctx, amount):
        assert engine.distribute_royalty(ctx, 0, amount).error == RoyaltyErrorKind.INVALID_SALE_AMOUNT
        assert len(recorder) == 0

    def test_expired_checked_before_amount(self, engine):
        result = engine.distribute_royalty(CallContext(caller=CREATOR, block_height=100), 0, 0)

        assert result.error == RoyaltyErrorKind.EXPIRED

    def test_ignores_recipients_and_tiers(self, ledger, engine, ctx):
        """Payout uses the flat rate only."""
        from royalty_registry import RecipientTierRegistry

        registry = RecipientTierRegistry(ledger)
        registry.add_royalty_recipient(ctx, 0, RECIPIENT, 5000, 0)
        registry.add_royalty_tier(ctx, 0, 1, 1, 2000)

        assert engine.distribute_royalty(ctx, 0, 10000).value == 1000

    def test_uses_current_payment_asset(self, engine, recorder, ledger, ctx):
        ledger.parameters.set_payment_asset(ctx, "SP999.other")
        engine.distribute_royalty(ctx, 0, 10000)

        assert recorder.transfers[0].asset == "SP999.other"

    def test_uses_updated_rate(self, engine, ledger, ctx):
        ledger.update_royalty(ctx, 0, 250, 100)

        assert engine.distribute_royalty(ctx, 0, 10000).value == 250


class TestTransferInstruction:

    def test_to_dict_uses_from_to(self):
        instruction = TransferInstruction(amount=5, sender="A", recipient="B", asset="X", agreement_id=0)

        assert instruction.to_dict() == {
            "amount": 5, "from": "A", "to": "B", "asset": "X", "agreement_id": 0,
        }
