"""
Royalty Ledger - Contract Facade

Wires the Parameter Store, Royalty Ledger, Recipient & Tier Registry,
Distribution Engine and Update Audit Log into one object that a host drives
call by call.

Each call takes a CallContext (caller identity, block height) supplied by
the host and returns a RoyaltyResult. Successful mutations are appended to
an event trail; every call is counted in the metrics collector.

Usage:
    contract = RoyaltyContract.from_config(LedgerConfig())
    ctx = CallContext(caller="ST1TEST", block_height=0)
    contract.set_authority(ctx, "ST2TEST")
    result = contract.create_royalty(ctx, 1, 500, 100, "STX", 100, 2000)
    payout = contract.distribute_royalty(ctx.at(50), result.value, 10000)
"""

import logging
import secrets
from datetime import UTC, datetime
from typing import Any

from audit_log import RoyaltyUpdate, UpdateAuditLog
from call_context import CallContext
from distribution import DistributionEngine, TransferSink
from monitoring.logging import LoggingContext
from monitoring.metrics import MetricsCollector
from monitoring.metrics import metrics as default_metrics
from parameter_store import GlobalParameters, ParameterStore
from royalty_config import LedgerConfig
from royalty_errors import RoyaltyResult
from royalty_ledger import Currency, RoyaltyAgreement, RoyaltyLedger
from royalty_registry import RecipientTierRegistry, RoyaltyRecipient, RoyaltyTier
from settlement import TransferRecorder

logger = logging.getLogger(__name__)


class RoyaltyContract:
    """Single-writer royalty ledger driven by a host."""

    def __init__(
        self,
        parameters: ParameterStore | None = None,
        transfer_sink: TransferSink | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the contract.

        Args:
            parameters: Global parameter store; defaults from LedgerConfig()
            transfer_sink: Receiver of emitted transfers; a TransferRecorder if omitted
            metrics: Metrics collector; the process-wide collector if omitted
        """
        self.parameters = parameters if parameters is not None else ParameterStore()
        self.audit_log = UpdateAuditLog()
        self.ledger = RoyaltyLedger(self.parameters, self.audit_log)
        self.registry = RecipientTierRegistry(self.ledger)

        self.transfers = TransferRecorder()
        self.engine = DistributionEngine(
            self.ledger, transfer_sink if transfer_sink is not None else self.transfers
        )

        self.metrics = metrics if metrics is not None else default_metrics
        self.events: list[dict[str, Any]] = []

    @classmethod
    def from_config(cls, config: LedgerConfig, **kwargs) -> "RoyaltyContract":
        """
        Build a contract from boot configuration.

        A configured authority is applied once through set_authority, exactly
        as a first on-chain call would.
        """
        contract = cls(parameters=ParameterStore(config), **kwargs)
        if config.authority:
            contract.set_authority(CallContext(caller=config.authority), config.authority)
        return contract

    # =========================================================================
    # Parameter Store
    # =========================================================================

    def set_authority(self, ctx: CallContext, principal: str) -> RoyaltyResult:
        with LoggingContext(caller=ctx.caller, block_height=ctx.block_height):
            result = self.parameters.set_authority(ctx, principal)
        return self._track("set_authority", ctx, result, {"authority": principal})

    def set_min_rate(self, ctx: CallContext, value: int) -> RoyaltyResult:
        with LoggingContext(caller=ctx.caller, block_height=ctx.block_height):
            result = self.parameters.set_min_rate(ctx, value)
        return self._track("set_min_rate", ctx, result, {"min_rate": value})

    def set_max_rate(self, ctx: CallContext, value: int) -> RoyaltyResult:
        with LoggingContext(caller=ctx.caller, block_height=ctx.block_height):
            result = self.parameters.set_max_rate(ctx, value)
        return self._track("set_max_rate", ctx, result, {"max_rate": value})

    def set_payment_asset(self, ctx: CallContext, asset: str) -> RoyaltyResult:
        with LoggingContext(caller=ctx.caller, block_height=ctx.block_height):
            result = self.parameters.set_payment_asset(ctx, asset)
        return self._track("set_payment_asset", ctx, result, {"payment_asset": asset})

    def get_parameters(self) -> GlobalParameters:
        return self.parameters.get_parameters()

    # =========================================================================
    # Royalty Ledger
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
        with LoggingContext(caller=ctx.caller, block_height=ctx.block_height):
            result = self.ledger.create_royalty(
                ctx, asset_id, rate, expiration, currency, min_rate, max_rate
            )
        if result.ok:
            self.metrics.set_gauge("agreements", len(self.ledger.agreements))
        return self._track("create_royalty", ctx, result, {
            "agreement_id": result.value,
            "asset_id": asset_id,
            "rate": rate,
            "expiration": expiration,
        })

    def update_royalty(
        self,
        ctx: CallContext,
        agreement_id: int,
        new_rate: int,
        new_expiration: int,
    ) -> RoyaltyResult:
        with LoggingContext(caller=ctx.caller, block_height=ctx.block_height, agreement_id=agreement_id):
            result = self.ledger.update_royalty(ctx, agreement_id, new_rate, new_expiration)
        return self._track("update_royalty", ctx, result, {
            "agreement_id": agreement_id,
            "rate": new_rate,
            "expiration": new_expiration,
        })

    def get_royalty(self, agreement_id: int) -> RoyaltyResult:
        return self.ledger.get_royalty(agreement_id)

    def get_royalty_count(self) -> RoyaltyResult:
        return self.ledger.get_royalty_count()

    def get_royalty_update(self, agreement_id: int) -> RoyaltyUpdate | None:
        return self.audit_log.get_update(agreement_id)

    # =========================================================================
    # Recipient & Tier Registry
    # =========================================================================

    def add_royalty_recipient(
        self,
        ctx: CallContext,
        agreement_id: int,
        recipient: str,
        percentage: int,
        slot_index: int,
    ) -> RoyaltyResult:
        with LoggingContext(caller=ctx.caller, block_height=ctx.block_height, agreement_id=agreement_id):
            result = self.registry.add_royalty_recipient(
                ctx, agreement_id, recipient, percentage, slot_index
            )
        return self._track("add_royalty_recipient", ctx, result, {
            "agreement_id": agreement_id,
            "recipient": recipient,
            "percentage": percentage,
            "slot_index": slot_index,
        })

    def add_royalty_tier(
        self,
        ctx: CallContext,
        agreement_id: int,
        tier_index: int,
        threshold: int,
        rate: int,
    ) -> RoyaltyResult:
        with LoggingContext(caller=ctx.caller, block_height=ctx.block_height, agreement_id=agreement_id):
            result = self.registry.add_royalty_tier(ctx, agreement_id, tier_index, threshold, rate)
        return self._track("add_royalty_tier", ctx, result, {
            "agreement_id": agreement_id,
            "tier_index": tier_index,
            "threshold": threshold,
            "rate": rate,
        })

    def get_recipient(self, agreement_id: int, slot_index: int) -> RoyaltyRecipient | None:
        return self.registry.get_recipient(agreement_id, slot_index)

    def get_tier(self, agreement_id: int, tier_index: int) -> RoyaltyTier | None:
        return self.registry.get_tier(agreement_id, tier_index)

    # =========================================================================
    # Distribution Engine
    # =========================================================================

    def distribute_royalty(self, ctx: CallContext, agreement_id: int, sale_amount: int) -> RoyaltyResult:
        with LoggingContext(caller=ctx.caller, block_height=ctx.block_height, agreement_id=agreement_id):
            result = self.engine.distribute_royalty(ctx, agreement_id, sale_amount)
        return self._track("distribute_royalty", ctx, result, {
            "agreement_id": agreement_id,
            "sale_amount": sale_amount,
            "payout": result.value,
        })

    # =========================================================================
    # State shape
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """The five maps of ledger state as plain data."""
        return {
            "parameters": self.parameters.get_parameters().to_dict(),
            "agreements": {
                str(agreement_id): agreement.to_dict()
                for agreement_id, agreement in self.ledger.agreements.items()
            },
            "recipients": [
                {"agreement_id": agreement_id, "slot_index": slot, **record.to_dict()}
                for (agreement_id, slot), record in self.registry.recipients.items()
            ],
            "tiers": [
                {"agreement_id": agreement_id, "tier_index": index, **record.to_dict()}
                for (agreement_id, index), record in self.registry.tiers.items()
            ],
            "updates": {
                str(agreement_id): update.to_dict()
                for agreement_id, update in self.audit_log.updates.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs) -> "RoyaltyContract":
        """Rebuild a contract from the output of to_dict()."""
        contract = cls(**kwargs)
        contract.parameters.params = GlobalParameters.from_dict(data["parameters"])
        for raw in data.get("agreements", {}).values():
            agreement = RoyaltyAgreement.from_dict(raw)
            contract.ledger.agreements[agreement.id] = agreement
        for raw in data.get("recipients", []):
            key = (int(raw["agreement_id"]), int(raw["slot_index"]))
            contract.registry.recipients[key] = RoyaltyRecipient(
                recipient=raw["recipient"], percentage=int(raw["percentage"])
            )
        for raw in data.get("tiers", []):
            key = (int(raw["agreement_id"]), int(raw["tier_index"]))
            contract.registry.tiers[key] = RoyaltyTier(
                threshold=int(raw["threshold"]), rate=int(raw["rate"])
            )
        for agreement_id, raw in data.get("updates", {}).items():
            contract.audit_log.record(int(agreement_id), RoyaltyUpdate.from_dict(raw))
        return contract

    # =========================================================================
    # Internal
    # =========================================================================

    def _track(
        self,
        operation: str,
        ctx: CallContext,
        result: RoyaltyResult,
        data: dict[str, Any],
    ) -> RoyaltyResult:
        outcome = "ok" if result.ok else result.error.value
        self.metrics.increment("operations_total", labels={"operation": operation, "outcome": outcome})
        if result.ok:
            self._emit_event(operation, ctx, data)
        return result

    def _emit_event(self, event_type: str, ctx: CallContext, data: dict[str, Any]) -> None:
        self.events.append({
            "event_id": f"evt_{secrets.token_hex(8)}",
            "event_type": event_type,
            "caller": ctx.caller,
            "block_height": ctx.block_height,
            "timestamp": datetime.now(UTC).isoformat(),
            "data": data,
        })
