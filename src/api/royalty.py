"""
Royalty Ledger - HTTP Blueprint

REST endpoints over the RoyaltyContract. The host identity is part of every
mutating request body:

    {"caller": "ST1TEST", "block_height": 50, ...}

Provides access to:
- Global parameters (authority, rate bounds, payment asset)
- Agreement creation, amendment and lookup
- Recipients and tiers
- Distribution, with optional settlement against the in-memory balances
"""

from flask import Blueprint, jsonify, request

from . import state
from .utils import parse_call_context, require_api_key, result_response, validate_json_schema

royalty_bp = Blueprint("royalty", __name__)


def _read_payload(required: dict, optional: dict | None = None):
    """Parse the body into (data, ctx) or return an error response as the third item."""
    data = request.get_json(silent=True) or {}
    ctx, error = parse_call_context(data)
    if error:
        return None, None, (jsonify({"error": error}), 400)
    is_valid, error = validate_json_schema(data, required, optional)
    if not is_valid:
        return None, None, (jsonify({"error": error}), 400)
    return data, ctx, None


# =============================================================================
# Global Parameters
# =============================================================================


@royalty_bp.route("/royalty/parameters", methods=["GET"])
def get_parameters():
    """Current global parameters."""
    with state.contract_lock:
        params = state.get_contract().get_parameters().to_dict()
    return jsonify(params)


@royalty_bp.route("/royalty/parameters/authority", methods=["POST"])
@require_api_key
def set_authority():
    """
    Set the authority principal (first writer wins).

    Request body:
        {"caller": "...", "block_height": 0, "authority": "ST2TEST"}
    """
    data, ctx, error = _read_payload({"authority": str})
    if error:
        return error
    with state.contract_lock:
        result = state.get_contract().set_authority(ctx, data["authority"])
    return result_response(result)


@royalty_bp.route("/royalty/parameters/min-rate", methods=["POST"])
@require_api_key
def set_min_rate():
    """Request body: {"caller": "...", "block_height": 0, "value": 200}"""
    data, ctx, error = _read_payload({"value": int})
    if error:
        return error
    with state.contract_lock:
        result = state.get_contract().set_min_rate(ctx, data["value"])
    return result_response(result)


@royalty_bp.route("/royalty/parameters/max-rate", methods=["POST"])
@require_api_key
def set_max_rate():
    """Request body: {"caller": "...", "block_height": 0, "value": 3000}"""
    data, ctx, error = _read_payload({"value": int})
    if error:
        return error
    with state.contract_lock:
        result = state.get_contract().set_max_rate(ctx, data["value"])
    return result_response(result)


@royalty_bp.route("/royalty/parameters/payment-asset", methods=["POST"])
@require_api_key
def set_payment_asset():
    """Request body: {"caller": "...", "block_height": 0, "asset": "SP...payments"}"""
    data, ctx, error = _read_payload({"asset": str})
    if error:
        return error
    with state.contract_lock:
        result = state.get_contract().set_payment_asset(ctx, data["asset"])
    return result_response(result)


# =============================================================================
# Agreements
# =============================================================================


@royalty_bp.route("/royalty/agreements", methods=["POST"])
@require_api_key
def create_royalty():
    """
    Create a royalty agreement owned by the caller.

    Request body:
        {
            "caller": "ST1TEST",
            "block_height": 0,
            "asset_id": 1,
            "rate": 500,              // basis points
            "expiration": 100,        // block height
            "currency": "STX",        // STX or CURA
            "min_rate": 100,
            "max_rate": 2000
        }

    Returns:
        The new agreement id (201)
    """
    data, ctx, error = _read_payload({
        "asset_id": int,
        "rate": int,
        "expiration": int,
        "currency": str,
        "min_rate": int,
        "max_rate": int,
    })
    if error:
        return error

    with state.contract_lock:
        result = state.get_contract().create_royalty(
            ctx,
            asset_id=data["asset_id"],
            rate=data["rate"],
            expiration=data["expiration"],
            currency=data["currency"],
            min_rate=data["min_rate"],
            max_rate=data["max_rate"],
        )
    return result_response(result, success_status=201)


@royalty_bp.route("/royalty/agreements/<int:agreement_id>", methods=["GET"])
def get_royalty(agreement_id):
    """Agreement details plus its recipients, tiers and latest update."""
    with state.contract_lock:
        contract = state.get_contract()
        result = contract.get_royalty(agreement_id)
        if not result.ok:
            return result_response(result)

        update = contract.get_royalty_update(agreement_id)
        details = {
            **result.value.to_dict(),
            "recipients": [
                {"slot_index": slot, **record.to_dict()}
                for slot, record in contract.registry.recipients_for(agreement_id)
            ],
            "tiers": [
                {"tier_index": index, **record.to_dict()}
                for index, record in contract.registry.tiers_for(agreement_id)
            ],
            "last_update": update.to_dict() if update else None,
        }
    return jsonify(details)


@royalty_bp.route("/royalty/agreements/<int:agreement_id>", methods=["PATCH"])
@require_api_key
def update_royalty(agreement_id):
    """
    Amend rate and expiration (creator only).

    Request body:
        {"caller": "...", "block_height": 10, "rate": 600, "expiration": 200}
    """
    data, ctx, error = _read_payload({"rate": int, "expiration": int})
    if error:
        return error
    with state.contract_lock:
        result = state.get_contract().update_royalty(
            ctx, agreement_id, data["rate"], data["expiration"]
        )
    return result_response(result)


@royalty_bp.route("/royalty/agreements/<int:agreement_id>/update", methods=["GET"])
def get_royalty_update(agreement_id):
    """Latest amendment record of an agreement."""
    with state.contract_lock:
        update = state.get_contract().get_royalty_update(agreement_id)
    if update is None:
        return jsonify({"error": "No update recorded for agreement"}), 404
    return jsonify(update.to_dict())


@royalty_bp.route("/royalty/count", methods=["GET"])
def get_royalty_count():
    with state.contract_lock:
        result = state.get_contract().get_royalty_count()
    return result_response(result)


# =============================================================================
# Recipients & Tiers
# =============================================================================


@royalty_bp.route("/royalty/agreements/<int:agreement_id>/recipients", methods=["POST"])
@require_api_key
def add_royalty_recipient(agreement_id):
    """
    Request body:
        {"caller": "...", "block_height": 0, "recipient": "ST3TEST",
         "percentage": 2000, "slot_index": 0}
    """
    data, ctx, error = _read_payload({"recipient": str, "percentage": int, "slot_index": int})
    if error:
        return error
    with state.contract_lock:
        result = state.get_contract().add_royalty_recipient(
            ctx, agreement_id, data["recipient"], data["percentage"], data["slot_index"]
        )
    return result_response(result)


@royalty_bp.route("/royalty/agreements/<int:agreement_id>/tiers", methods=["POST"])
@require_api_key
def add_royalty_tier(agreement_id):
    """
    Request body:
        {"caller": "...", "block_height": 0, "tier_index": 1,
         "threshold": 1000, "rate": 600}
    """
    data, ctx, error = _read_payload({"tier_index": int, "threshold": int, "rate": int})
    if error:
        return error
    with state.contract_lock:
        result = state.get_contract().add_royalty_tier(
            ctx, agreement_id, data["tier_index"], data["threshold"], data["rate"]
        )
    return result_response(result)


# =============================================================================
# Distribution & Settlement
# =============================================================================


@royalty_bp.route("/royalty/agreements/<int:agreement_id>/distribute", methods=["POST"])
@require_api_key
def distribute_royalty(agreement_id):
    """
    Compute the payout for a sale.

    Request body:
        {"caller": "...", "block_height": 50, "sale_amount": 10000,
         "settle": false}   // apply the transfer to the in-memory balances

    Returns:
        Payout amount and the emitted transfer instruction
    """
    data, ctx, error = _read_payload({"sale_amount": int}, {"settle": bool})
    if error:
        return error

    with state.contract_lock:
        contract = state.get_contract()
        result = contract.distribute_royalty(ctx, agreement_id, data["sale_amount"])
        if not result.ok:
            return result_response(result)

        instructions = contract.transfers.drain()
        settlement = None
        if data.get("settle"):
            settlement = [outcome for _, outcome in state.balances.apply_all(instructions)]

    return result_response(
        result,
        transfers=[instruction.to_dict() for instruction in instructions],
        settlement=settlement,
    )


@royalty_bp.route("/royalty/balances/<path:principal>", methods=["GET"])
def get_balance(principal):
    with state.contract_lock:
        balance = state.balances.balance_of(principal)
    return jsonify({"principal": principal, "balance": balance})


@royalty_bp.route("/royalty/balances/<path:principal>/mint", methods=["POST"])
@require_api_key
def mint_balance(principal):
    """Fund a principal for settlement. Request body: {"amount": 10000}"""
    data = request.get_json(silent=True) or {}
    is_valid, error = validate_json_schema(data, {"amount": int})
    if not is_valid:
        return jsonify({"error": error}), 400
    with state.contract_lock:
        success, result = state.balances.mint(principal, data["amount"])
    return jsonify(result), (200 if success else 400)


@royalty_bp.route("/royalty/events", methods=["GET"])
def get_events():
    """Event trail of successful mutations, newest last."""
    limit = max(0, min(request.args.get("limit", 100, type=int), 1000))
    with state.contract_lock:
        events = list(state.get_contract().events)
    recent = events[len(events) - limit:] if limit else []
    return jsonify({"count": len(events), "events": recent})
