"""
Monitoring and metrics API endpoints.

This blueprint provides:
- /metrics: Prometheus-compatible metrics endpoint
- /metrics/json: JSON format metrics
- /health: Basic health check
"""

import time

from flask import Blueprint, Response, jsonify

from monitoring import metrics

from . import state

monitoring_bp = Blueprint('monitoring', __name__)

_startup_time = time.time()


def _update_dynamic_metrics() -> None:
    with state.contract_lock:
        contract = state.get_contract()
        metrics.set_gauge("agreements", len(contract.ledger.agreements))
        metrics.set_gauge("recipients", len(contract.registry.recipients))
        metrics.set_gauge("tiers", len(contract.registry.tiers))


@monitoring_bp.route('/metrics', methods=['GET'])
def prometheus_metrics():
    """Metrics in Prometheus text exposition format."""
    _update_dynamic_metrics()
    return Response(metrics.to_prometheus(), mimetype='text/plain; charset=utf-8')


@monitoring_bp.route('/metrics/json', methods=['GET'])
def json_metrics():
    _update_dynamic_metrics()
    return jsonify(metrics.get_all())


@monitoring_bp.route('/health', methods=['GET'])
def health():
    """Service status and key statistics."""
    with state.contract_lock:
        params = state.get_contract().get_parameters()
        agreements = params.next_agreement_id
        authority_set = params.authority is not None
    return jsonify({
        "status": "healthy",
        "service": "Royalty Ledger API",
        "uptime_seconds": round(time.time() - _startup_time, 2),
        "agreements": agreements,
        "authority_set": authority_set,
    })
