"""
Monitoring for the royalty ledger.

Usage:
    from monitoring import metrics, get_logger

    metrics.increment("operations_total", labels={"operation": "create_royalty"})

    logger = get_logger(__name__)
    logger.info("Agreement created", extra={"agreement_id": 0})
"""

from monitoring.logging import LoggingContext, configure_logging, get_logger
from monitoring.metrics import MetricsCollector, metrics

__all__ = [
    "MetricsCollector",
    "metrics",
    "get_logger",
    "configure_logging",
    "LoggingContext",
]
