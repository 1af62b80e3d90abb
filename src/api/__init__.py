"""
Royalty Ledger API Package.

Flask blueprints exposing the royalty contract to HTTP hosts.

Blueprints:
- royalty: parameters, agreements, recipients, tiers, distribution
- monitoring: metrics and health
"""

from flask import Flask

from api.monitoring import monitoring_bp
from api.royalty import royalty_bp

# Tuple format: (blueprint, url_prefix)
ALL_BLUEPRINTS = [
    (royalty_bp, ''),
    (monitoring_bp, ''),
]


def register_blueprints(app):
    """Register all blueprints with the Flask app."""
    for blueprint, url_prefix in ALL_BLUEPRINTS:
        app.register_blueprint(blueprint, url_prefix=url_prefix)


def create_app(contract=None) -> Flask:
    """
    Build the Flask application.

    Args:
        contract: Optional RoyaltyContract to serve; built from the
            environment on first use when omitted
    """
    from api import state

    if contract is not None:
        state.reset_state(contract)

    app = Flask(__name__)
    register_blueprints(app)
    return app
