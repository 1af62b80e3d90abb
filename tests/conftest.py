"""
Pytest configuration and shared fixtures for royalty ledger tests.

This module provides:
- src/ on the import path
- Test environment (authentication disabled for the API)
- Fresh parameter stores, ledgers and contracts per test
- Flask test client bound to a fresh contract
"""

import os
import sys

import pytest

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

# Set up test environment before any imports
os.environ["ROYALTY_REQUIRE_AUTH"] = "false"
os.environ["ROYALTY_API_KEY"] = "test-api-key-12345"

CREATOR = "ST1TEST"
AUTHORITY = "ST2TEST"
RECIPIENT = "ST3TEST"
STRANGER = "ST4FAKE"


@pytest.fixture
def ctx():
    """Default caller at height 0."""
    from call_context import CallContext
    return CallContext(caller=CREATOR, block_height=0)


@pytest.fixture
def parameters():
    """Parameter store with default config and no authority."""
    from parameter_store import ParameterStore
    return ParameterStore()


@pytest.fixture
def authorized_parameters(parameters, ctx):
    """Parameter store with the authority already set."""
    parameters.set_authority(ctx, AUTHORITY)
    return parameters


@pytest.fixture
def ledger(authorized_parameters):
    from royalty_ledger import RoyaltyLedger
    return RoyaltyLedger(authorized_parameters)


@pytest.fixture
def contract():
    """Fresh contract with an isolated metrics collector and no authority."""
    from monitoring.metrics import MetricsCollector
    from royalty_contract import RoyaltyContract
    return RoyaltyContract(metrics=MetricsCollector())


@pytest.fixture
def authorized_contract(contract, ctx):
    contract.set_authority(ctx, AUTHORITY)
    return contract


@pytest.fixture
def flask_client():
    """Flask test client over a fresh contract."""
    from api import create_app
    from monitoring.metrics import MetricsCollector
    from royalty_contract import RoyaltyContract

    app = create_app(RoyaltyContract(metrics=MetricsCollector()))
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client
