"""Shared test fixtures for the safe remote purchase test suite.

Provides:
    - Settings for both refund guards, isolated from any .env file
    - A ledger with funded seller and buyer accounts
    - Factories for contracts at each lifecycle stage
"""

from __future__ import annotations

import pytest

from safe_remote_purchase.config import Settings
from safe_remote_purchase.services.escrow_contract import EscrowContract
from safe_remote_purchase.services.escrow_service import EscrowService
from safe_remote_purchase.services.ledger import Ledger

SELLER = "0x" + "5" * 40
BUYER = "0x" + "B" * 40
STRANGER = "0x" + "E" * 40
STARTING_BALANCE = 100
VALUE = 5

# ---------------------------------------------------------------------------
# Configuration Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, escrow_refund_from_inactive=False)


@pytest.fixture
def observed_settings() -> Settings:
    """Settings reproducing the observed refund guard (INACTIVE only)."""
    return Settings(_env_file=None, escrow_refund_from_inactive=True)


# ---------------------------------------------------------------------------
# Ledger / Contract Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def ledger() -> Ledger:
    """Return a ledger where seller, buyer and a stranger each hold 100."""
    ledger = Ledger()
    for account in (SELLER, BUYER, STRANGER):
        ledger.mint(account, STARTING_BALANCE)
    return ledger


@pytest.fixture
def contract(ledger: Ledger, settings: Settings) -> EscrowContract:
    """A freshly opened contract with value 5 (seller deposited 10)."""
    return EscrowContract.create(ledger, SELLER, 2 * VALUE, settings=settings)


@pytest.fixture
def locked_contract(contract: EscrowContract) -> EscrowContract:
    contract.confirm_purchase(BUYER, 2 * VALUE)
    return contract


@pytest.fixture
def released_contract(locked_contract: EscrowContract) -> EscrowContract:
    locked_contract.confirm_received(BUYER)
    return locked_contract


@pytest.fixture
def service(ledger: Ledger, settings: Settings) -> EscrowService:
    return EscrowService(ledger=ledger, settings=settings)
