"""Safe Remote Purchase: End-to-End Simulation.

Simulates four scenarios with SellerBot and BuyerBot principals:

    Scenario 1: Happy Path
        - Seller opens the escrow with 2 * value
        - Buyer confirms the purchase with 2 * value
        - Buyer confirms receipt -> gets value back
        - Seller is refunded 3 * value

    Scenario 2: Abort
        - Seller opens the escrow, then aborts before anyone buys
        - A late buyer is turned away with INVALID_STATE

    Scenario 3: Observed Graph
        - Same as scenario 1, but with the observed refund guard
        - The seller's refund is refused: RELEASE has no way out

    Scenario 4: Rejected Transfer
        - The buyer's wallet refuses incoming value once
        - confirm_received is reverted as a whole, then succeeds on retry

Usage:
    safe-remote-purchase-sim
    safe-remote-purchase-sim --scenario 3
    safe-remote-purchase-sim --value 50 --json-logs
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass

from safe_remote_purchase.config import Settings, get_settings
from safe_remote_purchase.domain.exceptions import EscrowError
from safe_remote_purchase.logging_config import get_logger, setup_logging
from safe_remote_purchase.services.escrow_service import EscrowService

logger = get_logger("simulation")

DEFAULT_VALUE = 5
STARTING_FACTOR = 10


# ---------------------------------------------------------------------------
# Bot Principals
# ---------------------------------------------------------------------------
@dataclass
class SellerBot:
    """Simulated seller that opens, aborts and collects escrows."""

    wallet: str = "0x" + "5" * 40

    def open_escrow(self, service: EscrowService, value: int) -> str:
        contract = service.create_contract(self.wallet, 2 * value)
        logger.info("SELLER: escrow opened", address=contract.address, value=value)
        return contract.address

    def abort(self, service: EscrowService, address: str) -> None:
        service.call(address, "abort", self.wallet)
        logger.info("SELLER: escrow aborted", address=address)

    def collect(self, service: EscrowService, address: str) -> None:
        service.call(address, "refund_seller", self.wallet)
        logger.info("SELLER: refund collected", address=address)


@dataclass
class BuyerBot:
    """Simulated buyer that locks escrows and confirms delivery."""

    wallet: str = "0x" + "B" * 40

    def purchase(self, service: EscrowService, address: str) -> None:
        contract = service.get_contract(address)
        service.call(address, "confirm_purchase", self.wallet, 2 * contract.value)
        logger.info("BUYER: purchase confirmed", address=address)

    def confirm_received(self, service: EscrowService, address: str) -> None:
        service.call(address, "confirm_received", self.wallet)
        logger.info("BUYER: item received", address=address)


# ---------------------------------------------------------------------------
# Print helpers
# ---------------------------------------------------------------------------
def banner(text: str) -> None:
    """Print a prominent banner."""
    width = 70
    print("\n" + "=" * width)
    print(f"  {text}")
    print("=" * width + "\n")


def section(text: str) -> None:
    """Print a section header."""
    print(f"\n--- {text} ---\n")


def print_balances(service: EscrowService, seller: SellerBot, buyer: BuyerBot, address: str) -> None:
    ledger = service.ledger
    print(f"  Seller: {ledger.balance_of(seller.wallet)}")
    print(f"  Buyer:  {ledger.balance_of(buyer.wallet)}")
    print(f"  Escrow: {ledger.balance_of(address)}")


def print_audit_trail(service: EscrowService, address: str) -> None:
    """Print the committed notifications of a contract."""
    print("\n  Audit Trail:")
    for i, event in enumerate(service.get_events(address), 1):
        print(f"    {i}. [{event.kind}] {event.old_state} -> {event.new_state} (by {event.caller})")
    print()


def _setup(settings: Settings, value: int) -> tuple[EscrowService, SellerBot, BuyerBot]:
    service = EscrowService(settings=settings)
    seller, buyer = SellerBot(), BuyerBot()
    service.ledger.mint(seller.wallet, STARTING_FACTOR * value)
    service.ledger.mint(buyer.wallet, STARTING_FACTOR * value)
    return service, seller, buyer


def _default_graph(settings: Settings) -> Settings:
    return settings.model_copy(update={"escrow_refund_from_inactive": False})


def _result(service: EscrowService, seller: SellerBot, buyer: BuyerBot, address: str, **extra) -> dict:
    ledger = service.ledger
    contract = service.get_contract(address)
    starting = STARTING_FACTOR * contract.value
    return {
        "address": address,
        "state": contract.state.value,
        "seller_delta": ledger.balance_of(seller.wallet) - starting,
        "buyer_delta": ledger.balance_of(buyer.wallet) - starting,
        "escrow_balance": ledger.balance_of(address),
        **extra,
    }


# ===========================================================================
# Scenarios
# ===========================================================================
def scenario_1_happy_path(settings: Settings, value: int = DEFAULT_VALUE) -> dict:
    """Both parties behave: buyer pays value, seller nets value."""
    banner("SCENARIO 1: Happy Path")
    service, seller, buyer = _setup(_default_graph(settings), value)

    section("Step 1: Seller opens escrow")
    address = seller.open_escrow(service, value)

    section("Step 2: Buyer confirms purchase")
    buyer.purchase(service, address)

    section("Step 3: Buyer confirms receipt")
    buyer.confirm_received(service, address)

    section("Step 4: Seller collects")
    seller.collect(service, address)

    print_balances(service, seller, buyer, address)
    print_audit_trail(service, address)
    return _result(service, seller, buyer, address)


def scenario_2_abort(settings: Settings, value: int = DEFAULT_VALUE) -> dict:
    """Seller withdraws the offer; a late buyer is refused."""
    banner("SCENARIO 2: Abort")
    service, seller, buyer = _setup(settings, value)

    address = seller.open_escrow(service, value)
    seller.abort(service, address)

    section("Late buyer tries to purchase")
    try:
        buyer.purchase(service, address)
    except EscrowError as exc:
        print(f"  Refused: {exc.code} ({exc.message})")
        late_buyer_error = exc.code
    else:
        late_buyer_error = None

    print_balances(service, seller, buyer, address)
    print_audit_trail(service, address)
    return _result(service, seller, buyer, address, late_buyer_error=late_buyer_error)


def scenario_3_observed_graph(settings: Settings, value: int = DEFAULT_VALUE) -> dict:
    """With the observed refund guard the seller cannot collect after RELEASE."""
    banner("SCENARIO 3: Observed Graph (refund guarded on INACTIVE)")
    observed = settings.model_copy(update={"escrow_refund_from_inactive": True})
    service, seller, buyer = _setup(observed, value)

    address = seller.open_escrow(service, value)
    buyer.purchase(service, address)
    buyer.confirm_received(service, address)

    section("Seller tries to collect")
    try:
        seller.collect(service, address)
    except EscrowError as exc:
        print(f"  Refused: {exc.code} ({exc.message})")
        refund_error = exc.code
    else:
        refund_error = None

    print_balances(service, seller, buyer, address)
    return _result(service, seller, buyer, address, refund_error=refund_error)


def scenario_4_rejected_transfer(settings: Settings, value: int = DEFAULT_VALUE) -> dict:
    """A refused payout reverts the whole call; the retry goes through."""
    banner("SCENARIO 4: Rejected Transfer")
    service, seller, buyer = _setup(_default_graph(settings), value)

    address = seller.open_escrow(service, value)
    buyer.purchase(service, address)

    def wallet_offline(source: str, amount: int) -> None:
        raise ConnectionError("wallet offline")

    service.ledger.register_receiver(buyer.wallet, wallet_offline)
    section("Buyer confirms receipt while their wallet refuses payments")
    try:
        buyer.confirm_received(service, address)
    except EscrowError as exc:
        print(f"  Reverted: {exc.code} ({exc.message})")
        first_error = exc.code
    else:
        first_error = None
    state_after_failure = service.get_contract(address).state.value

    service.ledger.unregister_receiver(buyer.wallet)
    section("Buyer retries")
    buyer.confirm_received(service, address)
    seller.collect(service, address)

    print_balances(service, seller, buyer, address)
    print_audit_trail(service, address)
    return _result(
        service,
        seller,
        buyer,
        address,
        first_error=first_error,
        state_after_failure=state_after_failure,
    )


SCENARIOS = {
    1: scenario_1_happy_path,
    2: scenario_2_abort,
    3: scenario_3_observed_graph,
    4: scenario_4_rejected_transfer,
}


# ===========================================================================
# Main
# ===========================================================================
def run(scenario: int = 0, value: int = DEFAULT_VALUE, settings: Settings | None = None) -> list[dict]:
    """Run one scenario, or all of them when ``scenario`` is 0."""
    settings = settings or get_settings()
    if scenario and scenario not in SCENARIOS:
        raise ValueError(f"Unknown scenario {scenario}. Available: {', '.join(map(str, SCENARIOS))}")
    selected = [SCENARIOS[scenario]] if scenario else list(SCENARIOS.values())
    return [run_one(settings, value) for run_one in selected]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Safe Remote Purchase Simulation")
    parser.add_argument(
        "--scenario",
        type=int,
        default=0,
        help="Run a specific scenario (1-4). Default: run all.",
    )
    parser.add_argument(
        "--value",
        type=int,
        default=DEFAULT_VALUE,
        help="Item value; each party deposits twice this amount.",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON log lines instead of colored console output.",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(
        log_level=settings.app_log_level,
        json_logs=args.json_logs or settings.use_json_logs,
        logger_levels=settings.logger_levels,
    )
    try:
        run(args.scenario, args.value, settings)
    except (ValueError, EscrowError) as exc:
        parser.error(str(exc))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
