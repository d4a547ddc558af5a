"""Escrow Service: registry of escrow contracts sharing one ledger.

This is the application layer external collaborators (wallets, monitoring
tools, the simulation) talk to. It opens contracts, looks them up by address,
dispatches named operations with a caller identity and attached amount, and
returns status views. Each contract keeps its own state; the only things
shared are the ledger and the notification bus.
"""

from __future__ import annotations

from safe_remote_purchase.config import Settings, get_settings
from safe_remote_purchase.domain.exceptions import ContractExistsError, ContractNotFoundError
from safe_remote_purchase.domain.notifications import EscrowNotification
from safe_remote_purchase.logging_config import get_logger
from safe_remote_purchase.schemas.escrow import (
    ContractStatusResponse,
    EscrowSnapshot,
    OperationRequest,
)
from safe_remote_purchase.services.escrow_contract import EscrowContract
from safe_remote_purchase.services.ledger import Ledger
from safe_remote_purchase.services.notification_bus import NotificationBus

logger = get_logger(__name__)

OPERATIONS = ("abort", "confirm_purchase", "confirm_received", "refund_seller")


class EscrowService:
    """Manages the lifecycle of many independent escrow contracts."""

    def __init__(
        self,
        ledger: Ledger | None = None,
        settings: Settings | None = None,
        bus: NotificationBus | None = None,
    ) -> None:
        self._ledger = ledger or Ledger()
        self._settings = settings or get_settings()
        self._bus = bus or NotificationBus()
        self._contracts: dict[str, EscrowContract] = {}

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def bus(self) -> NotificationBus:
        return self._bus

    # ------------------------------------------------------------------
    # Contract Creation
    # ------------------------------------------------------------------

    def create_contract(self, seller: str, deposit: int) -> EscrowContract:
        """Open a new contract with ``seller`` depositing ``deposit``."""
        contract = EscrowContract.create(
            self._ledger,
            seller,
            deposit,
            bus=self._bus,
            settings=self._settings,
        )
        self._contracts[contract.address] = contract
        return contract

    def restore_contract(self, snapshot: EscrowSnapshot) -> EscrowContract:
        """Register a contract rehydrated from its persisted fields.

        Raises:
            ContractExistsError: If a contract already lives at the snapshot's
                address. A stale snapshot must never replace a live contract.
        """
        if snapshot.address in self._contracts:
            raise ContractExistsError(snapshot.address)
        contract = EscrowContract.from_snapshot(
            snapshot,
            self._ledger,
            bus=self._bus,
            settings=self._settings,
        )
        self._contracts[contract.address] = contract
        logger.info("escrow.restored", address=contract.address, state=contract.state.value)
        return contract

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def call(self, address: str, operation: str, caller: str, amount: int = 0) -> EscrowContract:
        """Invoke a named operation on a contract.

        Raises:
            ContractNotFoundError: If no contract lives at ``address``.
            ValueError: If ``operation`` is not one of OPERATIONS.
            EscrowError: Whatever the contract's guards raise.
        """
        contract = self._get_contract_or_raise(address)
        if operation not in OPERATIONS:
            raise ValueError(
                f"Unknown operation '{operation}'. Valid operations: {', '.join(OPERATIONS)}"
            )
        getattr(contract, operation)(caller, amount)
        return contract

    def execute(self, address: str, request: OperationRequest) -> EscrowContract:
        """Invoke an operation described by a validated request."""
        return self.call(address, request.operation, request.caller, request.amount)

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    def get_contract(self, address: str) -> EscrowContract:
        """Get a contract or raise."""
        return self._get_contract_or_raise(address)

    def get_status(self, address: str) -> ContractStatusResponse:
        """Get contract status with allowed events."""
        return self._get_contract_or_raise(address).status()

    def get_events(self, address: str) -> tuple[EscrowNotification, ...]:
        """Get the committed notifications of one contract."""
        return self._get_contract_or_raise(address).events

    def snapshots(self) -> list[EscrowSnapshot]:
        """Persisted fields of every registered contract."""
        return [contract.snapshot() for contract in self._contracts.values()]

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _get_contract_or_raise(self, address: str) -> EscrowContract:
        contract = self._contracts.get(address)
        if contract is None:
            raise ContractNotFoundError(address)
        return contract
