"""Tests for the EscrowService registry and named-operation dispatch."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from conftest import BUYER, SELLER

from safe_remote_purchase.domain.enums import NotificationType, PurchaseState
from safe_remote_purchase.domain.exceptions import (
    ContractExistsError,
    ContractNotFoundError,
    InvalidStateError,
)
from safe_remote_purchase.schemas.escrow import OperationRequest
from safe_remote_purchase.services.escrow_service import EscrowService


class TestRegistry:
    def test_create_and_lookup(self, service) -> None:
        contract = service.create_contract(SELLER, 10)

        assert service.get_contract(contract.address) is contract
        assert service.ledger.balance_of(contract.address) == 10

    def test_unknown_address(self, service) -> None:
        with pytest.raises(ContractNotFoundError) as exc_info:
            service.get_status("0xdeadbeef")
        assert exc_info.value.code == "CONTRACT_NOT_FOUND"

    def test_restore_from_snapshots(self, service, ledger, settings) -> None:
        contract = service.create_contract(SELLER, 10)
        service.call(contract.address, "confirm_purchase", BUYER, 10)

        reloaded = EscrowService(ledger=ledger, settings=settings)
        for snapshot in service.snapshots():
            reloaded.restore_contract(snapshot)

        restored = reloaded.get_contract(contract.address)
        assert restored.state == PurchaseState.LOCKED
        assert restored.buyer == BUYER
        reloaded.call(contract.address, "confirm_received", BUYER)
        assert ledger.balance_of(BUYER) == 95

    def test_stale_snapshot_cannot_replace_live_contract(self, service, ledger) -> None:
        contract = service.create_contract(SELLER, 10)
        service.call(contract.address, "confirm_purchase", BUYER, 10)
        stale = contract.snapshot()
        service.call(contract.address, "confirm_received", BUYER)

        with pytest.raises(ContractExistsError) as exc_info:
            service.restore_contract(stale)

        assert exc_info.value.code == "CONTRACT_EXISTS"
        assert service.get_contract(contract.address) is contract
        assert contract.state == PurchaseState.RELEASE
        with pytest.raises(InvalidStateError):
            service.call(contract.address, "confirm_received", BUYER)
        assert ledger.balance_of(BUYER) == 95
        assert ledger.balance_of(contract.address) == 15


class TestDispatch:
    def test_full_lifecycle_by_name(self, service) -> None:
        address = service.create_contract(SELLER, 10).address

        service.call(address, "confirm_purchase", BUYER, 10)
        service.call(address, "confirm_received", BUYER)
        service.call(address, "refund_seller", SELLER)

        status = service.get_status(address)
        assert status.state == PurchaseState.INACTIVE
        assert status.custodied_balance == 0
        assert status.allowed_events == []
        assert [e.kind for e in service.get_events(address)] == [
            NotificationType.PURCHASE_CONFIRMED,
            NotificationType.ITEM_RECEIVED,
            NotificationType.SELLER_REFUNDED,
        ]

    def test_unknown_operation(self, service) -> None:
        address = service.create_contract(SELLER, 10).address
        with pytest.raises(ValueError, match="Unknown operation"):
            service.call(address, "selfdestruct", SELLER)

    def test_guard_errors_propagate(self, service) -> None:
        address = service.create_contract(SELLER, 10).address
        service.call(address, "abort", SELLER)
        with pytest.raises(InvalidStateError):
            service.call(address, "confirm_purchase", BUYER, 10)

    def test_execute_request(self, service) -> None:
        address = service.create_contract(SELLER, 10).address
        request = OperationRequest(operation="confirm_purchase", caller=BUYER, amount=10)

        contract = service.execute(address, request)
        assert contract.state == PurchaseState.LOCKED

    def test_request_validation(self) -> None:
        with pytest.raises(ValidationError):
            OperationRequest(operation="confirm_purchase", caller="", amount=10)
        with pytest.raises(ValidationError):
            OperationRequest(operation="abort", caller=SELLER, amount=-1)
        with pytest.raises(ValidationError):
            OperationRequest(operation="withdraw", caller=SELLER)


class TestSharedBus:
    def test_service_bus_sees_every_contract(self, service) -> None:
        received = []
        service.bus.subscribe(received.append)

        first = service.create_contract(SELLER, 10)
        second = service.create_contract(SELLER, 20)
        service.call(first.address, "abort", SELLER)
        service.call(second.address, "abort", SELLER)

        assert [n.address for n in received] == [first.address, second.address]

    def test_unsubscribe(self, service) -> None:
        received = []
        unsubscribe = service.bus.subscribe(received.append)
        unsubscribe()

        contract = service.create_contract(SELLER, 10)
        service.call(contract.address, "abort", SELLER)
        assert received == []
