"""Unit tests for the Ledger.

Tests cover:
    - Minting and transfers between accounts
    - Insufficient funds
    - Receiver hooks accepting and rejecting credits
    - Nested atomic transactions, rollback and commit callbacks
"""

from __future__ import annotations

import pytest

from safe_remote_purchase.domain.exceptions import (
    InsufficientFundsError,
    TransferRejectedError,
)
from safe_remote_purchase.services.ledger import Ledger


@pytest.fixture
def funded() -> Ledger:
    ledger = Ledger()
    ledger.mint("alice", 50)
    return ledger


class TestTransfers:
    def test_unknown_account_is_empty(self) -> None:
        assert Ledger().balance_of("nobody") == 0

    def test_transfer_moves_value(self, funded) -> None:
        funded.transfer("alice", "bob", 20)

        assert funded.balance_of("alice") == 30
        assert funded.balance_of("bob") == 20

    def test_insufficient_funds(self, funded) -> None:
        with pytest.raises(InsufficientFundsError) as exc_info:
            funded.transfer("alice", "bob", 51)

        assert exc_info.value.code == "INSUFFICIENT_FUNDS"
        assert exc_info.value.available == 50
        assert funded.balance_of("alice") == 50

    def test_negative_amounts_are_programming_errors(self, funded) -> None:
        with pytest.raises(ValueError):
            funded.transfer("alice", "bob", -1)
        with pytest.raises(ValueError):
            funded.mint("alice", -1)


class TestReceiverHooks:
    def test_hook_sees_source_and_amount(self, funded) -> None:
        calls = []
        funded.register_receiver("bob", lambda source, amount: calls.append((source, amount)))

        funded.transfer("alice", "bob", 5)

        assert calls == [("alice", 5)]

    def test_rejecting_hook_reverts_transfer(self, funded) -> None:
        def refuse(source: str, amount: int) -> None:
            raise RuntimeError("closed")

        funded.register_receiver("bob", refuse)
        with pytest.raises(TransferRejectedError) as exc_info:
            funded.transfer("alice", "bob", 5)

        assert "closed" in exc_info.value.message
        assert funded.balance_of("alice") == 50
        assert funded.balance_of("bob") == 0

    def test_unregister(self, funded) -> None:
        funded.register_receiver("bob", lambda source, amount: 1 / 0)
        funded.unregister_receiver("bob")

        funded.transfer("alice", "bob", 5)
        assert funded.balance_of("bob") == 5


class TestAtomic:
    def test_failure_restores_balances(self, funded) -> None:
        with pytest.raises(InsufficientFundsError):
            with funded.atomic():
                funded.transfer("alice", "bob", 30)
                funded.transfer("alice", "carol", 30)

        assert funded.balance_of("alice") == 50
        assert funded.balance_of("bob") == 0

    def test_rollback_and_commit_callbacks(self, funded) -> None:
        log = []
        with pytest.raises(RuntimeError):
            with funded.atomic() as tx:
                tx.on_rollback(lambda: log.append("rollback"))
                tx.on_commit(lambda: log.append("commit"))
                raise RuntimeError("boom")
        assert log == ["rollback"]

        with funded.atomic() as tx:
            tx.on_rollback(lambda: log.append("rollback"))
            tx.on_commit(lambda: log.append("commit"))
        assert log == ["rollback", "commit"]

    def test_nested_commit_waits_for_outermost(self, funded) -> None:
        log = []
        with pytest.raises(RuntimeError):
            with funded.atomic():
                with funded.atomic() as inner:
                    inner.on_commit(lambda: log.append("commit"))
                    inner.on_rollback(lambda: log.append("rollback"))
                    funded.transfer("alice", "bob", 10)
                assert log == []
                raise RuntimeError("outer fails")

        assert log == ["rollback"]
        assert funded.balance_of("bob") == 0

    def test_nested_failure_keeps_outer_changes(self, funded) -> None:
        with funded.atomic():
            funded.transfer("alice", "bob", 10)
            with pytest.raises(InsufficientFundsError):
                funded.transfer("alice", "carol", 100)

        assert funded.balance_of("alice") == 40
        assert funded.balance_of("bob") == 10
