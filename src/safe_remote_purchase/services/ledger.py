"""Ledger: the hosting environment's value accounts.

Holds the balance of every principal and every contract address (a
contract's custodied balance is simply the balance of its address). All
movements happen inside ``atomic()`` transactions: if anything raises before
the outermost transaction exits, balances are restored to the snapshot and
every registered rollback callback runs, so a failed call leaves no partial
effect behind. Commit callbacks run only once the outermost transaction
succeeds.

Receivers may register a hook that runs whenever they are credited. A hook
that raises rejects the transfer.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from safe_remote_purchase.domain.exceptions import (
    InsufficientFundsError,
    TransferRejectedError,
)
from safe_remote_purchase.logging_config import get_logger

logger = get_logger(__name__)

ReceiverHook = Callable[[str, int], None]


class LedgerTransaction:
    """One frame of the ledger's transaction stack."""

    def __init__(self, balances: dict[str, int]) -> None:
        self.snapshot = dict(balances)
        self.rollbacks: list[Callable[[], None]] = []
        self.commits: list[Callable[[], None]] = []

    def on_rollback(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` if this transaction (or an enclosing one) fails."""
        self.rollbacks.append(callback)

    def on_commit(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` once the outermost transaction has committed."""
        self.commits.append(callback)


class Ledger:
    """Balances of principals and contract custody accounts."""

    def __init__(self) -> None:
        self._balances: dict[str, int] = {}
        self._receivers: dict[str, ReceiverHook] = {}
        self._stack: list[LedgerTransaction] = []
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def mint(self, account: str, amount: int) -> None:
        """Credit ``account`` with new value (faucet for simulations and tests)."""
        if amount < 0:
            raise ValueError(f"Cannot mint a negative amount: {amount}")
        with self._lock:
            self._balances[account] = self.balance_of(account) + amount
        logger.debug("ledger.minted", account=account, amount=amount)

    def register_receiver(self, account: str, hook: ReceiverHook) -> None:
        """Install a hook called as ``hook(source, amount)`` on every credit."""
        self._receivers[account] = hook

    def unregister_receiver(self, account: str) -> None:
        self._receivers.pop(account, None)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def atomic(self) -> Iterator[LedgerTransaction]:
        """Open a (possibly nested) all-or-nothing transaction."""
        with self._lock:
            tx = LedgerTransaction(self._balances)
            self._stack.append(tx)
            try:
                yield tx
            except BaseException:
                self._stack.pop()
                for callback in reversed(tx.rollbacks):
                    callback()
                self._balances = tx.snapshot
                raise
            self._stack.pop()
            if self._stack:
                parent = self._stack[-1]
                parent.rollbacks.extend(tx.rollbacks)
                parent.commits.extend(tx.commits)
                return
        for callback in tx.commits:
            callback()

    def transfer(self, source: str, destination: str, amount: int) -> None:
        """Move ``amount`` from ``source`` to ``destination``.

        Raises:
            InsufficientFundsError: If ``source`` holds less than ``amount``.
            TransferRejectedError: If the destination's receiver hook raises.
        """
        if amount < 0:
            raise ValueError(f"Cannot transfer a negative amount: {amount}")
        with self.atomic():
            available = self.balance_of(source)
            if amount > available:
                raise InsufficientFundsError(source, required=amount, available=available)
            self._balances[source] = available - amount
            self._balances[destination] = self.balance_of(destination) + amount

            hook = self._receivers.get(destination)
            if hook is not None:
                try:
                    hook(source, amount)
                except Exception as exc:
                    raise TransferRejectedError(destination, amount, reason=str(exc)) from exc

        logger.debug("ledger.transfer", source=source, destination=destination, amount=amount)
