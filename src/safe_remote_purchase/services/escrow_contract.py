"""Escrow Contract: state machine and fund custody for one remote purchase.

The seller opens the contract by depositing twice the item's value. A buyer
locks it by depositing the same amount (price plus matching collateral).
Once the buyer confirms receipt they get their collateral back, and the
seller collects the remaining 3 * value.

Every operation runs through the same guard, in this order:
    1. reentrancy guard (per instance)
    2. non-payable operations must not carry value
    3. caller role (seller / buyer / any)
    4. state precondition (PurchaseStateMachine)
    5. exact attached amount (payable operations)

State is updated before any outbound transfer is attempted. The whole call
runs in one ledger transaction, so a rejected transfer reverts the state
change and every balance movement, and no notification is published.
"""

from __future__ import annotations

import functools
import threading
import uuid
from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog
from statemachine.exceptions import TransitionNotAllowed

from safe_remote_purchase.config import Settings, get_settings
from safe_remote_purchase.domain.enums import NotificationType, PurchaseState, Role
from safe_remote_purchase.domain.exceptions import (
    EscrowError,
    InvalidAmountError,
    InvalidStateError,
    ReentrantCallError,
    UnauthorizedError,
)
from safe_remote_purchase.domain.notifications import EscrowNotification
from safe_remote_purchase.domain.state_machine import EVENT_ROLES, machine_class
from safe_remote_purchase.logging_config import get_logger
from safe_remote_purchase.schemas.escrow import ContractStatusResponse, EscrowSnapshot
from safe_remote_purchase.services.notification_bus import NotificationBus

if TYPE_CHECKING:
    from safe_remote_purchase.services.ledger import Ledger

logger = get_logger(__name__)

Effect = Callable[["EscrowContract", str, int, PurchaseState], None]


def _check_amount(amount: object) -> int:
    """Attached amounts are unsigned integers."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(f"Amount must be an integer, got {amount!r}", amount=amount)
    if amount < 0:
        raise InvalidAmountError(f"Amount must not be negative, got {amount}", amount=amount)
    return amount


def _new_address(prefix: str) -> str:
    return prefix + uuid.uuid4().hex + uuid.uuid4().hex[:8]


def _operation(notification: NotificationType, payable: bool = False) -> Callable[[Effect], Callable]:
    """Wrap an effect function into a guarded contract operation.

    The effect is called as ``effect(self, caller, amount, new_state)`` only
    after the caller, the attached amount and the state precondition have all
    been checked. The resulting public method takes ``(caller, amount=0)``.
    """

    def decorator(effect: Effect) -> Callable:
        event = effect.__name__

        @functools.wraps(effect)
        def wrapper(self: EscrowContract, caller: str, amount: int = 0) -> None:
            self._run(event, notification, payable, effect, caller, amount)

        return wrapper

    return decorator


class EscrowContract:
    """One escrow session between a seller and a buyer.

    Use ``EscrowContract.create`` to open a contract; the constructor only
    wires up an instance from already-validated fields.
    """

    def __init__(
        self,
        ledger: Ledger,
        address: str,
        seller: str,
        value: int,
        *,
        buyer: str | None = None,
        state: PurchaseState = PurchaseState.CREATED,
        bus: NotificationBus | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._ledger = ledger
        self._address = address
        self._seller = seller
        self._value = value
        self._buyer = buyer
        self._state = PurchaseState(state)
        self._bus = bus or NotificationBus()
        self._settings = settings or get_settings()
        self._events: list[EscrowNotification] = []
        self._mutex = threading.RLock()
        self._entered = False

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        ledger: Ledger,
        caller: str,
        deposit: int,
        *,
        bus: NotificationBus | None = None,
        settings: Settings | None = None,
    ) -> EscrowContract:
        """Open a contract: the caller becomes seller and deposits 2 * value.

        Raises:
            UnauthorizedError: If no caller identity is supplied.
            InvalidAmountError: If ``deposit`` is not a positive even integer.
            InsufficientFundsError: If the caller cannot cover the deposit.
        """
        settings = settings or get_settings()
        if not caller:
            raise UnauthorizedError("create", str(caller), Role.ANY)
        deposit = _check_amount(deposit)
        if deposit == 0:
            raise InvalidAmountError("Deposit must be strictly positive", amount=deposit)
        if deposit % 2 != 0:
            raise InvalidAmountError(
                f"Deposit {deposit} cannot be split evenly into 2 * value", amount=deposit
            )

        contract = cls(
            ledger,
            _new_address(settings.escrow_address_prefix),
            seller=caller,
            value=deposit // 2,
            bus=bus,
            settings=settings,
        )
        ledger.transfer(caller, contract.address, deposit)

        logger.info(
            "escrow.created",
            address=contract.address,
            seller=caller,
            value=contract.value,
        )
        return contract

    @classmethod
    def from_snapshot(
        cls,
        snapshot: EscrowSnapshot,
        ledger: Ledger,
        *,
        bus: NotificationBus | None = None,
        settings: Settings | None = None,
    ) -> EscrowContract:
        """Rehydrate a contract from its persisted fields."""
        return cls(
            ledger,
            snapshot.address,
            seller=snapshot.seller,
            value=snapshot.value,
            buyer=snapshot.buyer,
            state=snapshot.state,
            bus=bus,
            settings=settings,
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def address(self) -> str:
        return self._address

    @property
    def value(self) -> int:
        return self._value

    @property
    def seller(self) -> str:
        return self._seller

    @property
    def buyer(self) -> str | None:
        return self._buyer

    @property
    def state(self) -> PurchaseState:
        return self._state

    @property
    def balance(self) -> int:
        """Custodied balance, as tracked by the ledger."""
        return self._ledger.balance_of(self._address)

    @property
    def bus(self) -> NotificationBus:
        return self._bus

    @property
    def events(self) -> tuple[EscrowNotification, ...]:
        """Committed notifications, oldest first."""
        return tuple(self._events)

    def allowed_events(self) -> list[str]:
        return self._machine().get_allowed_events()

    def snapshot(self) -> EscrowSnapshot:
        return EscrowSnapshot(
            address=self._address,
            value=self._value,
            seller=self._seller,
            buyer=self._buyer,
            state=self._state,
        )

    def status(self) -> ContractStatusResponse:
        return ContractStatusResponse(
            address=self._address,
            state=self._state,
            value=self._value,
            seller=self._seller,
            buyer=self._buyer,
            custodied_balance=self.balance,
            allowed_events=self.allowed_events(),
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    @_operation(NotificationType.ABORTED)
    def abort(self, caller: str, amount: int, new_state: PurchaseState) -> None:
        """Seller withdraws the offer and recovers the whole custodied balance."""
        self._state = new_state
        self._pay(self._seller, self.balance)

    @_operation(NotificationType.PURCHASE_CONFIRMED, payable=True)
    def confirm_purchase(self, caller: str, amount: int, new_state: PurchaseState) -> None:
        """Buyer locks the contract by depositing exactly 2 * value."""
        expected = 2 * self._value
        if amount != expected:
            raise InvalidAmountError(
                f"Purchase requires a deposit of exactly {expected}, got {amount}",
                amount=amount,
                expected=expected,
            )
        self._buyer = caller
        self._state = new_state
        self._ledger.transfer(caller, self._address, amount)

    @_operation(NotificationType.ITEM_RECEIVED)
    def confirm_received(self, caller: str, amount: int, new_state: PurchaseState) -> None:
        """Buyer confirms delivery and gets their collateral (value) back."""
        self._state = new_state
        self._pay(self._buyer, self._value)

    @_operation(NotificationType.SELLER_REFUNDED)
    def refund_seller(self, caller: str, amount: int, new_state: PurchaseState) -> None:
        """Seller collects their deposit plus the purchase price (3 * value)."""
        self._state = new_state
        self._pay(self._seller, 3 * self._value)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _machine(self):
        cls = machine_class(self._settings.escrow_refund_from_inactive)
        return cls(current_status=self._state.value)

    def _pay(self, recipient: str, amount: int) -> None:
        self._ledger.transfer(self._address, recipient, amount)

    def _restore(self, buyer: str | None, state: PurchaseState) -> None:
        self._buyer = buyer
        self._state = state

    def _commit(self, event: str, notification: EscrowNotification) -> None:
        """Record and announce a call once the outermost transaction commits."""
        logger.info(
            f"escrow.{event}",
            address=self._address,
            caller=notification.caller,
            state=notification.new_state.value,
            balance=self.balance,
        )
        self._events.append(notification)
        self._bus.publish(notification)

    def _check_role(self, event: str, caller: str) -> None:
        role = EVENT_ROLES[event]
        if not caller:
            raise UnauthorizedError(event, str(caller), role)
        if role == Role.SELLER and caller != self._seller:
            raise UnauthorizedError(event, caller, role)
        if role == Role.BUYER and (self._buyer is None or caller != self._buyer):
            raise UnauthorizedError(event, caller, role)

    def _fire_transition(self, event: str) -> PurchaseState:
        """Validate the transition and return the state it leads to.

        Raises InvalidStateError if the transition is illegal.
        """
        sm = self._machine()
        try:
            getattr(sm, event)()
        except TransitionNotAllowed as err:
            raise InvalidStateError(self._state.value, event) from err
        return PurchaseState(sm.status)

    def _run(
        self,
        event: str,
        notification: NotificationType,
        payable: bool,
        effect: Effect,
        caller: str,
        amount: int,
    ) -> None:
        with (
            structlog.contextvars.bound_contextvars(address=self._address, operation=event),
            self._ledger.atomic() as tx,
            self._mutex,
        ):
            if self._entered:
                error = ReentrantCallError(self._address, event)
                logger.warning("escrow.call_rejected", caller=caller, code=error.code)
                raise error
            self._entered = True
            try:
                old_state = self._state
                tx.on_rollback(functools.partial(self._restore, self._buyer, old_state))

                amount = _check_amount(amount)
                if amount and not payable:
                    raise InvalidAmountError(
                        f"{event} does not accept value, got {amount}", amount=amount, expected=0
                    )
                self._check_role(event, caller)
                new_state = self._fire_transition(event)
                effect(self, caller, amount, new_state)

                tx.on_commit(
                    functools.partial(
                        self._commit,
                        event,
                        EscrowNotification(
                            kind=notification,
                            address=self._address,
                            caller=caller,
                            old_state=old_state,
                            new_state=self._state,
                        ),
                    )
                )
            except EscrowError as exc:
                logger.warning("escrow.call_rejected", caller=caller, code=exc.code, error=exc.message)
                raise
            finally:
                self._entered = False
