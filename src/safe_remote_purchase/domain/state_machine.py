"""Purchase State Machine Guard.

Uses python-statemachine to enforce legal state transitions at the domain
level. No matter how a contract is driven, an illegal transition
(e.g. CREATED -> RELEASE) raises TransitionNotAllowed before any value moves.

The state machine is instantiated per call and validates the transition
before the contract's state field is updated.

Transition table (default):
    CREATED   -> INACTIVE   (abort)             seller
    CREATED   -> LOCKED     (confirm_purchase)  any, deposit == 2 * value
    LOCKED    -> RELEASE    (confirm_received)  buyer
    RELEASE   -> INACTIVE   (refund_seller)     seller

Observed-design variant (``escrow_refund_from_inactive``):
    refund_seller is INACTIVE -> INACTIVE and RELEASE has no way out.
"""

from __future__ import annotations

import warnings

from statemachine import State, StateMachine

from safe_remote_purchase.domain.enums import Role

# Role each event requires of its caller.
EVENT_ROLES: dict[str, Role] = {
    "abort": Role.SELLER,
    "confirm_purchase": Role.ANY,
    "confirm_received": Role.BUYER,
    "refund_seller": Role.SELLER,
}


class _StatusMixin:
    """Start-at-status constructor and helpers shared by both graphs."""

    def __init__(self, current_status: str = "CREATED") -> None:
        """Initialize the state machine at a given status.

        Args:
            current_status: The current PurchaseState value (e.g., "LOCKED").
                           Must match one of the State value strings exactly.
        """
        valid_values = {s.value for s in self.states}
        if current_status not in valid_values:
            valid = ", ".join(sorted(valid_values))
            raise ValueError(
                f"Unknown status '{current_status}'. Valid states: {valid}"
            )
        super().__init__(start_value=current_status)

    @property
    def status(self) -> str:
        """Return the current state value as a string (matches PurchaseState)."""
        return str(self.current_state.value)

    def get_allowed_events(self) -> list[str]:
        """Return a list of event names that can fire from the current state."""
        return [event.id for event in self.allowed_events]


class PurchaseStateMachine(_StatusMixin, StateMachine):
    """State machine that guards the escrow lifecycle.

    Usage:
        sm = PurchaseStateMachine(current_status="LOCKED")
        sm.confirm_received()  # transitions to RELEASE
        sm.status              # "RELEASE"
    """

    # --- States ---
    CREATED = State("CREATED", initial=True)
    LOCKED = State("LOCKED")
    RELEASE = State("RELEASE")
    INACTIVE = State("INACTIVE", final=True)

    # --- Events / Transitions ---
    abort = CREATED.to(INACTIVE)
    confirm_purchase = CREATED.to(LOCKED)
    confirm_received = LOCKED.to(RELEASE)
    refund_seller = RELEASE.to(INACTIVE)


# INACTIVE loops on itself and never reaches the final RELEASE state, which
# python-statemachine reports as a UserWarning at class creation. The dead end
# is the behaviour this graph reproduces, so that one check is silenced here.
with warnings.catch_warnings():
    warnings.filterwarnings("ignore", message="All non-final states", category=UserWarning)

    class ObservedPurchaseStateMachine(_StatusMixin, StateMachine):
        """Transition graph exactly as observed in the original purchase design.

        refund_seller only fires from INACTIVE, which only abort reaches, so the
        seller's 3 * value payout is never reachable after confirm_received.
        """

        CREATED = State("CREATED", initial=True)
        LOCKED = State("LOCKED")
        RELEASE = State("RELEASE", final=True)
        INACTIVE = State("INACTIVE")

        abort = CREATED.to(INACTIVE)
        confirm_purchase = CREATED.to(LOCKED)
        confirm_received = LOCKED.to(RELEASE)
        refund_seller = INACTIVE.to.itself()


def machine_class(
    refund_from_inactive: bool = False,
) -> type[PurchaseStateMachine | ObservedPurchaseStateMachine]:
    """Return the state machine class for the configured refund guard."""
    if refund_from_inactive:
        return ObservedPurchaseStateMachine
    return PurchaseStateMachine


def validate_transition(
    current_status: str,
    event_name: str,
    refund_from_inactive: bool = False,
) -> str:
    """Validate a state transition and return the new status.

    Creates a temporary state machine, fires the named event, and returns
    the resulting status string.

    Args:
        current_status: Current PurchaseState value.
        event_name: The event to fire (e.g., "confirm_purchase").
        refund_from_inactive: Use the observed-design refund guard.

    Returns:
        The new status string after the transition.

    Raises:
        TransitionNotAllowed: If the transition is illegal.
        ValueError: If the status or event name is invalid.
    """
    sm = machine_class(refund_from_inactive)(current_status=current_status)

    if event_name not in EVENT_ROLES:
        raise ValueError(
            f"Unknown event '{event_name}'. "
            f"Allowed events from {current_status}: {sm.get_allowed_events()}"
        )

    getattr(sm, event_name)()
    return sm.status
