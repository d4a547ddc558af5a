"""Domain enumerations for the safe remote purchase escrow.

These enums define the canonical states, roles and notification kinds used
throughout the system. They carry no framework imports.
"""

import enum


class PurchaseState(enum.StrEnum):
    """Lifecycle states of one escrow instance.

    Transitions are enforced by the PurchaseStateMachine guard.
    See domain/state_machine.py for the transition table.
    """

    CREATED = "CREATED"
    LOCKED = "LOCKED"
    RELEASE = "RELEASE"
    INACTIVE = "INACTIVE"


class Role(enum.StrEnum):
    """Caller role an operation requires."""

    SELLER = "seller"
    BUYER = "buyer"
    ANY = "any"


class NotificationType(enum.StrEnum):
    """Notifications published after a transition commits.

    Exactly one notification is published per successful operation call.
    """

    ABORTED = "Aborted"
    PURCHASE_CONFIRMED = "PurchaseConfirmed"
    ITEM_RECEIVED = "ItemReceived"
    SELLER_REFUNDED = "SellerRefunded"
