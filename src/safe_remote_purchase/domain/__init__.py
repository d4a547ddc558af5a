"""Domain layer: pure business rules with no logging or I/O."""

from safe_remote_purchase.domain.enums import (
    NotificationType,
    PurchaseState,
    Role,
)
from safe_remote_purchase.domain.exceptions import (
    ContractExistsError,
    ContractNotFoundError,
    EscrowError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidStateError,
    ReentrantCallError,
    TransferError,
    TransferRejectedError,
    UnauthorizedError,
)
from safe_remote_purchase.domain.notifications import EscrowNotification
from safe_remote_purchase.domain.state_machine import (
    EVENT_ROLES,
    ObservedPurchaseStateMachine,
    PurchaseStateMachine,
    validate_transition,
)

__all__ = [
    "NotificationType",
    "PurchaseState",
    "Role",
    "ContractExistsError",
    "ContractNotFoundError",
    "EscrowError",
    "InsufficientFundsError",
    "InvalidAmountError",
    "InvalidStateError",
    "ReentrantCallError",
    "TransferError",
    "TransferRejectedError",
    "UnauthorizedError",
    "EscrowNotification",
    "EVENT_ROLES",
    "ObservedPurchaseStateMachine",
    "PurchaseStateMachine",
    "validate_transition",
]
