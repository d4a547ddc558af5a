"""Notification records emitted by escrow contracts.

A notification carries only the implicit transition context: which contract,
which kind, who called, and the states on either side of the transition.
"""

from __future__ import annotations

from dataclasses import dataclass

from safe_remote_purchase.domain.enums import NotificationType, PurchaseState


@dataclass(frozen=True)
class EscrowNotification:
    """One committed transition.

    Attributes:
        kind: Which of the four notifications this is.
        address: Address of the emitting contract.
        caller: Principal whose call produced the transition.
        old_state: State before the call.
        new_state: State after the call.
    """

    kind: NotificationType
    address: str
    caller: str
    old_state: PurchaseState
    new_state: PurchaseState

    def to_dict(self) -> dict:
        """Serialize for logs and external observers."""
        return {
            "kind": str(self.kind),
            "address": self.address,
            "caller": self.caller,
            "old_state": str(self.old_state),
            "new_state": str(self.new_state),
        }
