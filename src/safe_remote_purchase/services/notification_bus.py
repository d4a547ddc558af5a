"""Notification Bus: fire-and-forget delivery of committed notifications.

Contracts publish to the bus only after a call has committed. A subscriber
that raises is logged and skipped; the contract never depends on delivery
succeeding, and the remaining subscribers still receive the notification.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from safe_remote_purchase.logging_config import get_logger

if TYPE_CHECKING:
    from safe_remote_purchase.domain.notifications import EscrowNotification

logger = get_logger(__name__)

Subscriber = Callable[["EscrowNotification"], None]


class NotificationBus:
    """Fan-out of committed notifications to registered subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register a subscriber and return a callable that unregisters it."""
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def publish(self, notification: EscrowNotification) -> None:
        for subscriber in list(self._subscribers):
            try:
                subscriber(notification)
            except Exception as exc:
                logger.warning(
                    "notification.delivery_failed",
                    kind=str(notification.kind),
                    address=notification.address,
                    error=str(exc),
                )
