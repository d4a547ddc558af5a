"""Application services: contracts, the ledger and notification delivery."""

from safe_remote_purchase.services.escrow_contract import EscrowContract
from safe_remote_purchase.services.escrow_service import EscrowService
from safe_remote_purchase.services.ledger import Ledger
from safe_remote_purchase.services.notification_bus import NotificationBus

__all__ = ["EscrowContract", "EscrowService", "Ledger", "NotificationBus"]
