"""Pydantic schemas for persisted state and external requests."""

from safe_remote_purchase.schemas.escrow import (
    ContractStatusResponse,
    EscrowSnapshot,
    OperationRequest,
)

__all__ = [
    "ContractStatusResponse",
    "EscrowSnapshot",
    "OperationRequest",
]
