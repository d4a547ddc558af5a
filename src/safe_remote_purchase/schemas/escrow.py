"""Pydantic schemas for escrow contracts.

``EscrowSnapshot`` is the persisted layout of one instance (the custodied
balance is not part of it: the ledger tracks that). The other models are the
shapes external collaborators use to drive and inspect contracts.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from safe_remote_purchase.domain.enums import PurchaseState

OperationName = Literal["abort", "confirm_purchase", "confirm_received", "refund_seller"]


# ---------------------------------------------------------------------------
# Persisted State
# ---------------------------------------------------------------------------


class EscrowSnapshot(BaseModel):
    """Persisted fields of one escrow instance."""

    model_config = ConfigDict(frozen=True)

    address: str = Field(..., min_length=1, description="Custody account of the instance")
    value: int = Field(..., gt=0, description="Unit price of the item")
    seller: str = Field(..., min_length=1)
    buyer: str | None = Field(default=None, description="Unset until LOCKED")
    state: PurchaseState

    @model_validator(mode="after")
    def _check_buyer_matches_state(self) -> EscrowSnapshot:
        if self.state == PurchaseState.CREATED and self.buyer is not None:
            raise ValueError("buyer must be unset while CREATED")
        if self.state in (PurchaseState.LOCKED, PurchaseState.RELEASE) and not self.buyer:
            raise ValueError(f"buyer must be set in state {self.state}")
        return self


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------


class OperationRequest(BaseModel):
    """One call on a contract, as submitted by an external collaborator."""

    operation: OperationName
    caller: str = Field(..., min_length=1, description="Verified principal of the caller")
    amount: int = Field(default=0, ge=0, description="Value attached to the call")


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------


class ContractStatusResponse(BaseModel):
    """Lightweight status view of one contract."""

    address: str
    state: PurchaseState
    value: int
    seller: str
    buyer: str | None
    custodied_balance: int
    allowed_events: list[str] = Field(
        description="State machine events that can fire from the current state"
    )
