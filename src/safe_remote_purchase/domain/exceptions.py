"""Domain exceptions for the safe remote purchase escrow.

Every guard failure surfaces as one of these, each with a distinct ``code``
so callers can tell the failure reasons apart without parsing messages.
"""

from __future__ import annotations


class EscrowError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "ESCROW_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


# --- Guard Errors ---


class UnauthorizedError(EscrowError):
    """Raised when the caller does not hold the role an operation requires."""

    def __init__(self, operation: str, caller: str, required_role: str) -> None:
        super().__init__(
            message=f"Caller {caller!r} is not allowed to {operation} (requires {required_role})",
            code="UNAUTHORIZED",
        )
        self.operation = operation
        self.caller = caller
        self.required_role = required_role


class InvalidStateError(EscrowError):
    """Raised when the current state does not permit the requested operation.

    Example: confirm_received while still CREATED.
    """

    def __init__(self, current_state: str, operation: str) -> None:
        super().__init__(
            message=f"Operation {operation} is not allowed in state {current_state}",
            code="INVALID_STATE",
        )
        self.current_state = current_state
        self.operation = operation


class InvalidAmountError(EscrowError):
    """Raised when an attached amount is not the exact amount required."""

    def __init__(self, message: str, amount: object = None, expected: int | None = None) -> None:
        super().__init__(message=message, code="INVALID_AMOUNT")
        self.amount = amount
        self.expected = expected


class ReentrantCallError(EscrowError):
    """Raised when an operation is invoked while another call on the same
    instance is still running (e.g. from a receiver hook mid-transfer)."""

    def __init__(self, address: str, operation: str) -> None:
        super().__init__(
            message=f"Reentrant call to {operation} on contract {address}",
            code="REENTRANT_CALL",
        )
        self.address = address
        self.operation = operation


# --- Contract Errors ---


class ContractNotFoundError(EscrowError):
    """Raised when a contract address does not exist."""

    def __init__(self, address: str) -> None:
        super().__init__(
            message=f"Contract not found: {address}",
            code="CONTRACT_NOT_FOUND",
        )
        self.address = address


class ContractExistsError(EscrowError):
    """Raised when registering a contract at an address already in use."""

    def __init__(self, address: str) -> None:
        super().__init__(
            message=f"Contract already registered: {address}",
            code="CONTRACT_EXISTS",
        )
        self.address = address


# --- Transfer Errors ---


class TransferError(EscrowError):
    """Raised when the ledger cannot complete a value transfer."""

    def __init__(self, message: str, source: str = "", destination: str = "", amount: int = 0) -> None:
        super().__init__(message=message, code="TRANSFER_FAILED")
        self.source = source
        self.destination = destination
        self.amount = amount


class TransferRejectedError(TransferError):
    """Raised when the destination's receiver hook refuses a transfer."""

    def __init__(self, destination: str, amount: int, reason: str = "") -> None:
        super().__init__(
            message=f"Transfer of {amount} rejected by {destination}: {reason}",
            destination=destination,
            amount=amount,
        )
        self.code = "TRANSFER_REJECTED"
        self.reason = reason


class InsufficientFundsError(TransferError):
    """Raised when the source account holds less than the transfer amount."""

    def __init__(self, source: str, required: int, available: int) -> None:
        super().__init__(
            message=f"Insufficient funds in {source}: required {required}, available {available}",
            source=source,
            amount=required,
        )
        self.code = "INSUFFICIENT_FUNDS"
        self.required = required
        self.available = available
