"""Transfer domain exceptions."""

from decimal import Decimal


class TransferError(Exception):
    """Base class for ledger and transfer errors."""


class TransferValidationError(TransferError):
    """Raised when a transfer request is rejected before any unit of work opens."""


class AccountNotFoundError(TransferError):
    """Raised when a referenced account does not exist."""

    def __init__(self, account_id: int, role: str = "Account"):
        self.account_id = account_id
        self.role = role
        super().__init__(f"{role} account {account_id} not found")


class InsufficientBalanceError(TransferError):
    """Raised when the source account cannot cover the transfer amount."""

    def __init__(self, account_id: int, available: Decimal, required: Decimal):
        self.account_id = account_id
        self.available = available
        self.required = required
        super().__init__(
            f"Insufficient balance in account {account_id}. "
            f"Available: ${available}, Required: ${required}"
        )


class SimulatedFailureError(TransferError):
    """Raised on purpose to exercise the rollback path."""

    def __init__(self):
        super().__init__("Simulated error: Transaction intentionally failed for testing")


class LedgerConstraintError(TransferError):
    """Raised when a write would leave an account balance negative."""
