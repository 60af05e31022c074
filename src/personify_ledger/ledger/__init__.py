"""Ledger store, transfer log and the transfer engine that ties them together."""

from .engine import (
    FailureReason,
    TransferEngine,
    TransferOutcome,
    TransferState,
    validate_transfer,
)
from .errors import (
    AccountNotFoundError,
    InsufficientBalanceError,
    LedgerConstraintError,
    SimulatedFailureError,
    TransferError,
    TransferValidationError,
)
from .locks import AccountLockRegistry
from .store import LedgerStore
from .transfer_log import TransferLog

__all__ = [
    "AccountLockRegistry",
    "AccountNotFoundError",
    "FailureReason",
    "InsufficientBalanceError",
    "LedgerConstraintError",
    "LedgerStore",
    "SimulatedFailureError",
    "TransferEngine",
    "TransferError",
    "TransferLog",
    "TransferOutcome",
    "TransferState",
    "TransferValidationError",
    "validate_transfer",
]
