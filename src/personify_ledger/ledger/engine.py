"""
Transfer engine: moves funds between two bank accounts as one unit of work.

A transfer walks a fixed sequence of states. Any failure after the unit of
work opens rolls it back and is recorded in the transfer log through a
separate transaction, so the audit trail survives the rollback. Callers always
get a TransferOutcome back; only malformed input raises.
"""

import asyncio
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from personify_ledger.config import CENTS
from personify_ledger.db.models import TRANSFER_FAILED, TRANSFER_SUCCESS, BankAccount
from personify_ledger.logging_config import get_logger
from .errors import (
    AccountNotFoundError,
    InsufficientBalanceError,
    LedgerConstraintError,
    SimulatedFailureError,
    TransferValidationError,
)
from .locks import AccountLockRegistry
from .store import LedgerStore
from .transfer_log import TransferLog

logger = get_logger("personify_ledger.ledger.engine")


class TransferState(str, Enum):
    VALIDATING = "VALIDATING"
    BEGINNING = "BEGINNING"
    CHECKING_SOURCE = "CHECKING_SOURCE"
    CHECKING_DESTINATION = "CHECKING_DESTINATION"
    FAULT_INJECTION = "FAULT_INJECTION"
    DEBITING = "DEBITING"
    CREDITING = "CREDITING"
    LOGGING = "LOGGING"
    COMMITTING = "COMMITTING"
    COMMITTED = "COMMITTED"
    ROLLING_BACK = "ROLLING_BACK"
    LOGGING_FAILURE = "LOGGING_FAILURE"
    FAILED = "FAILED"


class FailureReason(str, Enum):
    ACCOUNT_NOT_FOUND = "AccountNotFound"
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    SIMULATED_FAILURE = "SimulatedFailure"
    SYSTEM_ERROR = "SystemError"


OUTCOME_COMMITTED = "COMMITTED"
OUTCOME_ROLLED_BACK = "ROLLED_BACK"

# Largest value a Numeric(15, 2) column holds
MAX_AMOUNT = Decimal("9999999999999.99")


@dataclass
class TransferOutcome:
    committed: bool
    message: str
    transfer_id: Optional[int] = None
    from_balance: Optional[Decimal] = None
    to_balance: Optional[Decimal] = None
    reason: Optional[FailureReason] = None

    @property
    def outcome(self) -> str:
        return OUTCOME_COMMITTED if self.committed else OUTCOME_ROLLED_BACK


@dataclass
class _Attempt:
    from_account_id: int
    to_account_id: int
    amount: Decimal
    simulate_failure: bool
    state: TransferState = TransferState.VALIDATING


def _parse_amount(amount: Any) -> Decimal:
    if amount is None or isinstance(amount, bool):
        raise TransferValidationError("Amount must be a positive number")
    try:
        # floats go through str() so 0.1 stays 0.1
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise TransferValidationError("Amount must be a positive number")
    if not value.is_finite() or value <= 0:
        raise TransferValidationError("Amount must be a positive number")
    if value > MAX_AMOUNT:
        raise TransferValidationError(f"Amount cannot exceed {MAX_AMOUNT}")
    if value != value.quantize(CENTS):
        raise TransferValidationError("Amount cannot have more than two decimal places")
    return value.quantize(CENTS)


def _parse_account_id(account_id: Any) -> int:
    if isinstance(account_id, bool) or not isinstance(account_id, int) or account_id < 1:
        raise TransferValidationError("Account ids must be positive integers")
    return account_id


def validate_transfer(from_account_id: Any, to_account_id: Any, amount: Any) -> Tuple[int, int, Decimal]:
    """
    Check a transfer request before any unit of work opens.

    Raises TransferValidationError; nothing is written for rejected input.
    """
    # 0 and "" count as missing, like None
    if not from_account_id or not to_account_id:
        raise TransferValidationError("Both fromAccountId and toAccountId are required")
    from_id = _parse_account_id(from_account_id)
    to_id = _parse_account_id(to_account_id)
    value = _parse_amount(amount)
    if from_id == to_id:
        raise TransferValidationError("Cannot transfer to the same account")
    return from_id, to_id, value


class TransferEngine:
    def __init__(
        self,
        session_factory: async_sessionmaker,
        locks: Optional[AccountLockRegistry] = None,
        timeout_seconds: float = 5.0,
    ) -> None:
        self.session_factory = session_factory
        self.locks = locks or AccountLockRegistry()
        self.timeout_seconds = timeout_seconds

    async def transfer(
        self,
        from_account_id: Any,
        to_account_id: Any,
        amount: Any,
        simulate_failure: bool = False,
    ) -> TransferOutcome:
        from_id, to_id, value = validate_transfer(from_account_id, to_account_id, amount)
        attempt = _Attempt(from_id, to_id, value, bool(simulate_failure))
        logger.info(
            "Transfer request from=%s to=%s amount=%s simulate_failure=%s",
            from_id,
            to_id,
            value,
            attempt.simulate_failure,
        )

        try:
            return await self._run_unit_of_work(attempt)
        except AccountNotFoundError as e:
            reason, message = FailureReason.ACCOUNT_NOT_FOUND, str(e)
        except (InsufficientBalanceError, LedgerConstraintError) as e:
            reason, message = FailureReason.INSUFFICIENT_BALANCE, str(e)
        except SimulatedFailureError as e:
            reason, message = FailureReason.SIMULATED_FAILURE, str(e)
        except asyncio.TimeoutError:
            logger.error(
                "Transfer timed out in state=%s after %ss from=%s to=%s",
                attempt.state.value,
                self.timeout_seconds,
                from_id,
                to_id,
            )
            reason = FailureReason.SYSTEM_ERROR
            message = f"System error: transfer did not complete within {self.timeout_seconds}s"
        except SQLAlchemyError as e:
            logger.exception("Transfer failed (DB error) in state=%s: %s", attempt.state.value, e)
            reason, message = FailureReason.SYSTEM_ERROR, "System error: database error during transfer"
        except Exception as e:
            logger.exception("Transfer failed in state=%s: %s", attempt.state.value, e)
            reason, message = FailureReason.SYSTEM_ERROR, "System error: unexpected failure during transfer"

        return await self._fail(attempt, reason, message)

    async def _run_unit_of_work(self, attempt: _Attempt) -> TransferOutcome:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout_seconds
        account_ids = (attempt.from_account_id, attempt.to_account_id)

        async with self.locks.hold(account_ids, timeout=self.timeout_seconds):
            self._advance(attempt, TransferState.BEGINNING)
            async with self.session_factory() as session:
                async with session.begin():
                    # The deadline stops at the SUCCESS record; COMMIT always runs to completion
                    transfer_id, debited, credited = await asyncio.wait_for(
                        self._apply(session, attempt), timeout=max(deadline - loop.time(), 0)
                    )
                    from_balance = Decimal(debited.balance).quantize(CENTS)
                    to_balance = Decimal(credited.balance).quantize(CENTS)
                    self._advance(attempt, TransferState.COMMITTING)

        self._advance(attempt, TransferState.COMMITTED)
        logger.info(
            "Transfer success transfer_id=%s from=%s to=%s amount=%s balances=%s/%s",
            transfer_id,
            attempt.from_account_id,
            attempt.to_account_id,
            attempt.amount,
            from_balance,
            to_balance,
        )
        return TransferOutcome(
            committed=True,
            message=(
                f"Successfully transferred ${attempt.amount} from "
                f"{debited.display_name} to {credited.display_name}"
            ),
            transfer_id=transfer_id,
            from_balance=from_balance,
            to_balance=to_balance,
        )

    async def _apply(self, session: AsyncSession, attempt: _Attempt) -> Tuple[int, BankAccount, BankAccount]:
        store = LedgerStore(session)
        transfer_log = TransferLog(session)

        self._advance(attempt, TransferState.CHECKING_SOURCE)
        source = await store.get(attempt.from_account_id, for_update=True, role="Source")
        available = Decimal(source.balance)
        if available < attempt.amount:
            raise InsufficientBalanceError(attempt.from_account_id, available, attempt.amount)

        self._advance(attempt, TransferState.CHECKING_DESTINATION)
        await store.get(attempt.to_account_id, for_update=True, role="Destination")

        self._advance(attempt, TransferState.FAULT_INJECTION)
        if attempt.simulate_failure:
            logger.info("Simulated error triggered - forcing rollback")
            raise SimulatedFailureError()

        self._advance(attempt, TransferState.DEBITING)
        debited = await store.apply_delta(attempt.from_account_id, -attempt.amount)

        self._advance(attempt, TransferState.CREDITING)
        credited = await store.apply_delta(attempt.to_account_id, attempt.amount)

        self._advance(attempt, TransferState.LOGGING)
        transfer_id = await transfer_log.append(
            from_account=attempt.from_account_id,
            to_account=attempt.to_account_id,
            amount=attempt.amount,
            status=TRANSFER_SUCCESS,
        )
        return transfer_id, debited, credited

    async def _fail(self, attempt: _Attempt, reason: FailureReason, message: str) -> TransferOutcome:
        # The unit of work has already been rolled back by the time we get here
        failed_in = attempt.state
        self._advance(attempt, TransferState.ROLLING_BACK)
        if reason is FailureReason.SYSTEM_ERROR:
            logger.error("Transfer rolled back in state=%s reason=%s", failed_in.value, reason.value)
        else:
            logger.warning(
                "Transfer rolled back in state=%s reason=%s message=%s", failed_in.value, reason.value, message
            )

        self._advance(attempt, TransferState.LOGGING_FAILURE)
        transfer_id = await self._record_failure(attempt, message)

        self._advance(attempt, TransferState.FAILED)
        return TransferOutcome(
            committed=False,
            message=message,
            transfer_id=transfer_id,
            reason=reason,
        )

    async def _record_failure(self, attempt: _Attempt, message: str) -> Optional[int]:
        """
        Write the FAILED record in its own transaction.

        A failure here is reported in the log only; the ledger is not touched again.
        """
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    return await TransferLog(session).append(
                        from_account=attempt.from_account_id,
                        to_account=attempt.to_account_id,
                        amount=attempt.amount,
                        status=TRANSFER_FAILED,
                        error_message=message,
                    )
        except Exception as e:
            logger.exception(
                "Failed to log failed transfer from=%s to=%s amount=%s: %s",
                attempt.from_account_id,
                attempt.to_account_id,
                attempt.amount,
                e,
            )
            return None

    @staticmethod
    def _advance(attempt: _Attempt, state: TransferState) -> None:
        logger.debug(
            "Transfer %s->%s: %s -> %s",
            attempt.from_account_id,
            attempt.to_account_id,
            attempt.state.value,
            state.value,
        )
        attempt.state = state
