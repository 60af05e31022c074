"""
Ledger store: keyed access to bank account rows inside the caller's unit of work.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from personify_ledger.config import CENTS
from personify_ledger.db.models import BankAccount
from personify_ledger.logging_config import get_logger
from .errors import AccountNotFoundError, LedgerConstraintError

logger = get_logger("personify_ledger.ledger.store")


class LedgerStore:
    """
    Reads and writes ``bank_accounts`` through a session the caller owns.

    The store never commits; whoever opened the transaction decides whether
    it is committed or rolled back.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, account_id: int, for_update: bool = False, role: str = "Account") -> BankAccount:
        stmt = select(BankAccount).where(BankAccount.account_id == account_id)
        if for_update:
            # Row lock on PostgreSQL; SQLite already holds the write lock
            stmt = stmt.with_for_update()
        res = await self.session.execute(stmt)
        account = res.scalars().first()
        if account is None:
            raise AccountNotFoundError(account_id, role)
        return account

    async def apply_delta(self, account_id: int, delta: Decimal) -> BankAccount:
        """
        Add ``delta`` (negative for a debit) to an account balance.

        A balance that would drop below zero is refused before any write; the
        table's CHECK constraint backs that up in ``_write_balance``.
        """
        account = await self.get(account_id, for_update=True)
        new_balance = (Decimal(account.balance) + Decimal(delta)).quantize(CENTS)
        if new_balance < 0:
            logger.warning(
                "Refusing negative balance account_id=%s delta=%s new_balance=%s",
                account_id,
                delta,
                new_balance,
            )
            raise LedgerConstraintError(
                f"Balance of account {account_id} cannot go below zero (attempted {new_balance})"
            )
        return await self._write_balance(account, new_balance)

    async def _write_balance(self, account: BankAccount, new_balance: Decimal) -> BankAccount:
        account_id = account.account_id
        stmt = (
            update(BankAccount)
            .where(BankAccount.account_id == account_id)
            .values(balance=new_balance, last_updated=datetime.now(timezone.utc))
            .execution_options(synchronize_session="evaluate")
        )
        try:
            res = await self.session.execute(stmt)
        except IntegrityError as e:
            logger.warning(
                "Balance constraint rejected update account_id=%s new_balance=%s",
                account_id,
                new_balance,
            )
            raise LedgerConstraintError(
                f"Balance of account {account_id} cannot go below zero (attempted {new_balance})"
            ) from e

        if res.rowcount == 0:
            raise AccountNotFoundError(account_id)
        # "evaluate" already refreshed the in-session row
        return account

    async def list_accounts(self) -> List[BankAccount]:
        stmt = select(BankAccount).order_by(BankAccount.account_id)
        res = await self.session.execute(stmt)
        return list(res.scalars().all())

    async def total_balance(self) -> Decimal:
        # Summed in Python; Money values come back as quantized Decimals
        accounts = await self.list_accounts()
        return sum((Decimal(a.balance) for a in accounts), Decimal("0.00")).quantize(CENTS)
