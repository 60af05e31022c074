"""
Seed the demo bank accounts.

Run with ``python -m personify_ledger.seed`` to create the tables and insert
Alice, Bob and Charlie when the accounts table is empty.
"""

import asyncio
from decimal import Decimal
from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from personify_ledger.db.models import BankAccount
from personify_ledger.db.session import dispose_engine, get_session_factory, init_db
from personify_ledger.logging_config import get_logger, setup_logging

logger = get_logger("personify_ledger.seed")

SEED_ACCOUNTS = [
    {"account_id": 1, "display_name": "Alice", "balance": Decimal("500.00")},
    {"account_id": 2, "display_name": "Bob", "balance": Decimal("300.00")},
    {"account_id": 3, "display_name": "Charlie", "balance": Decimal("150.00")},
]


async def seed_accounts(session: AsyncSession) -> int:
    """
    Insert the demo accounts if none exist. Returns how many were created.
    """
    created = 0
    async with session.begin():
        res = await session.execute(select(func.count()).select_from(BankAccount))
        if (res.scalar_one() or 0) > 0:
            logger.info("Accounts already exist, skipping seed data")
            return 0
        for acct in SEED_ACCOUNTS:
            session.add(BankAccount(**acct))
            created += 1
    logger.info("Seeded %s bank accounts", created)
    return created


async def main() -> List[BankAccount]:
    await init_db()
    async with get_session_factory()() as session:
        await seed_accounts(session)
        res = await session.execute(select(BankAccount).order_by(BankAccount.account_id))
        accounts = list(res.scalars().all())
    await dispose_engine()
    return accounts


if __name__ == "__main__":
    setup_logging()
    for account in asyncio.run(main()):
        print(account.account_id, account.display_name, account.balance)
