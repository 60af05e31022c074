import os
import tempfile

# Keep test runs from writing logs into the working tree
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="personify-ledger-logs-"))

from decimal import Decimal
from typing import Dict, List

import pytest
from sqlalchemy import select

from personify_ledger.db.models import BankAccount, TransferRecord
from personify_ledger.db.session import build_engine, build_session_factory, init_db
from personify_ledger.ledger import TransferEngine


@pytest.fixture
async def db_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest.fixture
def make_accounts(session_factory):
    async def _make(balances: Dict[int, str]) -> None:
        names = {1: "Alice", 2: "Bob", 3: "Charlie", 4: "Dana"}
        async with session_factory() as session:
            async with session.begin():
                for account_id, balance in balances.items():
                    session.add(
                        BankAccount(
                            account_id=account_id,
                            display_name=names.get(account_id, f"Account {account_id}"),
                            balance=Decimal(balance),
                        )
                    )

    return _make


@pytest.fixture
def transfer_engine(session_factory):
    return TransferEngine(session_factory, timeout_seconds=5)


@pytest.fixture
def read_balances(session_factory):
    async def _read() -> Dict[int, Decimal]:
        async with session_factory() as session:
            res = await session.execute(select(BankAccount))
            return {a.account_id: Decimal(a.balance) for a in res.scalars().all()}

    return _read


@pytest.fixture
def read_log(session_factory):
    async def _read() -> List[TransferRecord]:
        async with session_factory() as session:
            res = await session.execute(select(TransferRecord).order_by(TransferRecord.transfer_id))
            return list(res.scalars().all())

    return _read
