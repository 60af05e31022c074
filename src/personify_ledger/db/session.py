from typing import Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from personify_ledger.config import get_settings

Base = declarative_base()

_engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[async_sessionmaker] = None


def _enable_sqlite_write_transactions(engine: AsyncEngine) -> None:
    """
    Make every SQLite transaction take the database write lock up front.

    pysqlite defers BEGIN until the first write, which would let two units of
    work read the same balance before either one updates it.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # stop the driver from emitting its own BEGIN
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    engine = create_async_engine(database_url, echo=echo, future=True)
    if database_url.startswith("sqlite"):
        _enable_sqlite_write_transactions(engine)
    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


def get_engine() -> AsyncEngine:
    global _engine, AsyncSessionLocal
    if _engine is None:
        settings = get_settings()
        _engine = build_engine(settings.database_url, echo=settings.database_echo)
        AsyncSessionLocal = build_session_factory(_engine)
    return _engine


def get_session_factory() -> async_sessionmaker:
    if AsyncSessionLocal is None:
        get_engine()
    assert AsyncSessionLocal is not None
    return AsyncSessionLocal


async def init_db(engine: Optional[AsyncEngine] = None) -> None:
    """Create the ledger tables if they do not exist yet."""
    from personify_ledger.db import models  # noqa: F401

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    global _engine, AsyncSessionLocal
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    AsyncSessionLocal = None
