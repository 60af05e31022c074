from typing import AsyncGenerator

from fastapi import Request

from personify_ledger.config import Settings, get_settings
from personify_ledger.db.session import get_session_factory
from personify_ledger.ledger.engine import TransferEngine


async def get_db() -> AsyncGenerator:
    """
    Async DB session dependency for FastAPI routes.
    """
    async with get_session_factory()() as session:
        yield session


def get_transfer_engine(request: Request) -> TransferEngine:
    """
    The engine is shared app-wide so every request sees the same account locks.
    """
    return request.app.state.transfer_engine


def get_app_settings() -> Settings:
    return get_settings()
