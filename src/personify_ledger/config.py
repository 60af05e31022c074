"""
Environment-driven settings for personify-ledger.

Values come from the process environment, optionally seeded from a .env file.
"""

import os
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv, find_dotenv

load_dotenv(find_dotenv(usecwd=True), override=False)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./personify_ledger.db"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    database_echo: bool = False
    transfer_timeout_seconds: float = 5.0
    admin_token: str = "letmein"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL,
            database_echo=_env_bool("DATABASE_ECHO"),
            transfer_timeout_seconds=float(os.getenv("TRANSFER_TIMEOUT_SECONDS", "5")),
            admin_token=os.getenv("SIMPLE_ADMIN_TOKEN", "letmein"),
        )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()


# Currency values are stored with two fractional digits
CENTS = Decimal("0.01")
