import logging

from personify_ledger.config import DEFAULT_DATABASE_URL, Settings
from personify_ledger.logging_config import get_logger, setup_logging


def test_settings_defaults(monkeypatch):
    for name in ("DATABASE_URL", "DATABASE_ECHO", "TRANSFER_TIMEOUT_SECONDS", "SIMPLE_ADMIN_TOKEN"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.database_url == DEFAULT_DATABASE_URL
    assert settings.is_sqlite
    assert settings.database_echo is False
    assert settings.transfer_timeout_seconds == 5.0
    assert settings.admin_token == "letmein"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://ledger:ledger@db/ledger")
    monkeypatch.setenv("DATABASE_ECHO", "true")
    monkeypatch.setenv("TRANSFER_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("SIMPLE_ADMIN_TOKEN", "s3cret")

    settings = Settings.from_env()

    assert not settings.is_sqlite
    assert settings.database_echo is True
    assert settings.transfer_timeout_seconds == 2.5
    assert settings.admin_token == "s3cret"


def test_setup_logging_writes_service_log(tmp_path, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    service_logger = setup_logging(tmp_path)
    get_logger("personify_ledger.tests").info("hello ledger")
    for handler in service_logger.handlers:
        handler.flush()

    assert service_logger.level == logging.DEBUG
    assert "hello ledger" in (tmp_path / "personify_ledger.log").read_text(encoding="utf-8")
