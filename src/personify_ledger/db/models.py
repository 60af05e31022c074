from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.sql import func
from sqlalchemy.types import TypeDecorator

from personify_ledger.config import CENTS
from personify_ledger.db.session import Base

TRANSFER_SUCCESS = "SUCCESS"
TRANSFER_FAILED = "FAILED"


class Money(TypeDecorator):
    """
    Two-decimal money column.

    NUMERIC(15, 2) on PostgreSQL. SQLite has no exact decimal type and would
    store NUMERIC as REAL, so there the value is kept as integer cents.
    """

    impl = Numeric(15, 2, asdecimal=True)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(Integer())
        return dialect.type_descriptor(Numeric(15, 2, asdecimal=True))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = Decimal(value).quantize(CENTS)
        if dialect.name == "sqlite":
            return int(value * 100)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "sqlite":
            return (Decimal(value) / 100).quantize(CENTS)
        return Decimal(value).quantize(CENTS)


class BankAccount(Base):
    __tablename__ = "bank_accounts"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_bank_accounts_balance_non_negative"),
    )

    account_id = Column(Integer, primary_key=True, autoincrement=False)
    display_name = Column(String(50), nullable=False)
    balance = Column(Money(), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_updated = Column(DateTime(timezone=True), server_default=func.now())


class TransferRecord(Base):
    __tablename__ = "transfer_log"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transfer_log_amount_positive"),
        CheckConstraint(
            f"status IN ('{TRANSFER_SUCCESS}', '{TRANSFER_FAILED}')",
            name="ck_transfer_log_status",
        ),
        {"sqlite_autoincrement": True},
    )

    transfer_id = Column(Integer, primary_key=True, autoincrement=True)
    # Historical pointers only; accounts are not foreign-keyed
    from_account = Column(Integer, nullable=False, index=True)
    to_account = Column(Integer, nullable=False, index=True)
    amount = Column(Money(), nullable=False)
    status = Column(String(20), nullable=False)
    error_message = Column(Text, nullable=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now())
