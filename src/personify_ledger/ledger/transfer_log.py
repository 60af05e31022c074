"""
Append-only audit trail of transfer attempts.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from personify_ledger.config import CENTS
from personify_ledger.db.models import TRANSFER_FAILED, TRANSFER_SUCCESS, TransferRecord


class TransferLog:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def append(
        self,
        *,
        from_account: int,
        to_account: int,
        amount: Decimal,
        status: str,
        error_message: Optional[str] = None,
    ) -> int:
        """
        Insert one record and return its transfer_id.

        The record becomes durable when the caller's transaction commits.
        """
        if status == TRANSFER_SUCCESS and error_message is not None:
            raise ValueError("error_message is only recorded for FAILED transfers")
        if status == TRANSFER_FAILED and not error_message:
            raise ValueError("FAILED transfers need an error_message")
        if status not in (TRANSFER_SUCCESS, TRANSFER_FAILED):
            raise ValueError(f"Unknown transfer status: {status}")

        record = TransferRecord(
            from_account=from_account,
            to_account=to_account,
            amount=Decimal(amount).quantize(CENTS),
            status=status,
            error_message=error_message,
            timestamp=datetime.now(timezone.utc),
        )
        self.session.add(record)
        await self.session.flush()
        return record.transfer_id

    async def recent(self, limit: int = 20) -> List[TransferRecord]:
        stmt = select(TransferRecord).order_by(TransferRecord.transfer_id.desc()).limit(limit)
        res = await self.session.execute(stmt)
        return list(res.scalars().all())
