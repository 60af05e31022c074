from decimal import Decimal
from typing import Any, Dict

from personify_ledger.config import CENTS
from personify_ledger.db.models import BankAccount, TransferRecord
from personify_ledger.ledger.engine import TransferOutcome


def _money(value) -> Decimal:
    return Decimal(value).quantize(CENTS)


def serialize_account(a: BankAccount) -> Dict[str, Any]:
    return {
        "account_id": a.account_id,
        "display_name": a.display_name,
        "balance": _money(a.balance),
        "last_updated": a.last_updated,
    }


def serialize_transfer_record(t: TransferRecord) -> Dict[str, Any]:
    return {
        "transfer_id": t.transfer_id,
        "from_account": t.from_account,
        "to_account": t.to_account,
        "amount": _money(t.amount),
        "status": t.status,
        "error_message": t.error_message,
        "timestamp": t.timestamp,
    }


def serialize_outcome(o: TransferOutcome) -> Dict[str, Any]:
    if o.committed:
        return {
            "outcome": o.outcome,
            "message": o.message,
            "transfer_id": o.transfer_id,
            "from_balance": o.from_balance,
            "to_balance": o.to_balance,
        }
    return {
        "outcome": o.outcome,
        "message": o.message,
        "reason": o.reason.value if o.reason else None,
    }
