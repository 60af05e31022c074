from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from personify_ledger.ledger import (
    AccountNotFoundError,
    FailureReason,
    LedgerStore,
    TransferEngine,
    TransferLog,
    TransferValidationError,
)
from personify_ledger.logging_config import get_logger
from .deps import get_db, get_transfer_engine
from .schemas import AccountListOut, AccountOut, TransferIn, TransferOut, TransferRecordOut
from .serializers import serialize_account, serialize_outcome, serialize_transfer_record

logger = get_logger("personify_ledger.api.transactions")

router = APIRouter(tags=["transactions"])


@router.get("/accounts", response_model=AccountListOut)
async def list_accounts(db=Depends(get_db)):
    """
    Return every bank account ordered by id.
    """
    accounts = await LedgerStore(db).list_accounts()
    logger.info("Found %s accounts", len(accounts))
    return {"success": True, "accounts": [serialize_account(a) for a in accounts]}


@router.get("/accounts/{account_id}", response_model=AccountOut)
async def get_account(account_id: int, db=Depends(get_db)):
    try:
        account = await LedgerStore(db).get(account_id)
    except AccountNotFoundError:
        logger.warning("Account not found: %s", account_id)
        raise HTTPException(status_code=404, detail="Account not found")
    return serialize_account(account)


@router.get("/log", response_model=List[TransferRecordOut])
async def list_transfer_log(limit: int = Query(20, ge=1, le=500), db=Depends(get_db)):
    """
    Most recent transfer attempts, newest first.
    """
    records = await TransferLog(db).recent(limit)
    return [serialize_transfer_record(r) for r in records]


@router.post("/transfer", response_model=TransferOut, response_model_exclude_none=True)
async def transfer_funds(payload: TransferIn, engine: TransferEngine = Depends(get_transfer_engine)):
    """
    Move funds between two accounts as a single all-or-nothing unit of work.

    Rolled-back transfers answer 400 (500 for system errors) with the reason.
    """
    try:
        outcome = await engine.transfer(
            payload.from_account_id,
            payload.to_account_id,
            payload.amount,
            simulate_failure=payload.simulate_failure,
        )
    except TransferValidationError as e:
        logger.warning("Transfer request rejected: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    body = TransferOut(**serialize_outcome(outcome)).model_dump(mode="json", by_alias=True, exclude_none=True)
    if outcome.committed:
        return JSONResponse(status_code=200, content=body)
    status_code = 500 if outcome.reason is FailureReason.SYSTEM_ERROR else 400
    return JSONResponse(status_code=status_code, content=body)
