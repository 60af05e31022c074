from fastapi import APIRouter, Depends, HTTPException

from personify_ledger.config import Settings
from personify_ledger.logging_config import get_logger
from personify_ledger.seed import seed_accounts
from .deps import get_app_settings, get_db
from .schemas import SeedIn

logger = get_logger("personify_ledger.api.admin")

router = APIRouter(tags=["admin"])


@router.post("/seed")
async def seed_demo(payload: SeedIn, db=Depends(get_db), settings: Settings = Depends(get_app_settings)):
    """
    Idempotent seeding of the demo accounts.
    Protected by SIMPLE_ADMIN_TOKEN in environment.
    """
    if payload.token != settings.admin_token:
        logger.warning("Admin seed unauthorized attempt")
        raise HTTPException(status_code=401, detail="Unauthorized")

    created = await seed_accounts(db)
    logger.info("Admin seed complete; created=%s accounts", created)
    return {"seeded_accounts_created": created}
