from fastapi import APIRouter

from .admin import router as admin_router
from .transactions import router as transactions_router


def create_api_router(prefix: str = "/api") -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(transactions_router, prefix="/transaction")
    router.include_router(admin_router, prefix="/admin")
    return router


__all__ = ["create_api_router"]
