"""
personify_ledger/app.py

FastAPI application entrypoint for the Personify ledger service.

This module wires together:
- Logging configuration (file-based under logs/)
- CORS and request logging middleware
- The shared TransferEngine and the /api routers
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request

from personify_ledger import __version__
from personify_ledger.api import create_api_router
from personify_ledger.config import get_settings
from personify_ledger.db.session import dispose_engine, get_session_factory, init_db
from personify_ledger.ledger import TransferEngine
from personify_ledger.logging_config import get_logger, setup_logging

logger = get_logger("personify_ledger")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("Personify ledger starting up; DATABASE_URL=%s", settings.database_url)
    await init_db()
    app.state.transfer_engine = TransferEngine(
        get_session_factory(), timeout_seconds=settings.transfer_timeout_seconds
    )
    yield
    try:
        await dispose_engine()
    except Exception:
        logger.exception("Error disposing engine on shutdown")
    logger.info("Personify ledger shutting down")


def create_app() -> FastAPI:
    app = FastAPI(title="Personify Ledger API", version=__version__, lifespan=lifespan)

    # CORS (open for demo)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Lightweight request logger to help trace ledger traffic.
        """
        try:
            body = await request.body()
            logger.info(
                "HTTP %s %s from %s body=%s",
                request.method,
                request.url.path,
                request.client.host if request.client else "?",
                body.decode(errors="ignore")[:200],
            )
        except Exception:
            logger.exception("Failed to read request body for logging")
        return await call_next(request)

    @app.get("/api/health")
    async def health():
        """
        Simple health check endpoint.
        """
        return {"status": "healthy"}

    app.include_router(create_api_router("/api"))
    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import os

    import uvicorn

    # Run with: python -m personify_ledger.app  OR uvicorn personify_ledger.app:app --reload --port 9000
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "9000")), log_level="info")
