"""
PocketBank FastAPI application.

This is the entry point for the application.
All routers are registered here.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from pocketbank.config import get_settings
from pocketbank.logging_config import setup_logging, get_logger
from pocketbank.models.base import engine, init_db
from pocketbank.api.health import router as health_router
from pocketbank.api.transfers import router as transfers_router
from pocketbank.api.bills import router as bills_router
from pocketbank.api.wallet import router as wallet_router
from pocketbank.api.accounts import router as accounts_router
from pocketbank.api.history import router as history_router
from pocketbank.api.transactions import router as transactions_router

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger = get_logger("pocketbank")
    # Create missing tables once, before the first request
    init_db()
    logger.info(
        "%s %s started (%s)",
        settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT,
    )
    yield
    engine.dispose()
    logger.info("%s stopped", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Wallets, linked bank accounts, peer transfers and bill payments",
    lifespan=lifespan,
)

# Register routers
app.include_router(health_router)
app.include_router(transfers_router)
app.include_router(bills_router)
app.include_router(wallet_router)
app.include_router(accounts_router)
app.include_router(history_router)
app.include_router(transactions_router)
