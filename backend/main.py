"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import accounts, items, plaid, users
from config import settings
from logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the active Plaid environment on startup."""
    if settings.PLAID_CLIENT_ID and settings.PLAID_SECRET:
        logger.info("Plaid configured for %s environment", settings.PLAID_ENVIRONMENT)
    else:
        logger.warning("Plaid credentials not set; link and sync endpoints will fail")
    yield


app = FastAPI(
    title="Compound Ledger",
    description="Cursor-based Plaid transaction sync into a local ledger",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(users.router)
app.include_router(plaid.router)
app.include_router(items.router)
app.include_router(accounts.router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
