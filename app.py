"""
VoiceRef Backend - automated reference checks over the phone.

Run with:
    uvicorn app:app --reload
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config import ENVIRONMENT
from src.database import close_db_pool, get_db_pool, run_schema_migrations
from src.exceptions import register_exception_handlers
from src.routers import (
    calls_router,
    cron_router,
    health_router,
    reference_checks_router,
    references_router,
    vapi_router,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - create the database pool and schema on startup."""
    pool = await get_db_pool()
    await run_schema_migrations(pool)
    logger.info(f"VoiceRef backend started (environment={ENVIRONMENT})")
    yield
    # Cleanup on shutdown
    await close_db_pool()


app = FastAPI(title="VoiceRef Backend", lifespan=lifespan)

# CORS middleware for the recruiter dashboard and reference pages
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    allow_credentials=True,
)

register_exception_handlers(app)

app.include_router(health_router)
app.include_router(reference_checks_router)
app.include_router(references_router)
app.include_router(calls_router)
app.include_router(cron_router)
app.include_router(vapi_router)
