"""Health check endpoint."""
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from retreat_store.database import engine
from retreat_store.config import get_settings
from retreat_store.version import APP_VERSION
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "error", "detail": "Database connection failed"},
        )

    return {"status": "ok", "database": "connected"}


@router.get("/status")
async def app_status():
    """Version and environment information for the frontend footer."""
    settings = get_settings()
    return {
        "version": APP_VERSION,
        "environment": settings.environment,
    }
