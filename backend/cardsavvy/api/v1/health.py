"""Health check endpoint with dependency verification."""
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from cardsavvy.config import get_settings
from cardsavvy.db.session import async_engine

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check():
    """
    Health check endpoint with dependency verification.

    Checks:
    - Database connectivity (SELECT 1 query)
    - Perplexity API key presence

    Returns:
        JSON response with overall status and individual check results
    """
    checks = {}
    overall_healthy = True

    try:
        async with async_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        checks["database"] = f"error: {type(e).__name__}"
        overall_healthy = False

    if get_settings().perplexity_configured:
        checks["perplexity"] = "ok"
    else:
        checks["perplexity"] = "error: API key not configured"
        overall_healthy = False

    return JSONResponse(
        status_code=200 if overall_healthy else 503,
        content={
            "status": "healthy" if overall_healthy else "unhealthy",
            "service": "cardsavvy",
            "checks": checks,
        },
    )
