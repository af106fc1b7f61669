"""
Health check endpoint.
"""

from fastapi import APIRouter, Request
from sqlalchemy import text

from mingle.utils.logger import get_logger

router = APIRouter(tags=["health"])
logger = get_logger(__name__)


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint; also pings the store."""
    try:
        with request.app.state.db.session() as session:
            session.execute(text("SELECT 1"))
        database = "ok"
    except Exception as e:
        logger.warning(f"Health check could not reach the database: {e}")
        database = "unavailable"
    return {"status": "healthy" if database == "ok" else "degraded", "service": "mingle-api", "database": database}
