from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.core.logging import setup_logger

logger = setup_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request, db: AsyncSession = Depends(get_db)):
    try:
        await db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        logger.exception("Database health check failed")
        database = "unavailable"

    return {
        "success": database == "ok",
        "data": {
            "status": "ok" if database == "ok" else "degraded",
            "database": database,
            "version": request.app.version,
        },
    }
