from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.core.config import settings
from app.core.database import get_db
from app.schemas.base import ResponseBase

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/health", response_model=ResponseBase)
async def health_check(db: AsyncSession = Depends(get_db)):
    """Liveness plus a database round trip."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check database query failed: {str(e)}")
        return ResponseBase(success=False, message="Database unavailable")
    return ResponseBase(success=True, message=f"{settings.APP_NAME} is healthy")
