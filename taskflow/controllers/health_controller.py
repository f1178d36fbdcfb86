from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.core.config import settings
from taskflow.core.database import get_db
from taskflow.schemas.base import ResponseEnvelope
from taskflow.utils.timezone import format_iso, utc_now

router = APIRouter()


@router.get("", response_model=ResponseEnvelope)
async def health_check(db: AsyncSession = Depends(get_db)):
    await db.execute(text("SELECT 1"))
    return ResponseEnvelope(
        success=True,
        code="SYS_000",
        message="TaskFlow API is running",
        data={"status": "healthy", "env": settings.ENV, "timestamp": format_iso(utc_now())},
    )
