from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.core.database import get_db
from taskflow.core.deps import get_current_user
from taskflow.domain.dashboard import DEFAULT_TREND_DAYS
from taskflow.models import User
from taskflow.schemas.base import ResponseEnvelope
from taskflow.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("/stats", response_model=ResponseEnvelope)
async def get_stats(current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    stats = await DashboardService(db).stats(current_user)
    return ResponseEnvelope(success=True, code="DSH_000", message="Dashboard stats", data=stats)


@router.get("/recent-activity", response_model=ResponseEnvelope)
async def get_recent_activity(
    limit: int = Query(10, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    activity = await DashboardService(db).recent_activity(current_user, limit)
    return ResponseEnvelope(success=True, code="DSH_000", message="Recent activity", data=activity)


@router.get("/upcoming-deadlines", response_model=ResponseEnvelope)
async def get_upcoming_deadlines(
    days: int = Query(7, ge=1, le=90),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tasks = await DashboardService(db).upcoming_deadlines(current_user, days)
    return ResponseEnvelope(
        success=True,
        code="DSH_000",
        message="Upcoming deadlines",
        data={"tasks": tasks, "count": len(tasks)},
    )


@router.get("/task-distribution", response_model=ResponseEnvelope)
async def get_task_distribution(current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    distribution = await DashboardService(db).task_distribution(current_user)
    return ResponseEnvelope(success=True, code="DSH_000", message="Task distribution", data=distribution)


@router.get("/productivity-trends", response_model=ResponseEnvelope)
async def get_productivity_trends(
    days: int = Query(DEFAULT_TREND_DAYS, ge=1, le=365),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    trends = await DashboardService(db).productivity_trends(current_user, days)
    return ResponseEnvelope(success=True, code="DSH_000", message="Productivity trends", data=trends)


@router.get("/project-progress", response_model=ResponseEnvelope)
async def get_project_progress(current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    projects = await DashboardService(db).project_progress(current_user)
    return ResponseEnvelope(success=True, code="DSH_000", message="Project progress", data={"projects": projects})
