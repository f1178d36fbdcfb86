"""
대시보드 서비스: 사용자 범위의 작업/프로젝트 스냅샷을 읽어 집계 함수에 넘김
"""
import logging
from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.domain import dashboard
from taskflow.models import User
from taskflow.repositories.project_repository import ProjectRepository
from taskflow.repositories.task_repository import TaskRepository
from taskflow.schemas.task import TaskResponse
from taskflow.utils.timezone import format_iso, utc_now

logger = logging.getLogger(__name__)


def _task_summary(task) -> Dict[str, Any]:
    return TaskResponse.from_model(task).model_dump(
        include={"task_id", "title", "status", "priority", "progress", "due_date", "is_overdue",
                 "days_until_due", "project", "assignee", "updated_at"},
        mode="json",
    )


class DashboardService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.tasks = TaskRepository(session)
        self.projects = ProjectRepository(session)

    async def stats(self, user: User) -> Dict[str, Any]:
        tasks = await self.tasks.list_for_user(user.user_id)
        projects = await self.projects.list_for_user(user.user_id)
        return dashboard.dashboard_stats(tasks, projects, utc_now())

    async def recent_activity(self, user: User, limit: int = 10) -> Dict[str, List[Dict[str, Any]]]:
        tasks = await self.tasks.list_for_user(user.user_id)
        projects = await self.projects.list_for_user(user.user_id)
        activity = dashboard.recent_activity(tasks, projects, utc_now(), limit=limit)
        return {
            "recent_tasks": [_task_summary(task) for task in activity["recent_tasks"]],
            "recent_projects": [
                {
                    "project_id": project.project_id,
                    "title": project.title,
                    "status": project.status,
                    "progress": project.progress,
                    "color": project.color,
                    "updated_at": format_iso(project.updated_at),
                }
                for project in activity["recent_projects"]
            ],
        }

    async def upcoming_deadlines(self, user: User, days: int = 7, limit: int = 10) -> List[Dict[str, Any]]:
        tasks = await self.tasks.list_for_user(user.user_id)
        return [_task_summary(task) for task in dashboard.upcoming_deadlines(tasks, utc_now(), days, limit)]

    async def task_distribution(self, user: User) -> Dict[str, List[Dict[str, Any]]]:
        tasks = await self.tasks.list_for_user(user.user_id)
        return dashboard.task_distribution(tasks)

    async def productivity_trends(self, user: User, days: int = dashboard.DEFAULT_TREND_DAYS) -> Dict[str, Any]:
        tasks = await self.tasks.list_for_user(user.user_id, include_archived=True)
        return dashboard.productivity_trends(tasks, user.user_id, utc_now(), days)

    async def project_progress(self, user: User) -> List[Dict[str, Any]]:
        """사용자 프로젝트별 진행률 + 작업 상태 통계 (진행률 높은 순)"""
        projects = await self.projects.list_for_user(user.user_id)
        tasks = await self.tasks.list_by_projects([project.project_id for project in projects])
        by_project: Dict[int, list] = {project.project_id: [] for project in projects}
        for task in tasks:
            by_project[task.project_id].append(task)

        result = []
        for project in projects:
            project_tasks = by_project[project.project_id]
            result.append({
                "project_id": project.project_id,
                "title": project.title,
                "color": project.color,
                "status": project.status,
                "progress": project.progress,
                "task_stats": dashboard.project_task_stats(project_tasks),
            })
        result.sort(key=lambda item: item["progress"], reverse=True)
        return result
