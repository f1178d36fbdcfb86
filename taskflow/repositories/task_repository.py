from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.models import Task
from taskflow.models.enums import CLOSED_TASK_STATUSES, Priority, TaskStatus


@dataclass
class TaskFilter:
    project_id: Optional[int] = None
    status: Optional[TaskStatus] = None
    priority: Optional[Priority] = None
    assignee_id: Optional[str] = None
    search: Optional[str] = None
    overdue: bool = False


def _involves(user_id: str):
    """담당자 이거나 생성자인 작업"""
    return or_(Task.assignee_id == user_id, Task.creator_id == user_id)


def _overdue(now: datetime):
    return [Task.due_date.is_not(None), Task.due_date < now, Task.status.not_in(list(CLOSED_TASK_STATUSES))]


class TaskRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, task_id: int) -> Optional[Task]:
        result = await self.session.execute(
            select(Task)
            .where(Task.task_id == task_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def project_id_of(self, task_id: int) -> Optional[int]:
        result = await self.session.execute(select(Task.project_id).where(Task.task_id == task_id))
        return result.scalar_one_or_none()

    async def list_by_project(self, project_id: int) -> List[Task]:
        # 다른 요청이 commit 한 형제 작업의 값을 다시 읽어옴 (호출 전에 flush 되어 있어야 함)
        result = await self.session.execute(
            select(Task)
            .where(Task.project_id == project_id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_recent_by_project(self, project_id: int, limit: int = 20) -> List[Task]:
        result = await self.session.execute(
            select(Task)
            .where(Task.project_id == project_id)
            .order_by(Task.created_at.desc(), Task.task_id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_by_projects(self, project_ids: Sequence[int]) -> List[Task]:
        if not project_ids:
            return []
        result = await self.session.execute(select(Task).where(Task.project_id.in_(list(project_ids))))
        return list(result.scalars().all())

    async def list_for_user(self, user_id: str, include_archived: bool = False) -> List[Task]:
        query = select(Task).where(_involves(user_id))
        if not include_archived:
            query = query.where(Task.is_archived.is_(False))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def search_for_user(
        self,
        user_id: str,
        filters: TaskFilter,
        page: int,
        limit: int,
        now: datetime,
    ) -> Tuple[List[Task], int]:
        conditions = [_involves(user_id), Task.is_archived.is_(False)]
        if filters.project_id:
            conditions.append(Task.project_id == filters.project_id)
        if filters.status:
            conditions.append(Task.status == filters.status)
        if filters.priority:
            conditions.append(Task.priority == filters.priority)
        if filters.assignee_id:
            conditions.append(Task.assignee_id == filters.assignee_id)
        if filters.search:
            pattern = f"%{filters.search}%"
            conditions.append(or_(Task.title.ilike(pattern), Task.description.ilike(pattern)))
        if filters.overdue:
            conditions.extend(_overdue(now))

        result = await self.session.execute(
            select(Task)
            .where(*conditions)
            .order_by(Task.created_at.desc(), Task.task_id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        total = (await self.session.execute(select(func.count(Task.task_id)).where(*conditions))).scalar() or 0
        return list(result.scalars().all()), total

    async def list_overdue_for_user(self, user_id: str, now: datetime) -> List[Task]:
        result = await self.session.execute(
            select(Task)
            .where(_involves(user_id), Task.is_archived.is_(False), *_overdue(now))
            .order_by(Task.due_date.asc())
        )
        return list(result.scalars().all())

    async def add(self, task: Task) -> Task:
        self.session.add(task)
        await self.session.flush()
        return task

    async def delete(self, task: Task) -> None:
        await self.session.delete(task)
        await self.session.flush()
