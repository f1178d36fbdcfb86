from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.models import Project, ProjectMember
from taskflow.models.enums import Priority, ProjectStatus


def _visible_to(user_id: str):
    """owner 이거나 members에 포함된 프로젝트"""
    return or_(Project.owner_id == user_id, Project.members.any(ProjectMember.user_id == user_id))


class ProjectRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, project_id: int) -> Optional[Project]:
        # populate_existing: 같은 세션에서 변경된 members 컬렉션까지 다시 읽어옴
        result = await self.session.execute(
            select(Project)
            .where(Project.project_id == project_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def search_for_user(
        self,
        user_id: str,
        page: int,
        limit: int,
        status: Optional[ProjectStatus] = None,
        priority: Optional[Priority] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Project], int]:
        conditions = [_visible_to(user_id)]
        if status:
            conditions.append(Project.status == status)
        if priority:
            conditions.append(Project.priority == priority)
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(Project.title.ilike(pattern), Project.description.ilike(pattern)))

        result = await self.session.execute(
            select(Project)
            .where(*conditions)
            .order_by(Project.updated_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        total = (await self.session.execute(select(func.count(Project.project_id)).where(*conditions))).scalar() or 0
        return list(result.scalars().all()), total

    async def list_for_user(self, user_id: str) -> List[Project]:
        result = await self.session.execute(select(Project).where(_visible_to(user_id)))
        return list(result.scalars().all())

    async def list_ids_for_user(self, user_id: str) -> List[int]:
        result = await self.session.execute(select(Project.project_id).where(_visible_to(user_id)))
        return list(result.scalars().all())

    async def add(self, project: Project) -> Project:
        self.session.add(project)
        await self.session.flush()
        return project

    async def delete(self, project: Project) -> None:
        await self.session.delete(project)
        await self.session.flush()
