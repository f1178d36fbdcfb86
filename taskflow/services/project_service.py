"""
프로젝트 서비스: CRUD + 멤버 관리
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.domain import membership
from taskflow.domain.errors import NotFoundError, ValidationError
from taskflow.domain.permissions import (
    Permission,
    can_delete_project,
    can_edit_project,
    can_manage_members,
    can_remove_member,
    can_view_project,
    require,
)
from taskflow.domain.rules import sync_project_status
from taskflow.models import Project, Task, User
from taskflow.models.enums import Priority, ProjectStatus
from taskflow.repositories.project_repository import ProjectRepository
from taskflow.repositories.task_repository import TaskRepository
from taskflow.repositories.user_repository import UserRepository
from taskflow.schemas.project import ProjectCreate, ProjectUpdate
from taskflow.services.file_service import FileService
from taskflow.services.locks import project_locks
from taskflow.utils.timezone import utc_now

logger = logging.getLogger(__name__)

RECENT_TASKS_LIMIT = 20


class ProjectService:
    def __init__(self, session: AsyncSession, file_service: Optional[FileService] = None):
        self.session = session
        self.file_service = file_service
        self.projects = ProjectRepository(session)
        self.tasks = TaskRepository(session)
        self.users = UserRepository(session)

    async def load(self, project_id: int) -> Project:
        project = await self.projects.get(project_id)
        if project is None:
            raise NotFoundError("project", project_id)
        return project

    async def list_projects(
        self,
        user: User,
        page: int,
        limit: int,
        status: Optional[ProjectStatus] = None,
        priority: Optional[Priority] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Project], int]:
        return await self.projects.search_for_user(user.user_id, page, limit, status, priority, search)

    async def task_snapshot(self, project_ids: List[int]) -> dict:
        """project_id -> 작업 목록 (목록 화면의 task_stats 용)"""
        by_project = {project_id: [] for project_id in project_ids}
        for task in await self.tasks.list_by_projects(project_ids):
            by_project.setdefault(task.project_id, []).append(task)
        return by_project

    async def get_project(self, user: User, project_id: int) -> Tuple[Project, List[Task], List[Task]]:
        """프로젝트 + 최근 작업 20개 + 전체 작업(통계용)"""
        project = await self.load(project_id)
        require(can_view_project(project, user.user_id), Permission.VIEW_PROJECT)

        recent = await self.tasks.list_recent_by_project(project_id, RECENT_TASKS_LIMIT)
        all_tasks = await self.tasks.list_by_project(project_id)
        return project, recent, all_tasks

    async def create_project(self, owner: User, payload: ProjectCreate) -> Project:
        now = utc_now()
        project = Project(
            title=payload.title,
            description=payload.description,
            owner_id=owner.user_id,
            owner=owner,
            status=payload.status,
            priority=payload.priority,
            color=payload.color,
            start_date=payload.start_date or now,
            end_date=payload.end_date,
            tags=payload.tags,
            is_public=payload.is_public,
            allow_comments=payload.allow_comments,
            auto_archive=payload.auto_archive,
        )
        if project.end_date is not None and project.end_date <= project.start_date:
            raise ValidationError("end_date", "End date must be after start date", project.end_date)

        await self.projects.add(project)
        await self.session.commit()

        logger.info(f"✅ 프로젝트 생성: project_id={project.project_id}, owner={owner.user_id}")
        return await self.load(project.project_id)

    async def update_project(self, user: User, project_id: int, payload: ProjectUpdate) -> Project:
        project = await self.load(project_id)
        require(can_view_project(project, user.user_id), Permission.VIEW_PROJECT)
        require(can_edit_project(project, user.user_id), Permission.EDIT_PROJECT)

        for field, value in payload.model_dump(exclude_unset=True).items():
            if value is None and field in {"title", "status", "priority", "color", "start_date", "tags"}:
                # NOT NULL 컬럼은 null로 덮어쓰지 않음
                continue
            setattr(project, field, value)

        if project.end_date is not None and project.start_date is not None and project.end_date <= project.start_date:
            raise ValidationError("end_date", "End date must be after start date", project.end_date)

        sync_project_status(project)
        project.updated_at = utc_now()
        await self.session.commit()

        logger.info(f"프로젝트 수정: project_id={project_id}, by={user.user_id}")
        return await self.load(project_id)

    async def delete_project(self, user: User, project_id: int) -> None:
        project = await self.load(project_id)
        require(can_view_project(project, user.user_id), Permission.VIEW_PROJECT)
        require(can_delete_project(project, user.user_id), Permission.DELETE_PROJECT)

        async with project_locks.hold(project_id):
            tasks = await self.tasks.list_by_project(project_id)
            s3_keys = [attachment.s3_key for task in tasks for attachment in task.attachments]
            for task in tasks:
                await self.session.delete(task)
            await self.projects.delete(project)
            await self.session.commit()
        project_locks.forget(project_id)

        if self.file_service is not None:
            for s3_key in s3_keys:
                self.file_service.delete_file(s3_key)

        logger.info(f"🗑️ 프로젝트 삭제: project_id={project_id}, tasks={len(tasks)}, by={user.user_id}")

    # ==========================================
    # 멤버 관리
    # ==========================================
    async def add_member(self, user: User, project_id: int, email: str, role) -> Project:
        project = await self.load(project_id)
        require(can_view_project(project, user.user_id), Permission.VIEW_PROJECT)
        require(can_manage_members(project, user.user_id), Permission.MANAGE_MEMBERS)

        target = await self.users.get_by_email(email)
        if target is None:
            raise NotFoundError("user", email)

        member = membership.add_member(project, target.user_id, role, utc_now())
        member.user = target
        await self.session.commit()

        logger.info(f"멤버 추가: project_id={project_id}, user_id={target.user_id}, role={member.role}")
        return await self.load(project_id)

    async def change_member_role(self, user: User, project_id: int, target_id: str, role) -> Project:
        project = await self.load(project_id)
        require(can_view_project(project, user.user_id), Permission.VIEW_PROJECT)
        require(can_manage_members(project, user.user_id), Permission.MANAGE_MEMBERS)

        membership.change_member_role(project, target_id, role)
        await self.session.commit()

        logger.info(f"멤버 역할 변경: project_id={project_id}, user_id={target_id}, role={role}")
        return await self.load(project_id)

    async def remove_member(self, user: User, project_id: int, target_id: str) -> Project:
        project = await self.load(project_id)
        require(can_view_project(project, user.user_id), Permission.VIEW_PROJECT)
        require(can_remove_member(project, user.user_id, target_id), Permission.MANAGE_MEMBERS)

        membership.remove_member(project, target_id)
        await self.session.commit()

        logger.info(f"멤버 제거: project_id={project_id}, user_id={target_id}, by={user.user_id}")
        return await self.load(project_id)
