"""
작업 서비스

모든 작업 쓰기는 프로젝트 lock 안에서 수행되고, 같은 세션/트랜잭션에서
프로젝트 진행률을 다시 계산한 뒤 commit 한다.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.domain.dependencies import validate_dependencies
from taskflow.domain.errors import NotFoundError, ValidationError
from taskflow.domain.permissions import (
    COMMENT,
    DELETE_TASK,
    EDIT_TASK,
    UPDATE_TASK_STATUS,
    Permission,
    can_comment,
    can_contribute,
    can_delete_task,
    can_edit_task,
    can_update_task_status,
    can_view_project,
    is_member,
    require,
)
from taskflow.domain.rules import (
    apply_project_progress,
    apply_status_change,
    enforce_status_progress,
    recompute_progress_from_subtasks,
)
from taskflow.models import Project, Subtask, Task, TaskAttachment, TaskComment, User
from taskflow.models.enums import TaskStatus
from taskflow.repositories.project_repository import ProjectRepository
from taskflow.repositories.task_repository import TaskFilter, TaskRepository
from taskflow.repositories.user_repository import UserRepository
from taskflow.schemas.task import TaskCreate, TaskUpdate
from taskflow.services.file_service import FileService
from taskflow.services.locks import ProjectLocks, project_locks
from taskflow.utils.timezone import utc_now

logger = logging.getLogger(__name__)


async def recompute_project_progress(session: AsyncSession, project_id: int) -> int:
    """프로젝트의 모든 작업으로 진행률 재계산 (호출자가 lock을 잡고 있어야 함)"""
    await session.flush()
    project = await ProjectRepository(session).get(project_id)
    if project is None:
        raise NotFoundError("project", project_id)
    tasks = await TaskRepository(session).list_by_project(project_id)
    progress = apply_project_progress(project, tasks)
    await session.flush()
    logger.debug(f"프로젝트 진행률 재계산: project_id={project_id}, progress={progress}")
    return progress


class TaskService:
    def __init__(
        self,
        session: AsyncSession,
        file_service: Optional[FileService] = None,
        locks: ProjectLocks = project_locks,
    ):
        self.session = session
        self.file_service = file_service
        self.locks = locks
        self.tasks = TaskRepository(session)
        self.projects = ProjectRepository(session)
        self.users = UserRepository(session)

    async def load(self, task_id: int) -> Task:
        task = await self.tasks.get(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    async def _load_visible(self, user: User, task_id: int) -> Task:
        task = await self.load(task_id)
        require(can_view_project(task.project, user.user_id), Permission.VIEW_PROJECT)
        return task

    async def _project_id_of(self, task_id: int) -> int:
        project_id = await self.tasks.project_id_of(task_id)
        if project_id is None:
            raise NotFoundError("task", task_id)
        return project_id

    @asynccontextmanager
    async def _project_write(self, project_id: int) -> AsyncIterator[None]:
        """lock -> 작업 읽기/변경 -> 진행률 재계산 -> commit

        lock을 잡기 전의 읽기로 시작된 트랜잭션은 lock 직후 끝낸다.
        REPEATABLE READ 스냅샷이 남아 있으면 앞 요청이 commit 한 형제 작업 값을 못 본다.
        """
        async with self.locks.hold(project_id):
            await self.session.commit()
            yield
            await recompute_project_progress(self.session, project_id)
            await self.session.commit()

    async def _resolve_assignee(self, project: Project, assignee_id: str) -> User:
        if not is_member(project, assignee_id):
            raise ValidationError("assignee_id", "Assignee must be a member of the project", assignee_id)
        assignee = await self.users.get(assignee_id)
        if assignee is None:
            raise NotFoundError("user", assignee_id)
        return assignee

    # ==========================================
    # 조회
    # ==========================================
    async def list_tasks(self, user: User, filters: TaskFilter, page: int, limit: int) -> Tuple[List[Task], int]:
        return await self.tasks.search_for_user(user.user_id, filters, page, limit, utc_now())

    async def list_overdue(self, user: User) -> List[Task]:
        return await self.tasks.list_overdue_for_user(user.user_id, utc_now())

    async def get_task(self, user: User, task_id: int) -> Task:
        return await self._load_visible(user, task_id)

    # ==========================================
    # 생성 / 수정 / 삭제
    # ==========================================
    async def create_task(self, user: User, payload: TaskCreate) -> Task:
        now = utc_now()
        async with self._project_write(payload.project_id):
            project = await self.projects.get(payload.project_id)
            if project is None:
                raise NotFoundError("project", payload.project_id)
            require(can_view_project(project, user.user_id), Permission.VIEW_PROJECT)
            require(can_contribute(project, user.user_id), Permission.CONTRIBUTE)

            dependency_ids = validate_dependencies(
                None, payload.dependency_ids, await self.tasks.list_by_project(project.project_id)
            )
            assignee = user
            if payload.assignee_id and payload.assignee_id != user.user_id:
                assignee = await self._resolve_assignee(project, payload.assignee_id)

            task = Task(
                title=payload.title,
                description=payload.description,
                project_id=project.project_id,
                project=project,
                creator_id=user.user_id,
                creator=user,
                assignee_id=assignee.user_id,
                assignee=assignee,
                priority=payload.priority,
                category=payload.category,
                due_date=payload.due_date,
                estimated_hours=payload.estimated_hours,
                labels=payload.labels,
                dependency_ids=dependency_ids,
            )
            apply_status_change(task, payload.status, now)
            enforce_status_progress(task, now)
            await self.tasks.add(task)

        logger.info(f"✅ 작업 생성: task_id={task.task_id}, project_id={payload.project_id}, by={user.user_id}")
        return await self.load(task.task_id)

    async def update_task(self, user: User, task_id: int, payload: TaskUpdate) -> Task:
        data = payload.model_dump(exclude_unset=True)
        now = utc_now()

        async with self._project_write(await self._project_id_of(task_id)):
            task = await self._load_visible(user, task_id)
            project = task.project
            require(can_edit_task(project, task, user.user_id), EDIT_TASK)

            # 형제 작업을 다시 읽으므로 task 변경보다 먼저 검증
            if "dependency_ids" in data:
                dependency_ids = validate_dependencies(
                    task.task_id,
                    data.pop("dependency_ids") or [],
                    await self.tasks.list_by_project(project.project_id),
                )
                task.dependency_ids = dependency_ids

            if "assignee_id" in data:
                assignee_id = data.pop("assignee_id")
                if assignee_id is None:
                    task.assignee_id, task.assignee = None, None
                else:
                    assignee = await self._resolve_assignee(project, assignee_id)
                    task.assignee_id, task.assignee = assignee.user_id, assignee

            new_status = data.pop("status", None)
            for field, value in data.items():
                if value is None and field in {"title", "priority", "category", "labels", "progress",
                                               "estimated_hours", "actual_hours"}:
                    continue
                setattr(task, field, value)

            if new_status is not None and TaskStatus(new_status) is not TaskStatus(task.status):
                apply_status_change(task, new_status, now)
            enforce_status_progress(task, now)
            task.updated_at = now

        logger.info(f"작업 수정: task_id={task_id}, by={user.user_id}")
        return await self.load(task_id)

    async def change_status(self, user: User, task_id: int, status: TaskStatus) -> Task:
        now = utc_now()
        async with self._project_write(await self._project_id_of(task_id)):
            task = await self._load_visible(user, task_id)
            require(can_update_task_status(task.project, task, user.user_id), UPDATE_TASK_STATUS)

            apply_status_change(task, status, now)
            enforce_status_progress(task, now)
            task.updated_at = now

        logger.info(f"작업 상태 변경: task_id={task_id}, status={TaskStatus(status).value}, by={user.user_id}")
        return await self.load(task_id)

    async def set_archived(self, user: User, task_id: int, archived: bool) -> Task:
        async with self._project_write(await self._project_id_of(task_id)):
            task = await self._load_visible(user, task_id)
            require(can_edit_task(task.project, task, user.user_id), EDIT_TASK)

            task.is_archived = archived
            task.updated_at = utc_now()

        logger.info(f"작업 {'보관' if archived else '보관 해제'}: task_id={task_id}, by={user.user_id}")
        return await self.load(task_id)

    async def delete_task(self, user: User, task_id: int) -> None:
        async with self._project_write(await self._project_id_of(task_id)):
            task = await self._load_visible(user, task_id)
            project = task.project
            require(can_delete_task(project, task, user.user_id), DELETE_TASK)

            s3_keys = [attachment.s3_key for attachment in task.attachments]
            # 다른 작업의 선행 작업 목록에서 제거
            for other in await self.tasks.list_by_project(project.project_id):
                if other.task_id != task_id and task_id in (other.dependency_ids or []):
                    other.dependency_ids = [dep_id for dep_id in other.dependency_ids if dep_id != task_id]
            await self.tasks.delete(task)

        if self.file_service is not None:
            for s3_key in s3_keys:
                self.file_service.delete_file(s3_key)

        logger.info(f"🗑️ 작업 삭제: task_id={task_id}, by={user.user_id}")
    # ==========================================
    # 댓글 / 하위 작업 / 첨부파일
    # ==========================================
    async def add_comment(self, user: User, task_id: int, content: str) -> Tuple[Task, TaskComment]:
        task = await self._load_visible(user, task_id)
        require(can_contribute(task.project, user.user_id), Permission.CONTRIBUTE)
        require(can_comment(task.project, user.user_id), COMMENT)

        comment = TaskComment(user_id=user.user_id, user=user, content=content)
        task.comments.append(comment)
        await self.session.commit()

        logger.info(f"댓글 추가: task_id={task_id}, comment_id={comment.comment_id}")
        return await self.load(task_id), comment

    async def add_subtask(self, user: User, task_id: int, title: str) -> Tuple[Task, Subtask]:
        task = await self._load_visible(user, task_id)
        require(can_contribute(task.project, user.user_id), Permission.CONTRIBUTE)

        position = max((subtask.position for subtask in task.subtasks), default=-1) + 1
        subtask = Subtask(title=title, position=position)
        task.subtasks.append(subtask)
        await self.session.commit()

        logger.info(f"하위 작업 추가: task_id={task_id}, subtask_id={subtask.subtask_id}")
        return await self.load(task_id), subtask

    async def toggle_subtask(self, user: User, task_id: int, subtask_id: int) -> Task:
        now = utc_now()
        async with self._project_write(await self._project_id_of(task_id)):
            task = await self._load_visible(user, task_id)
            require(can_contribute(task.project, user.user_id), Permission.CONTRIBUTE)

            subtask = next((item for item in task.subtasks if item.subtask_id == subtask_id), None)
            if subtask is None:
                raise NotFoundError("subtask", subtask_id)

            subtask.is_completed = not subtask.is_completed
            recompute_progress_from_subtasks(task, now)
            enforce_status_progress(task, now)
            task.updated_at = now

        logger.info(f"하위 작업 토글: task_id={task_id}, subtask_id={subtask_id}, progress={task.progress}")
        return await self.load(task_id)

    async def add_attachment(self, user: User, task_id: int, file: UploadFile) -> Tuple[Task, TaskAttachment]:
        task = await self._load_visible(user, task_id)
        require(can_contribute(task.project, user.user_id), Permission.CONTRIBUTE)
        if self.file_service is None:
            raise RuntimeError("file service is not configured")

        info = self.file_service.upload_attachment(file, task_id, user.user_id)
        attachment = TaskAttachment(**info)
        task.attachments.append(attachment)
        await self.session.commit()

        logger.info(f"첨부파일 추가: task_id={task_id}, s3_key={attachment.s3_key}")
        return await self.load(task_id), attachment
