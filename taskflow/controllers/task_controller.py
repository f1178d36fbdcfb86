from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.core.database import get_db
from taskflow.core.deps import get_current_user
from taskflow.models import User
from taskflow.models.enums import Priority, TaskStatus
from taskflow.repositories.task_repository import TaskFilter
from taskflow.schemas.base import Pagination, ResponseEnvelope
from taskflow.schemas.task import (
    AttachmentResponse,
    CommentCreate,
    CommentResponse,
    SubtaskCreate,
    SubtaskResponse,
    TaskCreate,
    TaskResponse,
    TaskStatusUpdate,
    TaskUpdate,
)
from taskflow.services.file_service import FileService, get_file_service
from taskflow.services.task_service import TaskService
from taskflow.utils.timezone import utc_now

router = APIRouter()


@router.get("", response_model=ResponseEnvelope)
async def list_tasks(
    project_id: Optional[int] = Query(None, alias="project"),
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[Priority] = Query(None),
    assignee_id: Optional[str] = Query(None, alias="assignee"),
    search: Optional[str] = Query(None),
    overdue: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """내가 담당자/생성자인 작업 목록 (보관된 작업 제외)"""
    filters = TaskFilter(
        project_id=project_id,
        status=status_filter,
        priority=priority,
        assignee_id=assignee_id,
        search=search.strip() if search else None,
        overdue=overdue,
    )
    tasks, total = await TaskService(db).list_tasks(current_user, filters, page, limit)
    now = utc_now()
    return ResponseEnvelope(
        success=True,
        code="TSK_000",
        message="Tasks",
        data={
            "tasks": [TaskResponse.from_model(task, now) for task in tasks],
            "pagination": Pagination.build(page, limit, total),
        },
    )


# /{task_id} 보다 먼저 등록해야 함
@router.get("/overdue", response_model=ResponseEnvelope)
async def list_overdue_tasks(current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    tasks = await TaskService(db).list_overdue(current_user)
    now = utc_now()
    return ResponseEnvelope(
        success=True,
        code="TSK_000",
        message="Overdue tasks",
        data={"tasks": [TaskResponse.from_model(task, now) for task in tasks], "count": len(tasks)},
    )


@router.get("/{task_id}", response_model=ResponseEnvelope)
async def get_task(task_id: int, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    task = await TaskService(db).get_task(current_user, task_id)
    return ResponseEnvelope(success=True, code="TSK_000", message="Task", data=TaskResponse.from_model(task))


@router.post("", response_model=ResponseEnvelope, status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: TaskCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await TaskService(db).create_task(current_user, payload)
    return ResponseEnvelope(
        success=True,
        code="TSK_001",
        message="Task created successfully",
        data=TaskResponse.from_model(task),
    )


@router.put("/{task_id}", response_model=ResponseEnvelope)
async def update_task(
    task_id: int,
    payload: TaskUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await TaskService(db).update_task(current_user, task_id, payload)
    return ResponseEnvelope(
        success=True,
        code="TSK_002",
        message="Task updated successfully",
        data=TaskResponse.from_model(task),
    )


@router.patch("/{task_id}/status", response_model=ResponseEnvelope)
async def change_task_status(
    task_id: int,
    payload: TaskStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await TaskService(db).change_status(current_user, task_id, payload.status)
    return ResponseEnvelope(
        success=True,
        code="TSK_003",
        message="Task status updated successfully",
        data=TaskResponse.from_model(task),
    )


@router.patch("/{task_id}/archive", response_model=ResponseEnvelope)
async def archive_task(task_id: int, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    task = await TaskService(db).set_archived(current_user, task_id, True)
    return ResponseEnvelope(success=True, code="TSK_004", message="Task archived", data=TaskResponse.from_model(task))


@router.patch("/{task_id}/unarchive", response_model=ResponseEnvelope)
async def unarchive_task(task_id: int, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    task = await TaskService(db).set_archived(current_user, task_id, False)
    return ResponseEnvelope(success=True, code="TSK_005", message="Task unarchived", data=TaskResponse.from_model(task))


@router.delete("/{task_id}", response_model=ResponseEnvelope)
async def delete_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    file_service: FileService = Depends(get_file_service),
):
    await TaskService(db, file_service).delete_task(current_user, task_id)
    return ResponseEnvelope(success=True, code="TSK_006", message="Task deleted successfully", data={"task_id": task_id})


# ==========================================
# 댓글 / 하위 작업 / 첨부파일
# ==========================================
@router.post("/{task_id}/comments", response_model=ResponseEnvelope)
async def add_comment(
    task_id: int,
    payload: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task, comment = await TaskService(db).add_comment(current_user, task_id, payload.content)
    return ResponseEnvelope(
        success=True,
        code="TSK_007",
        message="Comment added successfully",
        data={"task": TaskResponse.from_model(task), "new_comment": CommentResponse.from_model(comment)},
    )


@router.post("/{task_id}/subtasks", response_model=ResponseEnvelope)
async def add_subtask(
    task_id: int,
    payload: SubtaskCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task, subtask = await TaskService(db).add_subtask(current_user, task_id, payload.title)
    return ResponseEnvelope(
        success=True,
        code="TSK_008",
        message="Subtask added successfully",
        data={"task": TaskResponse.from_model(task), "new_subtask": SubtaskResponse.from_model(subtask)},
    )


@router.put("/{task_id}/subtasks/{subtask_id}", response_model=ResponseEnvelope)
async def toggle_subtask(
    task_id: int,
    subtask_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await TaskService(db).toggle_subtask(current_user, task_id, subtask_id)
    return ResponseEnvelope(
        success=True,
        code="TSK_009",
        message="Subtask updated successfully",
        data=TaskResponse.from_model(task),
    )


@router.post("/{task_id}/attachments", response_model=ResponseEnvelope, status_code=status.HTTP_201_CREATED)
async def upload_attachment(
    task_id: int,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    file_service: FileService = Depends(get_file_service),
):
    task, attachment = await TaskService(db, file_service).add_attachment(current_user, task_id, file)
    return ResponseEnvelope(
        success=True,
        code="TSK_010",
        message="Attachment uploaded successfully",
        data={"task": TaskResponse.from_model(task), "attachment": AttachmentResponse.from_model(attachment)},
    )
