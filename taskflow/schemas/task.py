from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, BeforeValidator, Field, field_validator

from taskflow.domain.rules import completed_subtasks_count, days_until_due, is_overdue, subtasks_progress
from taskflow.models import Subtask, Task, TaskAttachment, TaskComment
from taskflow.models.enums import Priority, TaskCategory, TaskStatus
from taskflow.schemas.base import UtcDatetime
from taskflow.schemas.user import UserBrief
from taskflow.utils.timezone import to_naive_utc, utc_now

MAX_LABEL_LENGTH = 30


def _strip(value):
    return value.strip() if isinstance(value, str) else value


StrippedStr = Annotated[str, BeforeValidator(_strip)]


def _check_labels(labels: Optional[List[str]]) -> Optional[List[str]]:
    if labels is None:
        return None
    cleaned = [label.strip() for label in labels if label and label.strip()]
    for label in cleaned:
        if len(label) > MAX_LABEL_LENGTH:
            raise ValueError(f"Each label must be at most {MAX_LABEL_LENGTH} characters")
    return cleaned


# --- Request Schemas ---
class TaskCreate(BaseModel):
    title: StrippedStr = Field(min_length=3, max_length=200)
    description: Optional[StrippedStr] = Field(default=None, max_length=1000)
    project_id: int
    assignee_id: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    priority: Priority = Priority.MEDIUM
    category: TaskCategory = TaskCategory.OTHER
    due_date: Optional[datetime] = None
    estimated_hours: float = Field(default=0, ge=0, le=1000)
    labels: List[str] = []
    dependency_ids: List[int] = []

    @field_validator("due_date")
    @classmethod
    def due_date_in_future(cls, value: Optional[datetime]) -> Optional[datetime]:
        value = to_naive_utc(value)
        if value is not None and value <= utc_now():
            raise ValueError("Due date must be in the future")
        return value

    @field_validator("labels")
    @classmethod
    def validate_labels(cls, value: List[str]) -> List[str]:
        return _check_labels(value)


class TaskUpdate(BaseModel):
    title: Optional[StrippedStr] = Field(default=None, min_length=3, max_length=200)
    description: Optional[StrippedStr] = Field(default=None, max_length=1000)
    assignee_id: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[Priority] = None
    category: Optional[TaskCategory] = None
    due_date: Optional[datetime] = None
    estimated_hours: Optional[float] = Field(default=None, ge=0, le=1000)
    actual_hours: Optional[float] = Field(default=None, ge=0)
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    labels: Optional[List[str]] = None
    dependency_ids: Optional[List[int]] = None

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)

    @field_validator("labels")
    @classmethod
    def validate_labels(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _check_labels(value)


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class CommentCreate(BaseModel):
    content: StrippedStr = Field(min_length=1, max_length=500)


class SubtaskCreate(BaseModel):
    title: StrippedStr = Field(min_length=1, max_length=100)


# --- Response Schemas ---
class ProjectBrief(BaseModel):
    project_id: int
    title: str
    color: str


class SubtaskResponse(BaseModel):
    subtask_id: int
    title: str
    is_completed: bool
    position: int
    created_at: Optional[UtcDatetime] = None

    @classmethod
    def from_model(cls, subtask: Subtask) -> "SubtaskResponse":
        return cls(
            subtask_id=subtask.subtask_id,
            title=subtask.title,
            is_completed=subtask.is_completed,
            position=subtask.position,
            created_at=subtask.created_at,
        )


class CommentResponse(BaseModel):
    comment_id: int
    user: Optional[UserBrief] = None
    content: str
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None

    @classmethod
    def from_model(cls, comment: TaskComment) -> "CommentResponse":
        return cls(
            comment_id=comment.comment_id,
            user=UserBrief.from_model(comment.user),
            content=comment.content,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )


class AttachmentResponse(BaseModel):
    attachment_id: int
    name: str
    url: str
    content_type: Optional[str] = None
    size: int
    uploaded_by: str
    uploaded_at: Optional[UtcDatetime] = None

    @classmethod
    def from_model(cls, attachment: TaskAttachment) -> "AttachmentResponse":
        return cls(
            attachment_id=attachment.attachment_id,
            name=attachment.name,
            url=attachment.url,
            content_type=attachment.content_type,
            size=attachment.size,
            uploaded_by=attachment.uploaded_by,
            uploaded_at=attachment.uploaded_at,
        )


class TaskResponse(BaseModel):
    task_id: int
    title: str
    description: Optional[str] = None
    project: Optional[ProjectBrief] = None
    assignee: Optional[UserBrief] = None
    creator: Optional[UserBrief] = None
    status: TaskStatus
    priority: Priority
    category: TaskCategory
    labels: List[str] = []
    due_date: Optional[UtcDatetime] = None
    estimated_hours: float
    actual_hours: float
    progress: int
    dependency_ids: List[int] = []
    is_archived: bool
    completed_at: Optional[UtcDatetime] = None
    started_at: Optional[UtcDatetime] = None
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None

    # 계산 필드
    is_overdue: bool
    days_until_due: Optional[int] = None
    subtasks_progress: int
    completed_subtasks_count: int

    subtasks: List[SubtaskResponse] = []
    comments: List[CommentResponse] = []
    attachments: List[AttachmentResponse] = []

    @classmethod
    def from_model(cls, task: Task, now: Optional[datetime] = None) -> "TaskResponse":
        now = now or utc_now()
        project = task.project
        return cls(
            task_id=task.task_id,
            title=task.title,
            description=task.description,
            project=ProjectBrief(project_id=project.project_id, title=project.title, color=project.color)
            if project is not None else None,
            assignee=UserBrief.from_model(task.assignee),
            creator=UserBrief.from_model(task.creator),
            status=task.status,
            priority=task.priority,
            category=task.category,
            labels=list(task.labels or []),
            due_date=task.due_date,
            estimated_hours=task.estimated_hours or 0,
            actual_hours=task.actual_hours or 0,
            progress=task.progress,
            dependency_ids=list(task.dependency_ids or []),
            is_archived=task.is_archived,
            completed_at=task.completed_at,
            started_at=task.started_at,
            created_at=task.created_at,
            updated_at=task.updated_at,
            is_overdue=is_overdue(task, now),
            days_until_due=days_until_due(task, now),
            subtasks_progress=subtasks_progress(task),
            completed_subtasks_count=completed_subtasks_count(task),
            subtasks=[SubtaskResponse.from_model(subtask) for subtask in task.subtasks],
            comments=[CommentResponse.from_model(comment) for comment in task.comments],
            attachments=[AttachmentResponse.from_model(attachment) for attachment in task.attachments],
        )
