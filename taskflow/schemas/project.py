from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from taskflow.domain.dashboard import project_task_stats
from taskflow.models import Project, ProjectMember, Task
from taskflow.models.enums import MemberRole, Priority, ProjectStatus
from taskflow.schemas.base import UtcDatetime
from taskflow.schemas.task import TaskResponse
from taskflow.schemas.user import UserBrief
from taskflow.utils.timezone import to_naive_utc

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"
MAX_TAG_LENGTH = 20


def _check_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    cleaned = [tag.strip() for tag in tags if tag and tag.strip()]
    for tag in cleaned:
        if len(tag) > MAX_TAG_LENGTH:
            raise ValueError(f"Each tag must be at most {MAX_TAG_LENGTH} characters")
    return cleaned


# --- Request Schemas ---
class ProjectCreate(BaseModel):
    title: str = Field(min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    status: ProjectStatus = ProjectStatus.PLANNING
    priority: Priority = Priority.MEDIUM
    color: str = Field(default="#6366f1", pattern=HEX_COLOR)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    tags: List[str] = []
    is_public: bool = False
    allow_comments: bool = True
    auto_archive: bool = False

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, value: List[str]) -> List[str]:
        return _check_tags(value)

    @model_validator(mode="after")
    def check_date_range(self):
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self


class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    status: Optional[ProjectStatus] = None
    priority: Optional[Priority] = None
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    tags: Optional[List[str]] = None
    is_public: Optional[bool] = None
    allow_comments: Optional[bool] = None
    auto_archive: Optional[bool] = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _check_tags(value)


class MemberAdd(BaseModel):
    email: EmailStr
    role: MemberRole = MemberRole.MEMBER

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class MemberRoleUpdate(BaseModel):
    role: MemberRole


# --- Response Schemas ---
class MemberResponse(BaseModel):
    user: Optional[UserBrief] = None
    role: MemberRole
    joined_at: Optional[UtcDatetime] = None

    @classmethod
    def from_model(cls, member: ProjectMember) -> "MemberResponse":
        return cls(user=UserBrief.from_model(member.user), role=member.role, joined_at=member.joined_at)


class ProjectResponse(BaseModel):
    project_id: int
    title: str
    description: Optional[str] = None
    owner: Optional[UserBrief] = None
    members: List[MemberResponse] = []
    member_count: int
    status: ProjectStatus
    priority: Priority
    color: str
    start_date: Optional[UtcDatetime] = None
    end_date: Optional[UtcDatetime] = None
    progress: int
    tags: List[str] = []
    is_public: bool
    allow_comments: bool
    auto_archive: bool
    task_stats: Optional[Dict[str, int]] = None
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None

    @classmethod
    def from_model(cls, project: Project, tasks: Optional[List[Task]] = None) -> "ProjectResponse":
        return cls(
            project_id=project.project_id,
            title=project.title,
            description=project.description,
            owner=UserBrief.from_model(project.owner),
            members=[MemberResponse.from_model(member) for member in project.members],
            # owner + 멤버 수
            member_count=len(project.members) + 1,
            status=project.status,
            priority=project.priority,
            color=project.color,
            start_date=project.start_date,
            end_date=project.end_date,
            progress=project.progress,
            tags=list(project.tags or []),
            is_public=project.is_public,
            allow_comments=project.allow_comments,
            auto_archive=project.auto_archive,
            task_stats=project_task_stats(tasks) if tasks is not None else None,
            created_at=project.created_at,
            updated_at=project.updated_at,
        )


class ProjectDetailResponse(BaseModel):
    project: ProjectResponse
    tasks: List[TaskResponse] = []
