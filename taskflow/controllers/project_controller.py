from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.core.database import get_db
from taskflow.core.deps import get_current_user
from taskflow.models import User
from taskflow.models.enums import Priority, ProjectStatus
from taskflow.schemas.base import Pagination, ResponseEnvelope
from taskflow.schemas.project import (
    MemberAdd,
    MemberRoleUpdate,
    ProjectCreate,
    ProjectDetailResponse,
    ProjectResponse,
    ProjectUpdate,
)
from taskflow.schemas.task import TaskResponse
from taskflow.services.file_service import FileService, get_file_service
from taskflow.services.project_service import ProjectService
from taskflow.utils.timezone import utc_now

router = APIRouter()


@router.get("", response_model=ResponseEnvelope)
async def list_projects(
    status_filter: Optional[ProjectStatus] = Query(None, alias="status"),
    priority: Optional[Priority] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """내가 owner 이거나 멤버인 프로젝트 목록"""
    service = ProjectService(db)
    projects, total = await service.list_projects(
        current_user, page, limit, status_filter, priority, search.strip() if search else None
    )
    tasks_by_project = await service.task_snapshot([project.project_id for project in projects])
    return ResponseEnvelope(
        success=True,
        code="PRJ_000",
        message="Projects",
        data={
            "projects": [
                ProjectResponse.from_model(project, tasks_by_project.get(project.project_id, []))
                for project in projects
            ],
            "pagination": Pagination.build(page, limit, total),
        },
    )


@router.get("/{project_id}", response_model=ResponseEnvelope)
async def get_project(project_id: int, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    project, recent_tasks, all_tasks = await ProjectService(db).get_project(current_user, project_id)
    now = utc_now()
    detail = ProjectDetailResponse(
        project=ProjectResponse.from_model(project, all_tasks),
        tasks=[TaskResponse.from_model(task, now) for task in recent_tasks],
    )
    return ResponseEnvelope(success=True, code="PRJ_000", message="Project", data=detail)


@router.post("", response_model=ResponseEnvelope, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await ProjectService(db).create_project(current_user, payload)
    return ResponseEnvelope(
        success=True,
        code="PRJ_001",
        message="Project created successfully",
        data=ProjectResponse.from_model(project, []),
    )


@router.put("/{project_id}", response_model=ResponseEnvelope)
async def update_project(
    project_id: int,
    payload: ProjectUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await ProjectService(db).update_project(current_user, project_id, payload)
    return ResponseEnvelope(
        success=True,
        code="PRJ_002",
        message="Project updated successfully",
        data=ProjectResponse.from_model(project),
    )


@router.delete("/{project_id}", response_model=ResponseEnvelope)
async def delete_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    file_service: FileService = Depends(get_file_service),
):
    await ProjectService(db, file_service).delete_project(current_user, project_id)
    return ResponseEnvelope(
        success=True,
        code="PRJ_003",
        message="Project and all associated tasks deleted successfully",
        data={"project_id": project_id},
    )


# ==========================================
# 멤버 관리
# ==========================================
@router.post("/{project_id}/members", response_model=ResponseEnvelope)
async def add_member(
    project_id: int,
    payload: MemberAdd,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await ProjectService(db).add_member(current_user, project_id, payload.email, payload.role)
    return ResponseEnvelope(
        success=True,
        code="PRJ_004",
        message="Member added successfully",
        data=ProjectResponse.from_model(project),
    )


@router.patch("/{project_id}/members/{user_id}", response_model=ResponseEnvelope)
async def change_member_role(
    project_id: int,
    user_id: str,
    payload: MemberRoleUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await ProjectService(db).change_member_role(current_user, project_id, user_id, payload.role)
    return ResponseEnvelope(
        success=True,
        code="PRJ_005",
        message="Member role updated successfully",
        data=ProjectResponse.from_model(project),
    )


@router.delete("/{project_id}/members/{user_id}", response_model=ResponseEnvelope)
async def remove_member(
    project_id: int,
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await ProjectService(db).remove_member(current_user, project_id, user_id)
    return ResponseEnvelope(
        success=True,
        code="PRJ_006",
        message="Member removed successfully",
        data=ProjectResponse.from_model(project),
    )
