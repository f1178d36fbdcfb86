"""Project roles and the permission matrix.

Every authorization decision goes through ``role_of`` and ``PERMISSION_MATRIX``;
the ``can_*`` helpers are thin, named views over that lookup so route handlers
never compare role strings themselves.
"""
from enum import Enum
from typing import Dict, FrozenSet, Optional

from taskflow.domain.errors import AuthorizationError
from taskflow.models import Project, Task


class ProjectRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"
    NONE = "none"


class Permission(str, Enum):
    VIEW_PROJECT = "view_project"
    EDIT_PROJECT = "edit_project"
    DELETE_PROJECT = "delete_project"
    MANAGE_MEMBERS = "manage_members"
    CONTRIBUTE = "contribute"
    MANAGE_TASKS = "manage_tasks"


# Task-level actions that are not a single matrix lookup
EDIT_TASK = "edit_task"
DELETE_TASK = "delete_task"
UPDATE_TASK_STATUS = "update_task_status"
COMMENT = "comment"


PERMISSION_MATRIX: Dict[ProjectRole, FrozenSet[Permission]] = {
    ProjectRole.OWNER: frozenset(Permission),
    ProjectRole.ADMIN: frozenset({
        Permission.VIEW_PROJECT,
        Permission.EDIT_PROJECT,
        Permission.MANAGE_MEMBERS,
        Permission.CONTRIBUTE,
        Permission.MANAGE_TASKS,
    }),
    ProjectRole.MEMBER: frozenset({Permission.VIEW_PROJECT, Permission.CONTRIBUTE}),
    ProjectRole.VIEWER: frozenset({Permission.VIEW_PROJECT}),
    ProjectRole.NONE: frozenset(),
}


def _same_user(left: Optional[str], right: Optional[str]) -> bool:
    return left is not None and right is not None and str(left) == str(right)


def role_of(project: Project, user_id: Optional[str]) -> ProjectRole:
    """Role of ``user_id`` on ``project``; the owner reference always wins."""
    if _same_user(project.owner_id, user_id):
        return ProjectRole.OWNER
    for member in project.members:
        if _same_user(member.user_id, user_id):
            return ProjectRole(getattr(member.role, "value", member.role))
    return ProjectRole.NONE


def has_permission(role: ProjectRole, permission: Permission) -> bool:
    return permission in PERMISSION_MATRIX[role]


def is_member(project: Project, user_id: Optional[str]) -> bool:
    return role_of(project, user_id) is not ProjectRole.NONE


def can_view_project(project: Project, user_id: str) -> bool:
    return has_permission(role_of(project, user_id), Permission.VIEW_PROJECT)


def can_edit_project(project: Project, user_id: str) -> bool:
    return has_permission(role_of(project, user_id), Permission.EDIT_PROJECT)


def can_delete_project(project: Project, user_id: str) -> bool:
    return has_permission(role_of(project, user_id), Permission.DELETE_PROJECT)


def can_manage_members(project: Project, user_id: str) -> bool:
    return has_permission(role_of(project, user_id), Permission.MANAGE_MEMBERS)


def can_contribute(project: Project, user_id: str) -> bool:
    return has_permission(role_of(project, user_id), Permission.CONTRIBUTE)


def can_remove_member(project: Project, requester_id: str, target_id: str) -> bool:
    # Owner removal is rejected by membership.remove_member, not here
    if _same_user(requester_id, target_id):
        return True
    return can_manage_members(project, requester_id)


def can_edit_task(project: Project, task: Task, user_id: str) -> bool:
    if _same_user(task.creator_id, user_id):
        return True
    return has_permission(role_of(project, user_id), Permission.MANAGE_TASKS)


def can_delete_task(project: Project, task: Task, user_id: str) -> bool:
    # creator may delete while still a project member (non-members are stopped by the view check)
    if _same_user(task.creator_id, user_id):
        return True
    return has_permission(role_of(project, user_id), Permission.MANAGE_TASKS)


def can_update_task_status(project: Project, task: Task, user_id: str) -> bool:
    if can_edit_task(project, task, user_id):
        return True
    return _same_user(task.assignee_id, user_id) and can_contribute(project, user_id)


def can_comment(project: Project, user_id: str) -> bool:
    return bool(project.allow_comments) and can_contribute(project, user_id)


def require(allowed: bool, action) -> None:
    if not allowed:
        raise AuthorizationError(getattr(action, "value", action))
