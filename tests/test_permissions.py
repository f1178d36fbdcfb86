import pytest

from taskflow.domain.errors import AuthorizationError
from taskflow.domain.permissions import (
    EDIT_TASK,
    PERMISSION_MATRIX,
    Permission,
    ProjectRole,
    can_comment,
    can_contribute,
    can_delete_project,
    can_delete_task,
    can_edit_project,
    can_edit_task,
    can_manage_members,
    can_remove_member,
    can_update_task_status,
    can_view_project,
    is_member,
    require,
    role_of,
)
from taskflow.models import Project, ProjectMember, Task
from taskflow.models.enums import MemberRole

OWNER = "owner-1"
ADMIN = "admin-1"
MEMBER = "member-1"
VIEWER = "viewer-1"
STRANGER = "stranger-1"


def _project(**kwargs) -> Project:
    members = [
        ProjectMember(user_id=ADMIN, role=MemberRole.ADMIN),
        ProjectMember(user_id=MEMBER, role=MemberRole.MEMBER),
        ProjectMember(user_id=VIEWER, role=MemberRole.VIEWER),
    ]
    return Project(project_id=1, title="Roadmap", owner_id=OWNER, members=members, **kwargs)


def test_role_of_each_participant():
    project = _project()
    assert role_of(project, OWNER) is ProjectRole.OWNER
    assert role_of(project, ADMIN) is ProjectRole.ADMIN
    assert role_of(project, MEMBER) is ProjectRole.MEMBER
    assert role_of(project, VIEWER) is ProjectRole.VIEWER
    assert role_of(project, STRANGER) is ProjectRole.NONE
    assert role_of(project, None) is ProjectRole.NONE


def test_owner_wins_even_when_listed_as_member():
    project = _project()
    project.members.append(ProjectMember(user_id=OWNER, role=MemberRole.VIEWER))
    assert role_of(project, OWNER) is ProjectRole.OWNER
    assert can_delete_project(project, OWNER)


def test_matrix_is_exhaustive():
    assert set(PERMISSION_MATRIX) == set(ProjectRole)
    assert PERMISSION_MATRIX[ProjectRole.OWNER] == frozenset(Permission)
    assert Permission.DELETE_PROJECT not in PERMISSION_MATRIX[ProjectRole.ADMIN]
    assert PERMISSION_MATRIX[ProjectRole.NONE] == frozenset()


def test_project_level_permissions():
    project = _project()
    assert [can_edit_project(project, u) for u in (OWNER, ADMIN, MEMBER, VIEWER, STRANGER)] == [
        True, True, False, False, False,
    ]
    assert [can_delete_project(project, u) for u in (OWNER, ADMIN, MEMBER)] == [True, False, False]
    assert [can_manage_members(project, u) for u in (OWNER, ADMIN, MEMBER)] == [True, True, False]
    assert [can_view_project(project, u) for u in (VIEWER, STRANGER)] == [True, False]
    assert [can_contribute(project, u) for u in (MEMBER, VIEWER)] == [True, False]
    assert is_member(project, VIEWER) and not is_member(project, STRANGER)


def test_self_removal_is_always_allowed():
    project = _project()
    assert can_remove_member(project, VIEWER, VIEWER)
    assert not can_remove_member(project, MEMBER, VIEWER)
    assert can_remove_member(project, ADMIN, MEMBER)


def test_edit_task_creator_or_owner_admin():
    project = _project()
    task = Task(task_id=10, title="Ship", project_id=1, creator_id=MEMBER, assignee_id=VIEWER)

    assert can_edit_task(project, task, MEMBER)
    assert can_edit_task(project, task, OWNER)
    assert can_edit_task(project, task, ADMIN)
    assert not can_edit_task(project, task, VIEWER)
    assert can_delete_task(project, task, MEMBER)
    assert not can_delete_task(project, task, VIEWER)


def test_non_member_cannot_edit_task():
    project = _project()
    task = Task(task_id=11, title="Ship", project_id=1, creator_id=OWNER)

    assert not can_edit_task(project, task, STRANGER)
    with pytest.raises(AuthorizationError) as exc_info:
        require(can_edit_task(project, task, STRANGER), EDIT_TASK)
    assert exc_info.value.action == "edit_task"


def test_assignee_may_update_status_only_when_contributing():
    project = _project()
    assigned_to_member = Task(task_id=12, title="Fix", project_id=1, creator_id=OWNER, assignee_id=MEMBER)
    assigned_to_viewer = Task(task_id=13, title="Fix", project_id=1, creator_id=OWNER, assignee_id=VIEWER)

    assert not can_edit_task(project, assigned_to_member, MEMBER)
    assert can_update_task_status(project, assigned_to_member, MEMBER)
    assert not can_update_task_status(project, assigned_to_viewer, VIEWER)


def test_comments_respect_project_setting():
    assert can_comment(_project(), MEMBER)
    assert not can_comment(_project(), VIEWER)
    assert not can_comment(_project(allow_comments=False), OWNER)


def test_require_uses_enum_value_as_action():
    with pytest.raises(AuthorizationError) as exc_info:
        require(False, Permission.MANAGE_MEMBERS)
    assert exc_info.value.action == "manage_members"
    require(True, Permission.MANAGE_MEMBERS)
