"""Project membership mutations.

Neither operation is an idempotent no-op: adding an existing member or removing
someone who is not a member is an error.
"""
from datetime import datetime

from taskflow.domain.errors import CannotRemoveOwnerError, DuplicateMemberError, NotFoundError, ValidationError
from taskflow.domain.permissions import ProjectRole, role_of
from taskflow.models import Project, ProjectMember
from taskflow.models.enums import MemberRole

ASSIGNABLE_ROLES = frozenset({MemberRole.ADMIN, MemberRole.MEMBER, MemberRole.VIEWER})


def _assignable_role(role) -> MemberRole:
    try:
        member_role = MemberRole(role)
    except ValueError:
        raise ValidationError("role", "invalid role", role)
    if member_role not in ASSIGNABLE_ROLES:
        raise ValidationError("role", "role must be admin, member or viewer", role)
    return member_role


def add_member(project: Project, user_id: str, role, now: datetime) -> ProjectMember:
    member_role = _assignable_role(role)
    if role_of(project, user_id) is not ProjectRole.NONE:
        raise DuplicateMemberError(user_id)

    member = ProjectMember(user_id=user_id, role=member_role, joined_at=now)
    project.members.append(member)
    return member


def remove_member(project: Project, user_id: str) -> ProjectMember:
    if role_of(project, user_id) is ProjectRole.OWNER:
        raise CannotRemoveOwnerError(user_id)

    for member in project.members:
        if str(member.user_id) == str(user_id):
            project.members.remove(member)
            return member
    raise NotFoundError("member", user_id)


def change_member_role(project: Project, user_id: str, role) -> ProjectMember:
    member_role = _assignable_role(role)
    if role_of(project, user_id) is ProjectRole.OWNER:
        raise CannotRemoveOwnerError(user_id)

    for member in project.members:
        if str(member.user_id) == str(user_id):
            member.role = member_role
            return member
    raise NotFoundError("member", user_id)
