from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from taskflow.domain.errors import (
    AuthorizationError,
    CannotRemoveOwnerError,
    ConflictError,
    DomainError,
    DuplicateMemberError,
    NotFoundError,
    ValidationError,
)


class ErrorCode(Enum):
    # (http_status, biz_code, default message)
    INVALID_INPUT = (400, "COM_400", "Validation failed")
    UNAUTHORIZED = (401, "AUTH_401", "Access denied. No token provided.")
    FORBIDDEN = (403, "COM_403", "Access denied.")
    NOT_FOUND = (404, "COM_404", "Resource not found")
    INTERNAL_SERVER_ERROR = (500, "COM_500", "Internal server error")

    # Auth
    AUTH_INVALID_CREDENTIALS = (401, "AUTH_001", "Invalid email or password")
    AUTH_TOKEN_EXPIRED = (401, "AUTH_002", "Token has expired. Please login again.")
    AUTH_TOKEN_INVALID = (401, "AUTH_003", "Invalid token. Please login again.")
    AUTH_USER_GONE = (401, "AUTH_004", "Token is valid but user no longer exists.")
    AUTH_ACCOUNT_DEACTIVATED = (401, "AUTH_005", "Account is deactivated. Please contact support.")
    AUTH_EMAIL_EXISTS = (400, "AUTH_006", "User already exists with this email address")
    AUTH_WRONG_PASSWORD = (400, "AUTH_007", "Current password is incorrect")
    AUTH_ADMIN_ONLY = (403, "AUTH_008", "Access denied. Admin privileges required.")
    AUTH_RATE_LIMITED = (429, "AUTH_009", "Too many authentication attempts, please try again later.")

    # User
    USER_NOT_FOUND = (404, "USR_404", "User not found")

    # Project
    PROJECT_NOT_FOUND = (404, "PRJ_404", "Project not found")
    PROJECT_ACCESS_DENIED = (403, "PRJ_403", "Access denied. You are not a member of this project.")
    PROJECT_EDIT_DENIED = (403, "PRJ_001", "Access denied. Only project owner and admins can edit.")
    PROJECT_DELETE_DENIED = (403, "PRJ_002", "Access denied. Only project owner can delete.")
    PROJECT_MEMBERS_DENIED = (
        403,
        "PRJ_003",
        "Access denied. Only project owner, admins, or the member themselves can change membership.",
    )
    PROJECT_CONTRIBUTE_DENIED = (403, "PRJ_004", "Access denied. Viewers cannot modify this project.")
    PROJECT_MEMBER_DUPLICATE = (400, "PRJ_005", "User is already a member of this project")
    PROJECT_OWNER_REMOVAL = (400, "PRJ_006", "Cannot remove project owner from project")
    PROJECT_MEMBER_NOT_FOUND = (404, "PRJ_007", "User is not a member of this project")
    PROJECT_CONFLICT = (400, "PRJ_008", "Project membership conflict")

    # Task
    TASK_NOT_FOUND = (404, "TSK_404", "Task not found")
    TASK_EDIT_DENIED = (403, "TSK_001", "Access denied. Only task creator, project owner, or admin can edit.")
    TASK_DELETE_DENIED = (403, "TSK_002", "Access denied. Only task creator, project owner, or admin can delete.")
    TASK_STATUS_DENIED = (
        403,
        "TSK_003",
        "Access denied. Only the assignee, task creator, project owner, or admin can change status.",
    )
    TASK_COMMENTS_DISABLED = (403, "TSK_004", "Comments are disabled for this project")
    SUBTASK_NOT_FOUND = (404, "TSK_005", "Subtask not found")
    ATTACHMENT_TOO_LARGE = (413, "TSK_006", "Attachment exceeds the 10MB limit")
    ATTACHMENT_UPLOAD_FAILED = (500, "TSK_007", "Attachment upload failed")

    @property
    def http_status(self) -> int:
        return self.value[0]

    @property
    def biz_code(self) -> str:
        return self.value[1]

    @property
    def default_message(self) -> str:
        return self.value[2]


class BusinessException(Exception):
    def __init__(self, error_code: ErrorCode, message: Optional[str] = None, errors: Optional[List[Any]] = None):
        self.error_code = error_code
        self.message = message or error_code.default_message
        self.errors = errors
        super().__init__(self.message)


# 도메인 에러 -> ErrorCode 매핑 (엔진은 메시지를 만들지 않음)
_AUTHORIZATION_CODES: Dict[str, ErrorCode] = {
    "view_project": ErrorCode.PROJECT_ACCESS_DENIED,
    "edit_project": ErrorCode.PROJECT_EDIT_DENIED,
    "delete_project": ErrorCode.PROJECT_DELETE_DENIED,
    "manage_members": ErrorCode.PROJECT_MEMBERS_DENIED,
    "contribute": ErrorCode.PROJECT_CONTRIBUTE_DENIED,
    "edit_task": ErrorCode.TASK_EDIT_DENIED,
    "delete_task": ErrorCode.TASK_DELETE_DENIED,
    "update_task_status": ErrorCode.TASK_STATUS_DENIED,
    "comment": ErrorCode.TASK_COMMENTS_DISABLED,
}

_NOT_FOUND_CODES: Dict[str, ErrorCode] = {
    "user": ErrorCode.USER_NOT_FOUND,
    "project": ErrorCode.PROJECT_NOT_FOUND,
    "member": ErrorCode.PROJECT_MEMBER_NOT_FOUND,
    "task": ErrorCode.TASK_NOT_FOUND,
    "subtask": ErrorCode.SUBTASK_NOT_FOUND,
}


def translate_domain_error(exc: DomainError) -> Tuple[ErrorCode, Optional[List[Dict[str, Any]]]]:
    """Pick the ErrorCode (and validation details) for a domain error."""
    if isinstance(exc, ValidationError):
        return ErrorCode.INVALID_INPUT, [{"field": exc.field, "message": exc.reason}]
    if isinstance(exc, AuthorizationError):
        return _AUTHORIZATION_CODES.get(exc.action, ErrorCode.FORBIDDEN), None
    if isinstance(exc, NotFoundError):
        return _NOT_FOUND_CODES.get(exc.entity, ErrorCode.NOT_FOUND), None
    if isinstance(exc, DuplicateMemberError):
        return ErrorCode.PROJECT_MEMBER_DUPLICATE, None
    if isinstance(exc, CannotRemoveOwnerError):
        return ErrorCode.PROJECT_OWNER_REMOVAL, None
    if isinstance(exc, ConflictError):
        return ErrorCode.PROJECT_CONFLICT, None
    return ErrorCode.INTERNAL_SERVER_ERROR, None
