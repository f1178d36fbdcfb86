"""Error taxonomy raised by the domain rule engine.

Errors carry structured fields only. Turning them into HTTP status codes and
user-facing messages is the API layer's job (see ``taskflow.core.exceptions``).
"""
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"


class DomainError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL


class ValidationError(DomainError):
    kind = ErrorKind.VALIDATION

    def __init__(self, field: str, reason: str, value: Any = None):
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason
        self.value = value


class AuthorizationError(DomainError):
    kind = ErrorKind.AUTHORIZATION

    def __init__(self, action: str):
        super().__init__(action)
        self.action = action


class NotFoundError(DomainError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, identifier: Optional[Any] = None):
        super().__init__(f"{entity} {identifier}")
        self.entity = entity
        self.identifier = identifier


class ConflictError(DomainError):
    kind = ErrorKind.CONFLICT


class DuplicateMemberError(ConflictError):
    def __init__(self, user_id: str):
        super().__init__(user_id)
        self.user_id = user_id


class CannotRemoveOwnerError(ConflictError):
    def __init__(self, user_id: str):
        super().__init__(user_id)
        self.user_id = user_id


class InternalError(DomainError):
    kind = ErrorKind.INTERNAL
