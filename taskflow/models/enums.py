from enum import Enum


# 사용자 역할 (서비스 전체)
class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


# 프로젝트 멤버 역할 (owner는 Project.owner_id로만 표현, members 테이블에는 저장하지 않음)
class MemberRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


# 프로젝트 상태
class ProjectStatus(str, Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    ARCHIVED = "archived"


# 우선순위 (프로젝트/작업 공통)
class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


# 작업 상태
class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    IN_REVIEW = "in-review"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# 작업 카테고리
class TaskCategory(str, Enum):
    FEATURE = "feature"
    BUG = "bug"
    IMPROVEMENT = "improvement"
    DOCUMENTATION = "documentation"
    TESTING = "testing"
    OTHER = "other"


CLOSED_TASK_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.CANCELLED})
HIGH_PRIORITIES = frozenset({Priority.HIGH, Priority.URGENT})


def enum_values(enum_cls):
    """SQLEnum이 name 대신 value("in-progress" 등)를 저장하도록"""
    return [member.value for member in enum_cls]
