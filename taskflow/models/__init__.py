from taskflow.models.user import User
from taskflow.models.project import Project, ProjectMember
from taskflow.models.task import Subtask, Task, TaskAttachment, TaskComment

__all__ = [
    "User",
    "Project",
    "ProjectMember",
    "Task",
    "Subtask",
    "TaskComment",
    "TaskAttachment",
]
