"""Task status/progress rules and project aggregate progress.

All functions mutate the instances they are given and never touch a session;
``now`` is always passed in by the caller.
"""
import math
from datetime import datetime
from typing import Iterable, Optional

from taskflow.models import Project, Task
from taskflow.models.enums import CLOSED_TASK_STATUSES, ProjectStatus, TaskStatus


def round_half_up(value: float) -> int:
    """Round .5 away from zero for percentages (``round`` would give 12 for 12.5)."""
    return int(math.floor(value + 0.5))


def apply_status_change(task: Task, new_status: TaskStatus, now: datetime) -> None:
    """Move ``task`` to ``new_status`` and apply the transition side effects.

    completed_at/started_at are stamped once and never cleared when the task later
    leaves that status.
    """
    new_status = TaskStatus(new_status)
    task.status = new_status

    if new_status is TaskStatus.COMPLETED:
        task.progress = 100
        if task.completed_at is None:
            task.completed_at = now
    elif new_status is TaskStatus.TODO:
        task.progress = 0
    elif new_status is TaskStatus.IN_PROGRESS:
        if task.started_at is None:
            task.started_at = now


def enforce_status_progress(task: Task, now: datetime) -> None:
    """Keep ``progress`` consistent with ``status``; run before every task save."""
    status = TaskStatus(task.status)
    if status is TaskStatus.COMPLETED:
        task.progress = 100
    elif status is TaskStatus.TODO:
        task.progress = 0
    elif (task.progress or 0) >= 100:
        apply_status_change(task, TaskStatus.COMPLETED, now)


def completed_subtasks_count(task: Task) -> int:
    return sum(1 for subtask in task.subtasks if subtask.is_completed)


def subtasks_progress(task: Task) -> int:
    total = len(task.subtasks)
    if total == 0:
        return 100
    return round_half_up(100 * completed_subtasks_count(task) / total)


def recompute_progress_from_subtasks(task: Task, now: datetime) -> int:
    """Derive progress from the subtask ratio after a subtask toggle.

    Leaves a task without subtasks untouched. A todo task that gains progress is
    started, reaching 100 completes it, and a completed task stays at 100.
    """
    if not task.subtasks:
        return task.progress

    derived = subtasks_progress(task)
    status = TaskStatus(task.status)

    if derived == 100:
        apply_status_change(task, TaskStatus.COMPLETED, now)
        return task.progress
    if status is TaskStatus.COMPLETED:
        return task.progress

    if derived > 0 and status is TaskStatus.TODO:
        apply_status_change(task, TaskStatus.IN_PROGRESS, now)
    task.progress = derived
    return task.progress


def is_overdue(task: Task, now: datetime) -> bool:
    return (
        task.due_date is not None
        and task.due_date < now
        and TaskStatus(task.status) not in CLOSED_TASK_STATUSES
    )


def days_until_due(task: Task, now: datetime) -> Optional[int]:
    if task.due_date is None:
        return None
    return math.ceil((task.due_date - now).total_seconds() / 86400)


def aggregate_progress(tasks: Iterable[Task]) -> Optional[int]:
    """Rounded mean progress of the non-archived tasks; None when there are none."""
    values = [task.progress or 0 for task in tasks if not task.is_archived]
    if not values:
        return None
    return round_half_up(sum(values) / len(values))


def sync_project_status(project: Project) -> None:
    """Clamp progress and let it drive the project status."""
    progress = max(0, min(100, project.progress or 0))
    project.progress = progress

    status = ProjectStatus(project.status)
    if status is ProjectStatus.ARCHIVED:
        return
    if progress == 100 and status is not ProjectStatus.COMPLETED:
        project.status = ProjectStatus.COMPLETED
    elif progress > 0 and status is ProjectStatus.PLANNING:
        project.status = ProjectStatus.ACTIVE


def apply_project_progress(project: Project, tasks: Iterable[Task]) -> int:
    """Recompute ``project.progress`` from its tasks; zero tasks keep the last value."""
    mean = aggregate_progress(tasks)
    if mean is not None:
        project.progress = mean
    sync_project_status(project)
    return project.progress
