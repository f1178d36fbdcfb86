"""Read-side dashboard statistics over a snapshot of tasks and projects.

Nothing here mutates its inputs, and every function accepts empty lists.
"""
from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Sequence

from taskflow.domain.rules import is_overdue, round_half_up
from taskflow.models import Project, Task
from taskflow.models.enums import CLOSED_TASK_STATUSES, HIGH_PRIORITIES, Priority, ProjectStatus, TaskStatus
from taskflow.utils.timezone import format_day, iso_week

RECENT_DAYS = 7
DEFAULT_TREND_DAYS = 30


def _value(enum_or_str) -> str:
    return getattr(enum_or_str, "value", enum_or_str)


def user_tasks(tasks: Iterable[Task], user_id: str, include_archived: bool = False) -> List[Task]:
    """Tasks the user created or is assigned to."""
    return [
        task for task in tasks
        if (str(task.assignee_id) == str(user_id) or str(task.creator_id) == str(user_id))
        and (include_archived or not task.is_archived)
    ]


def percentage(part: int, total: int) -> int:
    if total <= 0:
        return 0
    return round_half_up(100 * part / total)


def rates(total: int, completed: int, overdue: int) -> Dict[str, int]:
    completion_rate = percentage(completed, total)
    overdue_rate = percentage(overdue, total)
    return {
        "completion_rate": completion_rate,
        "overdue_rate": overdue_rate,
        "productivity": max(0, completion_rate - overdue_rate),
    }


def task_counts(tasks: Sequence[Task], now: datetime) -> Dict[str, int]:
    by_status = Counter(_value(task.status) for task in tasks)
    recent_since = now - timedelta(days=RECENT_DAYS)
    return {
        "total": len(tasks),
        "todo": by_status[TaskStatus.TODO.value],
        "in_progress": by_status[TaskStatus.IN_PROGRESS.value],
        "in_review": by_status[TaskStatus.IN_REVIEW.value],
        "completed": by_status[TaskStatus.COMPLETED.value],
        "cancelled": by_status[TaskStatus.CANCELLED.value],
        "overdue": sum(1 for task in tasks if is_overdue(task, now)),
        "high_priority": sum(
            1 for task in tasks
            if Priority(task.priority) in HIGH_PRIORITIES and TaskStatus(task.status) not in CLOSED_TASK_STATUSES
        ),
        "recent": sum(1 for task in tasks if task.created_at is not None and task.created_at >= recent_since),
    }


def project_counts(projects: Sequence[Project]) -> Dict[str, int]:
    by_status = Counter(_value(project.status) for project in projects)
    return {
        "total": len(projects),
        "active": by_status[ProjectStatus.ACTIVE.value],
        "completed": by_status[ProjectStatus.COMPLETED.value],
        "on_hold": by_status[ProjectStatus.ON_HOLD.value],
    }


def dashboard_stats(tasks: Sequence[Task], projects: Sequence[Project], now: datetime) -> Dict[str, Any]:
    counts = task_counts(tasks, now)
    return {
        "tasks": counts,
        "projects": project_counts(projects),
        "metrics": rates(counts["total"], counts["completed"], counts["overdue"]),
    }


def distribution(tasks: Iterable[Task], attribute: str) -> List[Dict[str, Any]]:
    """Group-count tasks by ``status`` / ``priority`` / ``category``."""
    counter = Counter(_value(getattr(task, attribute)) for task in tasks)
    return [{attribute: key, "count": count} for key, count in sorted(counter.items())]


def task_distribution(tasks: Sequence[Task]) -> Dict[str, List[Dict[str, Any]]]:
    return {
        "by_status": distribution(tasks, "status"),
        "by_priority": distribution(tasks, "priority"),
        "by_category": distribution(tasks, "category"),
    }


def completion_trend(tasks: Iterable[Task], start: datetime) -> List[Dict[str, Any]]:
    per_day = Counter(
        format_day(task.completed_at)
        for task in tasks
        if TaskStatus(task.status) is TaskStatus.COMPLETED and task.completed_at is not None and task.completed_at >= start
    )
    return [{"date": day, "completed": count} for day, count in sorted(per_day.items())]


def creation_trend(tasks: Iterable[Task], user_id: str, start: datetime) -> List[Dict[str, Any]]:
    per_day = Counter(
        format_day(task.created_at)
        for task in tasks
        if str(task.creator_id) == str(user_id) and task.created_at is not None and task.created_at >= start
    )
    return [{"date": day, "created": count} for day, count in sorted(per_day.items())]


def weekly_stats(tasks: Iterable[Task], start: datetime, now: datetime) -> List[Dict[str, Any]]:
    weeks: Dict[tuple, Dict[str, int]] = defaultdict(lambda: {"total_tasks": 0, "completed_tasks": 0, "overdue_tasks": 0})
    for task in tasks:
        if task.created_at is None or task.created_at < start:
            continue
        bucket = weeks[iso_week(task.created_at)]
        bucket["total_tasks"] += 1
        if TaskStatus(task.status) is TaskStatus.COMPLETED:
            bucket["completed_tasks"] += 1
        if is_overdue(task, now):
            bucket["overdue_tasks"] += 1

    return [
        {
            "year": year,
            "week": week,
            **bucket,
            "completion_rate": percentage(bucket["completed_tasks"], bucket["total_tasks"]),
        }
        for (year, week), bucket in sorted(weeks.items())
    ]


def productivity_trends(
    tasks: Sequence[Task],
    user_id: str,
    now: datetime,
    days: int = DEFAULT_TREND_DAYS,
) -> Dict[str, List[Dict[str, Any]]]:
    # trends include archived tasks: archiving does not undo past completions
    start = now - timedelta(days=days)
    return {
        "completion_trend": completion_trend(tasks, start),
        "creation_trend": creation_trend(tasks, user_id, start),
        "weekly_stats": weekly_stats(tasks, start, now),
    }


def upcoming_deadlines(tasks: Iterable[Task], now: datetime, days: int = 7, limit: int = 10) -> List[Task]:
    until = now + timedelta(days=days)
    upcoming = [
        task for task in tasks
        if task.due_date is not None
        and now <= task.due_date <= until
        and TaskStatus(task.status) not in CLOSED_TASK_STATUSES
    ]
    upcoming.sort(key=lambda task: task.due_date)
    return upcoming[:limit]


def recent_activity(
    tasks: Iterable[Task],
    projects: Iterable[Project],
    now: datetime,
    limit: int = 10,
    window_days: int = DEFAULT_TREND_DAYS,
    project_limit: int = 5,
) -> Dict[str, list]:
    since = now - timedelta(days=window_days)

    def touched(entity) -> bool:
        return (entity.created_at is not None and entity.created_at >= since) or (
            entity.updated_at is not None and entity.updated_at >= since
        )

    def last_touch(entity) -> datetime:
        return entity.updated_at or entity.created_at or datetime.min

    recent_tasks = sorted((task for task in tasks if touched(task)), key=last_touch, reverse=True)
    recent_projects = sorted(
        (project for project in projects if project.updated_at is not None and project.updated_at >= since),
        key=last_touch,
        reverse=True,
    )
    return {"recent_tasks": recent_tasks[:limit], "recent_projects": recent_projects[:project_limit]}


def project_task_stats(tasks: Iterable[Task]) -> Dict[str, int]:
    by_status = Counter(_value(task.status) for task in tasks)
    return {
        "todo": by_status[TaskStatus.TODO.value],
        "in_progress": by_status[TaskStatus.IN_PROGRESS.value],
        "in_review": by_status[TaskStatus.IN_REVIEW.value],
        "completed": by_status[TaskStatus.COMPLETED.value],
        "cancelled": by_status[TaskStatus.CANCELLED.value],
        "total": sum(by_status.values()),
    }
