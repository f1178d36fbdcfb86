from datetime import datetime, timedelta

from taskflow.domain import dashboard
from taskflow.models import Project, Task
from taskflow.models.enums import Priority, ProjectStatus, TaskCategory, TaskStatus

NOW = datetime(2026, 5, 20, 12, 0, 0)  # Wednesday, ISO week 21
ME = "me"


def _task(task_id, **kwargs) -> Task:
    kwargs.setdefault("title", f"task {task_id}")
    kwargs.setdefault("project_id", 1)
    kwargs.setdefault("creator_id", ME)
    kwargs.setdefault("assignee_id", ME)
    kwargs.setdefault("created_at", NOW - timedelta(days=1))
    kwargs.setdefault("updated_at", kwargs["created_at"])
    return Task(task_id=task_id, **kwargs)


def _sample():
    return [
        _task(1, status=TaskStatus.COMPLETED, progress=100, completed_at=NOW - timedelta(days=2)),
        _task(2, status=TaskStatus.IN_PROGRESS, priority=Priority.URGENT, due_date=NOW - timedelta(days=1)),
        _task(3, status=TaskStatus.TODO, priority=Priority.HIGH, category=TaskCategory.BUG,
              due_date=NOW + timedelta(days=3)),
        _task(4, status=TaskStatus.IN_REVIEW, created_at=NOW - timedelta(days=20)),
    ]


def test_empty_inputs_have_zero_rates():
    stats = dashboard.dashboard_stats([], [], NOW)
    assert stats["tasks"]["total"] == 0
    assert stats["metrics"] == {"completion_rate": 0, "overdue_rate": 0, "productivity": 0}
    assert dashboard.task_distribution([]) == {"by_status": [], "by_priority": [], "by_category": []}
    assert dashboard.productivity_trends([], ME, NOW)["weekly_stats"] == []


def test_productivity_is_never_negative():
    assert dashboard.rates(4, 0, 3)["productivity"] == 0
    assert dashboard.rates(3, 1, 0) == {"completion_rate": 33, "overdue_rate": 0, "productivity": 33}


def test_task_counts():
    counts = dashboard.task_counts(_sample(), NOW)
    assert counts["total"] == 4
    assert counts["completed"] == 1
    assert counts["in_progress"] == 1
    assert counts["in_review"] == 1
    assert counts["todo"] == 1
    assert counts["overdue"] == 1
    assert counts["high_priority"] == 2
    assert counts["recent"] == 3


def test_dashboard_stats_metrics_and_projects():
    projects = [
        Project(title="A", owner_id=ME, status=ProjectStatus.ACTIVE),
        Project(title="B", owner_id=ME, status=ProjectStatus.ON_HOLD),
    ]
    stats = dashboard.dashboard_stats(_sample(), projects, NOW)
    assert stats["metrics"] == {"completion_rate": 25, "overdue_rate": 25, "productivity": 0}
    assert stats["projects"] == {"total": 2, "active": 1, "completed": 0, "on_hold": 1}


def test_user_tasks_excludes_archived_and_unrelated():
    tasks = _sample() + [
        _task(5, is_archived=True),
        _task(6, creator_id="other", assignee_id="other"),
    ]
    assert [task.task_id for task in dashboard.user_tasks(tasks, ME)] == [1, 2, 3, 4]
    assert len(dashboard.user_tasks(tasks, ME, include_archived=True)) == 5


def test_distribution_counts():
    distribution = dashboard.task_distribution(_sample())
    assert {"category": "bug", "count": 1} in distribution["by_category"]
    assert {"priority": "medium", "count": 2} in distribution["by_priority"]
    assert sum(item["count"] for item in distribution["by_status"]) == 4


def test_upcoming_deadlines_skip_overdue_and_closed():
    upcoming = dashboard.upcoming_deadlines(_sample(), NOW, days=7)
    assert [task.task_id for task in upcoming] == [3]


def test_productivity_trends():
    trends = dashboard.productivity_trends(_sample(), ME, NOW, days=30)
    assert trends["completion_trend"] == [{"date": "2026-05-18", "completed": 1}]
    assert {"date": "2026-05-19", "created": 3} in trends["creation_trend"]

    weeks = {(item["year"], item["week"]): item for item in trends["weekly_stats"]}
    current = weeks[(2026, 21)]
    assert current["total_tasks"] == 3
    assert current["completed_tasks"] == 1
    assert current["overdue_tasks"] == 1
    assert current["completion_rate"] == 33


def test_recent_activity_orders_by_last_touch():
    tasks = _sample()
    tasks[3].updated_at = NOW - timedelta(hours=1)
    projects = [Project(title="A", owner_id=ME, updated_at=NOW - timedelta(days=40))]

    activity = dashboard.recent_activity(tasks, projects, NOW, limit=2)
    assert [task.task_id for task in activity["recent_tasks"]] == [4, 1]
    assert activity["recent_projects"] == []


def test_project_task_stats():
    stats = dashboard.project_task_stats(_sample())
    assert stats == {"todo": 1, "in_progress": 1, "in_review": 1, "completed": 1, "cancelled": 0, "total": 4}
