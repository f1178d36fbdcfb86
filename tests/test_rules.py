from datetime import datetime, timedelta

import pytest

from taskflow.domain.rules import (
    aggregate_progress,
    apply_project_progress,
    apply_status_change,
    days_until_due,
    enforce_status_progress,
    is_overdue,
    recompute_progress_from_subtasks,
    round_half_up,
    subtasks_progress,
    sync_project_status,
)
from taskflow.models import Project, Subtask, Task
from taskflow.models.enums import ProjectStatus, TaskStatus

NOW = datetime(2026, 3, 10, 12, 0, 0)


def _task(**kwargs) -> Task:
    kwargs.setdefault("title", "Task")
    kwargs.setdefault("project_id", 1)
    kwargs.setdefault("creator_id", "u1")
    return Task(**kwargs)


def _with_subtasks(done: int, total: int, **kwargs) -> Task:
    subtasks = [Subtask(title=f"step {i}", position=i, is_completed=i < done) for i in range(total)]
    return _task(subtasks=subtasks, **kwargs)


def test_round_half_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(33.333) == 33
    assert round_half_up(66.666) == 67
    assert round_half_up(0) == 0


def test_completing_sets_progress_and_completed_at_once():
    task = _task(progress=40, status=TaskStatus.IN_PROGRESS)
    apply_status_change(task, TaskStatus.COMPLETED, NOW)
    assert task.progress == 100
    assert task.completed_at == NOW

    apply_status_change(task, TaskStatus.COMPLETED, NOW + timedelta(days=1))
    assert task.completed_at == NOW


def test_leaving_completed_keeps_timestamps():
    task = _task()
    apply_status_change(task, TaskStatus.IN_PROGRESS, NOW)
    apply_status_change(task, TaskStatus.COMPLETED, NOW + timedelta(hours=1))
    apply_status_change(task, TaskStatus.IN_PROGRESS, NOW + timedelta(hours=2))
    task.progress = 80
    enforce_status_progress(task, NOW + timedelta(hours=2))

    assert TaskStatus(task.status) is TaskStatus.IN_PROGRESS
    assert task.started_at == NOW
    assert task.completed_at == NOW + timedelta(hours=1)


def test_todo_resets_progress():
    task = _task(progress=70, status=TaskStatus.IN_PROGRESS)
    apply_status_change(task, TaskStatus.TODO, NOW)
    assert task.progress == 0


@pytest.mark.parametrize(
    "status, progress, expected_status, expected_progress",
    [
        (TaskStatus.COMPLETED, 20, TaskStatus.COMPLETED, 100),
        (TaskStatus.TODO, 55, TaskStatus.TODO, 0),
        (TaskStatus.IN_REVIEW, 100, TaskStatus.COMPLETED, 100),
        (TaskStatus.IN_PROGRESS, 45, TaskStatus.IN_PROGRESS, 45),
    ],
)
def test_enforce_status_progress(status, progress, expected_status, expected_progress):
    task = _task(status=status, progress=progress)
    enforce_status_progress(task, NOW)
    assert TaskStatus(task.status) is expected_status
    assert task.progress == expected_progress
    assert (task.progress == 100) == (TaskStatus(task.status) is TaskStatus.COMPLETED)


def test_three_subtasks_one_done_gives_33():
    task = _with_subtasks(1, 3, status=TaskStatus.IN_PROGRESS, progress=0)
    assert subtasks_progress(task) == 33
    recompute_progress_from_subtasks(task, NOW)
    assert task.progress == 33


def test_recompute_is_idempotent():
    task = _with_subtasks(2, 3, status=TaskStatus.IN_PROGRESS)
    first = recompute_progress_from_subtasks(task, NOW)
    second = recompute_progress_from_subtasks(task, NOW)
    assert first == second == 67


def test_recompute_starts_todo_task():
    task = _with_subtasks(1, 4)
    recompute_progress_from_subtasks(task, NOW)
    assert TaskStatus(task.status) is TaskStatus.IN_PROGRESS
    assert task.started_at == NOW
    assert task.progress == 25


def test_recompute_completes_when_all_done():
    task = _with_subtasks(2, 2, status=TaskStatus.IN_PROGRESS, progress=50)
    recompute_progress_from_subtasks(task, NOW)
    assert TaskStatus(task.status) is TaskStatus.COMPLETED
    assert task.progress == 100
    assert task.completed_at == NOW


def test_recompute_keeps_completed_task_at_100():
    task = _with_subtasks(1, 2, status=TaskStatus.COMPLETED, progress=100)
    recompute_progress_from_subtasks(task, NOW)
    assert task.progress == 100


def test_recompute_without_subtasks_is_noop():
    task = _task(progress=42, status=TaskStatus.IN_PROGRESS)
    assert subtasks_progress(task) == 100
    assert recompute_progress_from_subtasks(task, NOW) == 42


def test_overdue_and_days_until_due():
    late = _task(due_date=NOW - timedelta(days=1))
    done_late = _task(due_date=NOW - timedelta(days=1), status=TaskStatus.COMPLETED)
    soon = _task(due_date=NOW + timedelta(hours=30))

    assert is_overdue(late, NOW)
    assert not is_overdue(done_late, NOW)
    assert not is_overdue(soon, NOW)
    assert days_until_due(soon, NOW) == 2
    assert days_until_due(_task(), NOW) is None


def test_project_progress_is_mean_of_tasks():
    project = Project(title="Site", owner_id="u1")
    tasks = [_task(progress=40, status=TaskStatus.IN_PROGRESS), _task(progress=60, status=TaskStatus.IN_PROGRESS)]
    assert apply_project_progress(project, tasks) == 50
    assert ProjectStatus(project.status) is ProjectStatus.ACTIVE


def test_aggregate_ignores_archived_and_empty():
    tasks = [_task(progress=100, is_archived=True), _task(progress=20)]
    assert aggregate_progress(tasks) == 20
    assert aggregate_progress([]) is None

    project = Project(title="Site", owner_id="u1", progress=35, status=ProjectStatus.ACTIVE)
    assert apply_project_progress(project, []) == 35


def test_project_status_follows_progress():
    project = Project(title="Site", owner_id="u1", progress=100, status=ProjectStatus.ACTIVE)
    sync_project_status(project)
    assert ProjectStatus(project.status) is ProjectStatus.COMPLETED

    archived = Project(title="Old", owner_id="u1", progress=100, status=ProjectStatus.ARCHIVED)
    sync_project_status(archived)
    assert ProjectStatus(archived.status) is ProjectStatus.ARCHIVED

    clamped = Project(title="Odd", owner_id="u1", progress=130)
    sync_project_status(clamped)
    assert clamped.progress == 100
