import asyncio

import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from taskflow.core.database import build_session_factory, init_models
from taskflow.models import Project, Task, User
from taskflow.models.enums import TaskStatus
from taskflow.schemas.task import TaskUpdate
from taskflow.services.locks import ProjectLocks
from taskflow.services.task_service import TaskService


@pytest_asyncio.fixture
async def file_sessions(tmp_path):
    # 세션마다 별도 connection 이 필요해서 파일 DB 사용
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'taskflow.db'}")
    await init_models(engine)
    yield build_session_factory(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def seeded(file_sessions):
    async with file_sessions() as session:
        owner = User(name="Alice Kim", email="alice@taskflow.io", password_hash="x")
        session.add(owner)
        await session.flush()
        project = Project(title="Launch Plan", owner_id=owner.user_id)
        session.add(project)
        await session.flush()
        tasks = [
            Task(title=f"Step {index}", project_id=project.project_id,
                 creator_id=owner.user_id, assignee_id=owner.user_id)
            for index in range(2)
        ]
        session.add_all(tasks)
        await session.commit()
        return {
            "owner_id": owner.user_id,
            "project_id": project.project_id,
            "task_ids": [task.task_id for task in tasks],
        }


async def _project_progress(file_sessions, project_id) -> int:
    async with file_sessions() as session:
        project = await session.get(Project, project_id)
        return project.progress


async def test_hold_serializes_same_project():
    locks = ProjectLocks()
    events = []

    async def worker(name):
        async with locks.hold(1):
            events.append(f"{name}-in")
            await asyncio.sleep(0.01)
            events.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert events == ["a-in", "a-out", "b-in", "b-out"]


async def test_different_projects_do_not_wait():
    locks = ProjectLocks()
    events = []

    async def worker(project_id):
        async with locks.hold(project_id):
            events.append(f"{project_id}-in")
            await asyncio.sleep(0.01)
            events.append(f"{project_id}-out")

    await asyncio.gather(worker(1), worker(2))
    assert events[:2] == ["1-in", "2-in"]


async def test_forget_keeps_held_lock():
    locks = ProjectLocks()
    async with locks.hold(7):
        locks.forget(7)
        assert 7 in locks._locks
    locks.forget(7)
    assert 7 not in locks._locks


async def test_concurrent_updates_keep_project_mean(file_sessions, seeded):
    locks = ProjectLocks()
    first, second = seeded["task_ids"]

    async def update(task_id, progress):
        async with file_sessions() as session:
            user = await session.get(User, seeded["owner_id"])
            payload = TaskUpdate(status=TaskStatus.IN_PROGRESS, progress=progress)
            await TaskService(session, locks=locks).update_task(user, task_id, payload)

    await asyncio.gather(update(first, 40), update(second, 80))
    assert await _project_progress(file_sessions, seeded["project_id"]) == 60


async def test_concurrent_status_changes(file_sessions, seeded):
    locks = ProjectLocks()
    first, second = seeded["task_ids"]

    async def change(task_id, status):
        async with file_sessions() as session:
            user = await session.get(User, seeded["owner_id"])
            await TaskService(session, locks=locks).change_status(user, task_id, status)

    await asyncio.gather(change(first, TaskStatus.COMPLETED), change(second, TaskStatus.COMPLETED))
    assert await _project_progress(file_sessions, seeded["project_id"]) == 100


async def test_recompute_sees_sibling_committed_after_first_read(file_sessions, seeded):
    locks = ProjectLocks()
    first, second = seeded["task_ids"]

    async with file_sessions() as stale, file_sessions() as other:
        # 먼저 형제 작업을 읽어 둔 세션
        user = await stale.get(User, seeded["owner_id"])
        sibling = await stale.get(Task, second)
        assert sibling.progress == 0

        other_user = await other.get(User, seeded["owner_id"])
        await TaskService(other, locks=locks).update_task(
            other_user, second, TaskUpdate(status=TaskStatus.IN_PROGRESS, progress=80)
        )

        await TaskService(stale, locks=locks).update_task(
            user, first, TaskUpdate(status=TaskStatus.IN_PROGRESS, progress=40)
        )

    assert await _project_progress(file_sessions, seeded["project_id"]) == 60
