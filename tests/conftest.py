import os

# taskflow import 전에 설정 (Settings는 import 시점에 환경변수를 읽음)
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-access-secret-key-0123456789abcdef"
os.environ["REFRESH_SECRET_KEY"] = "test-refresh-secret-key-0123456789abcdef"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from taskflow.core.config import settings
from taskflow.core.database import build_session_factory, get_db, init_models
from taskflow.core.rate_limit import limiter
from taskflow.main import app
from taskflow.models import User
from taskflow.models.enums import UserRole
from taskflow.services.file_service import FileService, get_file_service

DEFAULT_PASSWORD = "Passw0rd"


class FakeS3Client:
    """boto3 S3 client 대역 (업로드/삭제만 기록)"""

    def __init__(self):
        self.objects = {}
        self.deleted = []

    def upload_fileobj(self, fileobj, bucket, key, ExtraArgs=None):
        self.objects[key] = fileobj.read()

    def delete_object(self, Bucket, Key):
        self.objects.pop(Key, None)
        self.deleted.append(Key)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def s3_client():
    return FakeS3Client()


@pytest.fixture
def file_service(s3_client):
    return FileService(settings, client=s3_client)


@pytest_asyncio.fixture
async def client(session_factory, file_service):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_service] = lambda: file_service
    # 인증 요청 제한 카운터는 테스트마다 초기화
    limiter.reset()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_file_service, None)


@pytest.fixture
def signup(client):
    async def _signup(name="Alice Kim", email="alice@taskflow.io", password=DEFAULT_PASSWORD):
        response = await client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return {
            "user": data["user"],
            "user_id": data["user"]["user_id"],
            "email": email,
            "headers": {"Authorization": f"Bearer {data['access_token']}"},
        }

    return _signup


@pytest.fixture
def make_admin(session_factory):
    async def _make_admin(user_id: str):
        async with session_factory() as session:
            user = await session.get(User, user_id)
            user.role = UserRole.ADMIN
            await session.commit()

    return _make_admin


@pytest.fixture
def create_project(client):
    async def _create_project(headers, **fields):
        body = {"title": "Launch Plan", **fields}
        response = await client.post("/api/projects", json=body, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create_project


@pytest.fixture
def create_task(client):
    async def _create_task(headers, project_id, **fields):
        body = {"title": "Write docs", "project_id": project_id, **fields}
        response = await client.post("/api/tasks", json=body, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create_task


@pytest.fixture
def add_member(client):
    async def _add_member(headers, project_id, email, role="member"):
        response = await client.post(
            f"/api/projects/{project_id}/members", json={"email": email, "role": role}, headers=headers
        )
        assert response.status_code == 200, response.text
        return response.json()["data"]

    return _add_member
