from datetime import datetime, timedelta, timezone

import jwt

from taskflow.core.config import settings
from taskflow.core.security import generate_tokens

DEFAULT_PASSWORD = "Passw0rd"


async def test_register_returns_user_and_tokens(client):
    response = await client.post(
        "/api/auth/register",
        json={"name": "Alice Kim", "email": "Alice@TaskFlow.io", "password": DEFAULT_PASSWORD},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    user = body["data"]["user"]
    assert user["email"] == "alice@taskflow.io"
    assert user["initials"] == "AK"
    assert user["role"] == "user"
    assert user["avatar"].startswith("https://ui-avatars.com/api/?name=AK")
    assert body["data"]["access_token"] and body["data"]["refresh_token"]


async def test_register_duplicate_email(client, signup):
    await signup()
    response = await client.post(
        "/api/auth/register",
        json={"name": "Alice Again", "email": "alice@taskflow.io", "password": DEFAULT_PASSWORD},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "AUTH_006"


async def test_register_validation_errors(client):
    response = await client.post(
        "/api/auth/register",
        json={"name": "R2 D2", "email": "not-an-email", "password": "weakpass"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    fields = {error["field"] for error in body["errors"]}
    assert {"name", "email", "password"} <= fields


async def test_login_and_profile(client, signup):
    await signup()
    response = await client.post("/api/auth/login", json={"email": "alice@taskflow.io", "password": DEFAULT_PASSWORD})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["user"]["last_login"] is not None

    headers = {"Authorization": f"Bearer {data['access_token']}"}
    profile = await client.get("/api/auth/profile", headers=headers)
    assert profile.status_code == 200
    assert profile.json()["data"]["name"] == "Alice Kim"


async def test_login_wrong_password(client, signup):
    await signup()
    response = await client.post("/api/auth/login", json={"email": "alice@taskflow.io", "password": "Wrong1234"})
    assert response.status_code == 401
    assert response.json()["code"] == "AUTH_001"


async def test_auth_attempts_are_rate_limited(client, signup):
    await signup()
    for _ in range(4):
        response = await client.post("/api/auth/login", json={"email": "alice@taskflow.io", "password": "Wrong1234"})
        assert response.status_code == 401

    # register / login 이 같은 카운터를 사용 (6번째 요청부터 차단)
    blocked = await client.post("/api/auth/login", json={"email": "alice@taskflow.io", "password": DEFAULT_PASSWORD})
    assert blocked.status_code == 429
    body = blocked.json()
    assert body["success"] is False
    assert body["code"] == "AUTH_009"
    assert body["data"] is None

    other = await client.post(
        "/api/auth/register", json={"name": "Bob Lee", "email": "bob@taskflow.io", "password": DEFAULT_PASSWORD}
    )
    assert other.status_code == 429

    # 다른 경로는 제한 대상이 아님
    assert (await client.get("/api/health")).status_code == 200


async def test_missing_and_invalid_tokens(client):
    assert (await client.get("/api/auth/profile")).status_code == 401

    response = await client.get("/api/auth/profile", headers={"Authorization": "Bearer not.a.jwt"})
    assert response.status_code == 401
    assert response.json()["code"] == "AUTH_003"


async def test_expired_token(client, signup):
    alice = await signup()
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {
            "userId": alice["user_id"],
            "type": "access",
            "iat": now - timedelta(hours=2),
            "exp": now - timedelta(hours=1),
            "iss": settings.JWT_ISSUER,
            "aud": settings.JWT_AUDIENCE,
        },
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )
    response = await client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["code"] == "AUTH_002"


async def test_refresh_token_rotation(client, signup):
    alice = await signup()
    tokens = generate_tokens(alice["user_id"], settings)

    response = await client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 200
    assert response.json()["data"]["access_token"]

    # access 토큰은 refresh 용도로 쓸 수 없음
    response = await client.post("/api/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert response.status_code == 401


async def test_update_profile_and_email_conflict(client, signup):
    alice = await signup()
    await signup(name="Bob Lee", email="bob@taskflow.io")

    response = await client.put(
        "/api/auth/profile",
        json={"name": "Alice Park", "preferences": {"theme": "dark", "notifications": {"email": False, "push": True}}},
        headers=alice["headers"],
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Alice Park"
    assert data["preferences"]["theme"] == "dark"
    assert data["preferences"]["notifications"]["email"] is False

    response = await client.put("/api/auth/profile", json={"email": "bob@taskflow.io"}, headers=alice["headers"])
    assert response.status_code == 400
    assert response.json()["message"] == "Email already exists"


async def test_change_password(client, signup):
    alice = await signup()

    response = await client.post(
        "/api/auth/change-password",
        json={"current_password": "Nope12345", "new_password": "NewPassw0rd"},
        headers=alice["headers"],
    )
    assert response.status_code == 400
    assert response.json()["code"] == "AUTH_007"

    response = await client.post(
        "/api/auth/change-password",
        json={"current_password": DEFAULT_PASSWORD, "new_password": "NewPassw0rd"},
        headers=alice["headers"],
    )
    assert response.status_code == 200

    login = await client.post("/api/auth/login", json={"email": "alice@taskflow.io", "password": "NewPassw0rd"})
    assert login.status_code == 200


async def test_logout_and_verify_token(client, signup):
    alice = await signup()
    verify = await client.post("/api/auth/verify-token", headers=alice["headers"])
    assert verify.status_code == 200
    assert verify.json()["data"]["user"]["user_id"] == alice["user_id"]

    logout = await client.post("/api/auth/logout", headers=alice["headers"])
    assert logout.json()["message"] == "Logged out successfully"


async def test_admin_deactivation_blocks_access(client, signup, make_admin):
    admin = await signup(name="Root Admin", email="root@taskflow.io")
    await make_admin(admin["user_id"])
    alice = await signup()

    listing = await client.get("/api/users", headers=admin["headers"])
    assert listing.status_code == 200
    assert listing.json()["data"]["pagination"]["total_items"] == 2

    forbidden = await client.get("/api/users", headers=alice["headers"])
    assert forbidden.status_code == 403

    response = await client.patch(f"/api/users/{alice['user_id']}/deactivate", headers=admin["headers"])
    assert response.status_code == 200
    assert response.json()["data"]["is_active"] is False

    blocked = await client.get("/api/auth/profile", headers=alice["headers"])
    assert blocked.status_code == 401
    assert blocked.json()["code"] == "AUTH_005"

    login = await client.post("/api/auth/login", json={"email": alice["email"], "password": DEFAULT_PASSWORD})
    assert login.status_code == 401

    await client.patch(f"/api/users/{alice['user_id']}/activate", headers=admin["headers"])
    assert (await client.get("/api/auth/profile", headers=alice["headers"])).status_code == 200


async def test_health(client):
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "healthy"
