import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.core.config import Settings
from taskflow.core.database import get_db
from taskflow.core.deps import get_current_user, get_settings
from taskflow.core.rate_limit import auth_rate_limit
from taskflow.models import User
from taskflow.schemas.base import ResponseEnvelope
from taskflow.schemas.user import (
    LoginRequest,
    PasswordChange,
    ProfileUpdate,
    RefreshRequest,
    RegisterRequest,
    UserResponse,
)
from taskflow.services.auth_service import AuthService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=ResponseEnvelope, status_code=status.HTTP_201_CREATED)
@auth_rate_limit
async def register(
    request: Request,
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
):
    user, tokens = await AuthService(db, app_settings).register(payload)
    return ResponseEnvelope(
        success=True,
        code="AUTH_000",
        message="User registered successfully",
        data={"user": UserResponse.from_model(user), **tokens},
    )


@router.post("/login", response_model=ResponseEnvelope)
@auth_rate_limit
async def login(
    request: Request,
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
):
    user, tokens = await AuthService(db, app_settings).login(payload)
    return ResponseEnvelope(
        success=True,
        code="AUTH_000",
        message="Login successful",
        data={"user": UserResponse.from_model(user), **tokens},
    )


@router.post("/refresh", response_model=ResponseEnvelope)
async def refresh(
    payload: RefreshRequest,
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
):
    """refresh 토큰으로 access/refresh 토큰 재발급"""
    tokens = await AuthService(db, app_settings).refresh(payload.refresh_token)
    return ResponseEnvelope(success=True, code="AUTH_000", message="Token refreshed", data=tokens)


@router.get("/profile", response_model=ResponseEnvelope)
async def get_profile(current_user: User = Depends(get_current_user)):
    return ResponseEnvelope(success=True, code="AUTH_000", message="Profile", data=UserResponse.from_model(current_user))


@router.put("/profile", response_model=ResponseEnvelope)
async def update_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
):
    user = await AuthService(db, app_settings).update_profile(current_user, payload)
    return ResponseEnvelope(
        success=True,
        code="AUTH_000",
        message="Profile updated successfully",
        data=UserResponse.from_model(user),
    )


@router.post("/change-password", response_model=ResponseEnvelope)
async def change_password(
    payload: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
):
    await AuthService(db, app_settings).change_password(current_user, payload)
    return ResponseEnvelope(success=True, code="AUTH_000", message="Password changed successfully")


@router.post("/logout", response_model=ResponseEnvelope)
async def logout(current_user: User = Depends(get_current_user)):
    # 토큰은 stateless: 클라이언트가 폐기
    logger.info(f"로그아웃: user_id={current_user.user_id}")
    return ResponseEnvelope(success=True, code="AUTH_000", message="Logged out successfully")


@router.post("/verify-token", response_model=ResponseEnvelope)
async def verify_token(current_user: User = Depends(get_current_user)):
    return ResponseEnvelope(
        success=True,
        code="AUTH_000",
        message="Token is valid",
        data={"user": UserResponse.from_model(current_user)},
    )
