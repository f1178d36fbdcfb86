import logging
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.core.config import Settings, settings
from taskflow.core.database import get_db
from taskflow.core.exceptions import BusinessException, ErrorCode
from taskflow.models import User
from taskflow.models.enums import UserRole
from taskflow.services.auth_service import AuthService

logger = logging.getLogger(__name__)


def get_settings() -> Settings:
    return settings


def bearer_token(authorization: Optional[str] = Header(None)) -> str:
    """Authorization: Bearer <token> 에서 토큰만 추출"""
    if not authorization or not authorization.startswith("Bearer "):
        raise BusinessException(ErrorCode.UNAUTHORIZED)
    token = authorization[len("Bearer "):].strip()
    if not token:
        raise BusinessException(ErrorCode.UNAUTHORIZED, "Access denied. Invalid token format.")
    return token


async def get_current_user(
    token: str = Depends(bearer_token),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
) -> User:
    """
    Bearer access 토큰을 검증하고 활성 사용자를 반환합니다.
    - 만료/위조 토큰: 401
    - 삭제되었거나 비활성화된 사용자: 401
    """
    return await AuthService(db, app_settings).authenticate(token)


async def get_admin_user(current_user: User = Depends(get_current_user)) -> User:
    if UserRole(current_user.role) is not UserRole.ADMIN:
        logger.warning(f"⚠️ 관리자 권한 없음: user_id={current_user.user_id}")
        raise BusinessException(ErrorCode.AUTH_ADMIN_ONLY)
    return current_user
