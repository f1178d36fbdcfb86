"""
인증 서비스: 회원가입 / 로그인 / 토큰 재발급 / 프로필
"""
import logging
from typing import Dict, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.core.config import Settings
from taskflow.core.exceptions import BusinessException, ErrorCode
from taskflow.core.security import REFRESH_TOKEN, decode_token, generate_tokens, hash_password, verify_password
from taskflow.models import User
from taskflow.models.user import default_avatar_url
from taskflow.repositories.user_repository import UserRepository
from taskflow.schemas.user import LoginRequest, PasswordChange, ProfileUpdate, RegisterRequest
from taskflow.utils.timezone import utc_now

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, session: AsyncSession, app_settings: Settings):
        self.session = session
        self.settings = app_settings
        self.users = UserRepository(session)

    async def _active_user(self, user_id: str) -> User:
        user = await self.users.get(user_id)
        if user is None:
            raise BusinessException(ErrorCode.AUTH_USER_GONE)
        if not user.is_active:
            raise BusinessException(ErrorCode.AUTH_ACCOUNT_DEACTIVATED)
        return user

    async def authenticate(self, access_token: str) -> User:
        """Bearer access 토큰 -> 활성 사용자"""
        payload = decode_token(access_token, self.settings)
        return await self._active_user(payload["userId"])

    async def register(self, payload: RegisterRequest) -> Tuple[User, Dict[str, str]]:
        if await self.users.email_taken(payload.email):
            raise BusinessException(ErrorCode.AUTH_EMAIL_EXISTS)

        user = User(
            name=payload.name,
            email=payload.email,
            password_hash=hash_password(payload.password, self.settings),
            avatar=default_avatar_url(payload.name),
        )
        await self.users.add(user)
        await self.session.commit()

        logger.info(f"✅ 회원가입 완료: user_id={user.user_id}")
        return user, generate_tokens(user.user_id, self.settings)

    async def login(self, payload: LoginRequest) -> Tuple[User, Dict[str, str]]:
        user = await self.users.get_by_email(payload.email)
        if user is None:
            raise BusinessException(ErrorCode.AUTH_INVALID_CREDENTIALS)
        if not user.is_active:
            raise BusinessException(ErrorCode.AUTH_ACCOUNT_DEACTIVATED)
        if not verify_password(payload.password, user.password_hash):
            logger.warning(f"⚠️ 로그인 실패 (비밀번호 불일치): user_id={user.user_id}")
            raise BusinessException(ErrorCode.AUTH_INVALID_CREDENTIALS)

        user.last_login = utc_now()
        await self.session.commit()

        logger.info(f"로그인: user_id={user.user_id}, remember_me={payload.remember_me}")
        return user, generate_tokens(user.user_id, self.settings, remember_me=payload.remember_me)

    async def refresh(self, refresh_token: str) -> Dict[str, str]:
        payload = decode_token(refresh_token, self.settings, token_type=REFRESH_TOKEN)
        user = await self._active_user(payload["userId"])
        return generate_tokens(user.user_id, self.settings)

    async def update_profile(self, user: User, payload: ProfileUpdate) -> User:
        if payload.email is not None and payload.email != user.email:
            if await self.users.email_taken(payload.email, exclude_user_id=user.user_id):
                raise BusinessException(ErrorCode.AUTH_EMAIL_EXISTS, "Email already exists")
            user.email = payload.email.lower()

        if payload.name is not None:
            user.name = payload.name
        if payload.avatar is not None:
            user.avatar = payload.avatar
        if payload.preferences is not None:
            user.theme = payload.preferences.theme
            user.notify_email = payload.preferences.notifications.email
            user.notify_push = payload.preferences.notifications.push

        user.updated_at = utc_now()
        await self.session.commit()
        return user

    async def change_password(self, user: User, payload: PasswordChange) -> None:
        if not verify_password(payload.current_password, user.password_hash):
            raise BusinessException(ErrorCode.AUTH_WRONG_PASSWORD)

        user.password_hash = hash_password(payload.new_password, self.settings)
        user.updated_at = utc_now()
        await self.session.commit()
        logger.info(f"비밀번호 변경: user_id={user.user_id}")
