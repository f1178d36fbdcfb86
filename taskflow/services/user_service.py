"""
관리자용 사용자 관리 (계정은 삭제하지 않고 비활성화)
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.core.exceptions import BusinessException, ErrorCode
from taskflow.models import User
from taskflow.repositories.user_repository import UserRepository
from taskflow.utils.timezone import utc_now

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = UserRepository(session)

    async def list_users(self, page: int, limit: int, search: Optional[str] = None) -> Tuple[List[User], int]:
        return await self.users.list_users(page, limit, search)

    async def set_active(self, user_id: str, active: bool, admin: User) -> User:
        user = await self.users.get(user_id)
        if user is None:
            raise BusinessException(ErrorCode.USER_NOT_FOUND)
        if not active and user.user_id == admin.user_id:
            raise BusinessException(ErrorCode.INVALID_INPUT, "Admins cannot deactivate their own account")

        user.is_active = active
        user.updated_at = utc_now()
        await self.session.commit()

        logger.info(f"사용자 {'활성화' if active else '비활성화'}: user_id={user_id}, by={admin.user_id}")
        return user
