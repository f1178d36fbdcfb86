from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.models import User


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, user_id: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.user_id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def email_taken(self, email: str, exclude_user_id: Optional[str] = None) -> bool:
        query = select(func.count(User.user_id)).where(User.email == email.lower())
        if exclude_user_id:
            query = query.where(User.user_id != exclude_user_id)
        result = await self.session.execute(query)
        return (result.scalar() or 0) > 0

    async def list_users(self, page: int, limit: int, search: Optional[str] = None) -> Tuple[List[User], int]:
        query = select(User)
        count_query = select(func.count(User.user_id))
        if search:
            pattern = f"%{search}%"
            condition = or_(User.name.ilike(pattern), User.email.ilike(pattern))
            query = query.where(condition)
            count_query = count_query.where(condition)

        result = await self.session.execute(
            query.order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit)
        )
        total = (await self.session.execute(count_query)).scalar() or 0
        return list(result.scalars().all()), total

    async def add(self, user: User) -> User:
        self.session.add(user)
        await self.session.flush()
        return user
