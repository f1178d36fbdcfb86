"""
User 모델 정의
"""
import uuid
from urllib.parse import quote

from sqlalchemy import Boolean, Column, DateTime, Enum as SQLEnum, String

from taskflow.core.database import Base
from taskflow.models.enums import Theme, UserRole, enum_values
from taskflow.utils.timezone import utc_now


def initials_of(name: str) -> str:
    return "".join(part[0] for part in name.split() if part).upper()


def default_avatar_url(name: str) -> str:
    return f"https://ui-avatars.com/api/?name={quote(initials_of(name))}&background=6366f1&color=ffffff&size=200"


class User(Base):
    """사용자 모델 (삭제하지 않고 is_active로 비활성화)"""
    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    avatar = Column(String(1024))
    role = Column(SQLEnum(UserRole, values_callable=enum_values), nullable=False, default=UserRole.USER)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime)
    theme = Column(SQLEnum(Theme, values_callable=enum_values), nullable=False, default=Theme.SYSTEM)
    notify_email = Column(Boolean, nullable=False, default=True)
    notify_push = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    @property
    def initials(self) -> str:
        return initials_of(self.name or "")

    def __repr__(self):
        return f"<User(user_id={self.user_id}, email='{self.email}', role='{self.role}')>"
