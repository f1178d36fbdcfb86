import re
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from taskflow.models.enums import Theme, UserRole
from taskflow.models.user import User
from taskflow.schemas.base import UtcDatetime

_PASSWORD_RULE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")
_NAME_RULE = re.compile(r"^[a-zA-Z\s]+$")


def _check_password(value: str) -> str:
    if not _PASSWORD_RULE.match(value):
        raise ValueError("Password must contain at least one lowercase letter, one uppercase letter, and one number")
    return value


def _check_name(value: str) -> str:
    value = value.strip()
    if not 2 <= len(value) <= 50:
        raise ValueError("Name must be between 2 and 50 characters")
    if not _NAME_RULE.match(value):
        raise ValueError("Name can only contain letters and spaces")
    return value


class NotificationPreferences(BaseModel):
    email: bool = True
    push: bool = True


class Preferences(BaseModel):
    theme: Theme = Theme.SYSTEM
    notifications: NotificationPreferences = NotificationPreferences()


# --- Request Schemas ---
class RegisterRequest(BaseModel):
    name: str
    email: EmailStr
    password: str = Field(min_length=6)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _check_name(value)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _check_password(value)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    remember_me: bool = False


class RefreshRequest(BaseModel):
    refresh_token: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    avatar: Optional[str] = Field(default=None, max_length=1024)
    preferences: Optional[Preferences] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: Optional[str]) -> Optional[str]:
        return _check_name(value) if value is not None else None


class PasswordChange(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return _check_password(value)


# --- Response Schemas ---
class UserBrief(BaseModel):
    user_id: str
    name: str
    email: str
    avatar: Optional[str] = None

    @classmethod
    def from_model(cls, user: Optional[User]) -> Optional["UserBrief"]:
        if user is None:
            return None
        return cls(user_id=user.user_id, name=user.name, email=user.email, avatar=user.avatar)


class UserResponse(UserBrief):
    role: UserRole
    is_active: bool
    initials: str
    preferences: Preferences
    last_login: Optional[UtcDatetime] = None
    created_at: Optional[UtcDatetime] = None

    @classmethod
    def from_model(cls, user: User) -> "UserResponse":
        return cls(
            user_id=user.user_id,
            name=user.name,
            email=user.email,
            avatar=user.avatar,
            role=user.role,
            is_active=user.is_active,
            initials=user.initials,
            preferences=Preferences(
                theme=user.theme,
                notifications=NotificationPreferences(email=user.notify_email, push=user.notify_push),
            ),
            last_login=user.last_login,
            created_at=user.created_at,
        )
