from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.core.database import get_db
from taskflow.core.deps import get_admin_user
from taskflow.models import User
from taskflow.schemas.base import Pagination, ResponseEnvelope
from taskflow.schemas.user import UserResponse
from taskflow.services.user_service import UserService

router = APIRouter()


@router.get("", response_model=ResponseEnvelope)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
    admin: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
):
    users, total = await UserService(db).list_users(page, limit, search.strip() if search else None)
    return ResponseEnvelope(
        success=True,
        code="USR_000",
        message="Users",
        data={
            "users": [UserResponse.from_model(user) for user in users],
            "pagination": Pagination.build(page, limit, total),
        },
    )


@router.patch("/{user_id}/deactivate", response_model=ResponseEnvelope)
async def deactivate_user(user_id: str, admin: User = Depends(get_admin_user), db: AsyncSession = Depends(get_db)):
    user = await UserService(db).set_active(user_id, False, admin)
    return ResponseEnvelope(success=True, code="USR_001", message="User deactivated", data=UserResponse.from_model(user))


@router.patch("/{user_id}/activate", response_model=ResponseEnvelope)
async def activate_user(user_id: str, admin: User = Depends(get_admin_user), db: AsyncSession = Depends(get_db)):
    user = await UserService(db).set_active(user_id, True, admin)
    return ResponseEnvelope(success=True, code="USR_002", message="User activated", data=UserResponse.from_model(user))
