from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.core.auth import get_current_user
from app.core.permissions import (
    can_access_admin_features, can_view_user, get_current_admin, require_permission,
)
from app.models.enums import SalesPosition, UserRole
from app.models.user import User
from app.schemas.base import ApiResponse, ok
from app.schemas.user import AdminUserUpdate, ProfileUpdate, UserResponse

router = APIRouter(prefix="/users", tags=["users"])

get_user_viewer = require_permission(can_access_admin_features, "You don't have permission to list users")


@router.get("", response_model=ApiResponse[List[UserResponse]])
async def list_users(
    role: Optional[UserRole] = None,
    position: Optional[SalesPosition] = None,
    is_active: Optional[bool] = Query(None, alias="isActive"),
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_user_viewer)
):
    query = select(User)
    if role:
        query = query.where(User.role == role.value)
    if position:
        query = query.where(User.position == position.value)
    if is_active is not None:
        query = query.where(User.is_active.is_(is_active))
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(or_(func.lower(User.name).like(pattern), func.lower(User.email).like(pattern)))

    result = await db.execute(query.order_by(User.name, User.id))
    return ok([UserResponse.model_validate(u) for u in result.scalars().all()])


@router.get("/me", response_model=ApiResponse[UserResponse])
async def get_me(current_user = Depends(get_current_user)):
    return ok(UserResponse.model_validate(current_user))


@router.put("/me", response_model=ApiResponse[UserResponse])
async def update_me(
    profile_in: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    for field, value in profile_in.changes().items():
        setattr(current_user, field, value)
    await db.commit()
    await db.refresh(current_user)
    return ok(UserResponse.model_validate(current_user))


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    if not can_view_user(current_user, user_id):
        raise HTTPException(403, "You don't have permission to view this user")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(404, "User not found")
    return ok(UserResponse.model_validate(user))


@router.put("/{user_id}", response_model=ApiResponse[UserResponse])
async def update_user(
    user_id: int,
    user_in: AdminUserUpdate,
    db: AsyncSession = Depends(get_db),
    admin = Depends(get_current_admin)
):
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(404, "User not found")

    if user.id == admin.id and user_in.is_active is False:
        raise HTTPException(400, "You cannot deactivate your own account")

    for field, value in user_in.changes().items():
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    return ok(UserResponse.model_validate(user))
