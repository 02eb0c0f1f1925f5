from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, update, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.core.auth import get_current_user
from app.core.permissions import get_current_admin
from app.models.communication import Notification
from app.models.user import User
from app.schemas.base import ApiResponse, MessageData, ok
from app.schemas.communication import NotificationCreate, NotificationResponse
from app.utils.timeutils import utcnow

router = APIRouter(prefix="/communication/notifications", tags=["notifications"])


@router.get("", response_model=ApiResponse[List[NotificationResponse]])
async def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    query = (
        select(Notification)
        .where(Notification.user_id == current_user.id)
        .where(or_(Notification.expires_at.is_(None), Notification.expires_at > utcnow()))
    )
    if unread_only:
        query = query.where(Notification.is_read.is_(False))

    result = await db.execute(
        query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
    )
    return ok([NotificationResponse.model_validate(n) for n in result.scalars().all()])


@router.post("", response_model=ApiResponse[NotificationResponse], status_code=201)
async def create_notification(
    notification_in: NotificationCreate,
    db: AsyncSession = Depends(get_db),
    admin = Depends(get_current_admin)
):
    result = await db.execute(select(User.id).where(User.id == notification_in.user_id))
    if result.scalar_one_or_none() is None:
        raise HTTPException(404, "User not found")

    notification = Notification(**notification_in.model_dump())
    db.add(notification)
    await db.commit()
    await db.refresh(notification)
    return ok(NotificationResponse.model_validate(notification))


@router.post("/read-all", response_model=ApiResponse[MessageData])
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    await db.execute(
        update(Notification)
        .where(Notification.user_id == current_user.id)
        .where(Notification.is_read.is_(False))
        .values(is_read=True)
    )
    await db.commit()
    return ok(MessageData(message="All notifications marked as read"))


@router.post("/{notification_id}/read", response_model=ApiResponse[NotificationResponse])
async def mark_read(
    notification_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    result = await db.execute(select(Notification).where(Notification.id == notification_id))
    notification = result.scalar_one_or_none()
    if not notification:
        raise HTTPException(404, "Notification not found")
    if notification.user_id != current_user.id:
        raise HTTPException(403, "You don't have permission to update this notification")

    notification.is_read = True
    await db.commit()
    await db.refresh(notification)
    return ok(NotificationResponse.model_validate(notification))
