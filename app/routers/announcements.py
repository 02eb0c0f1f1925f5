from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.core.auth import get_current_user
from app.core.permissions import can_manage_communications, get_communications_manager
from app.models.communication import Announcement
from app.models.enums import AnnouncementPriority, NotificationType
from app.schemas.base import ApiResponse, MessageData, ok
from app.schemas.communication import AnnouncementCreate, AnnouncementResponse, AnnouncementUpdate
from app.services.notifications import notify_audience
from app.services.visibility import filter_visible, is_visible_to
from app.utils.timeutils import as_utc, utcnow

router = APIRouter(prefix="/communication/announcements", tags=["announcements"])

PRIORITY_WEIGHT = {
    AnnouncementPriority.URGENT.value: 3,
    AnnouncementPriority.HIGH.value: 2,
    AnnouncementPriority.MEDIUM.value: 1,
    AnnouncementPriority.LOW.value: 0,
}


def is_live(announcement: Announcement, now=None) -> bool:
    """Published, not a draft and not expired."""
    now = now or utcnow()
    if announcement.is_draft:
        return False
    if as_utc(announcement.publish_date) > now:
        return False
    return announcement.expiry_date is None or as_utc(announcement.expiry_date) > now


def sort_announcements(announcements: List[Announcement]) -> List[Announcement]:
    return sorted(
        announcements,
        key=lambda a: (
            a.is_pinned,
            PRIORITY_WEIGHT.get(a.priority, 0),
            as_utc(a.publish_date),
            a.id,
        ),
        reverse=True,
    )


async def _get_announcement(db: AsyncSession, announcement_id: int) -> Announcement:
    result = await db.execute(select(Announcement).where(Announcement.id == announcement_id))
    announcement = result.scalar_one_or_none()
    if not announcement:
        raise HTTPException(404, "Announcement not found")
    return announcement


async def _notify(db: AsyncSession, announcement: Announcement) -> None:
    await notify_audience(
        db,
        title=f"New announcement: {announcement.title}",
        message=announcement.content[:200],
        type=NotificationType.ANNOUNCEMENT.value,
        resource_id=announcement.id,
        roles=announcement.visible_to_roles,
        positions=announcement.visible_to_positions,
        expires_at=announcement.expiry_date,
    )
    await db.commit()


@router.get("", response_model=ApiResponse[List[AnnouncementResponse]])
async def list_announcements(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    result = await db.execute(select(Announcement))
    announcements = result.scalars().all()

    if not can_manage_communications(current_user):
        now = utcnow()
        announcements = [a for a in filter_visible(announcements, current_user) if is_live(a, now)]

    return ok([AnnouncementResponse.model_validate(a) for a in sort_announcements(announcements)])


@router.get("/{announcement_id}", response_model=ApiResponse[AnnouncementResponse])
async def get_announcement(
    announcement_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    announcement = await _get_announcement(db, announcement_id)
    if not can_manage_communications(current_user):
        if not is_live(announcement) or not is_visible_to(announcement, current_user):
            raise HTTPException(404, "Announcement not found")
    return ok(AnnouncementResponse.model_validate(announcement))


@router.post("", response_model=ApiResponse[AnnouncementResponse], status_code=201)
async def create_announcement(
    announcement_in: AnnouncementCreate,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_communications_manager)
):
    data = announcement_in.model_dump()
    if data["publish_date"] is None:
        data["publish_date"] = utcnow()

    announcement = Announcement(**data, created_by_id=manager.id)
    db.add(announcement)
    await db.commit()
    await db.refresh(announcement)

    if not announcement.is_draft:
        await _notify(db, announcement)
    return ok(AnnouncementResponse.model_validate(announcement))


@router.put("/{announcement_id}", response_model=ApiResponse[AnnouncementResponse])
async def update_announcement(
    announcement_id: int,
    announcement_in: AnnouncementUpdate,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_communications_manager)
):
    announcement = await _get_announcement(db, announcement_id)
    was_draft = announcement.is_draft

    changes = announcement_in.changes()
    if "publish_date" in changes and changes["publish_date"] is None:
        del changes["publish_date"]
    for field, value in changes.items():
        setattr(announcement, field, value)
    await db.commit()
    await db.refresh(announcement)

    if was_draft and not announcement.is_draft:
        await _notify(db, announcement)
    return ok(AnnouncementResponse.model_validate(announcement))


@router.delete("/{announcement_id}", response_model=ApiResponse[MessageData])
async def delete_announcement(
    announcement_id: int,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_communications_manager)
):
    announcement = await _get_announcement(db, announcement_id)
    await db.delete(announcement)
    await db.commit()
    return ok(MessageData(message="Announcement deleted successfully"))
