import re
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.core.auth import get_current_user
from app.core.permissions import can_manage_communications, get_communications_manager
from app.models.communication import ImportantLink
from app.models.enums import NotificationType
from app.schemas.base import ApiResponse, MessageData, ok
from app.schemas.communication import LinkCreate, LinkResponse, LinkUpdate
from app.services.notifications import notify_audience
from app.services.visibility import filter_visible

router = APIRouter(prefix="/communication/links", tags=["links"])


def slugify(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or None


async def _get_link(db: AsyncSession, link_id: int) -> ImportantLink:
    result = await db.execute(select(ImportantLink).where(ImportantLink.id == link_id))
    link = result.scalar_one_or_none()
    if not link:
        raise HTTPException(404, "Link not found")
    return link


@router.get("", response_model=ApiResponse[List[LinkResponse]])
async def list_links(
    category: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    query = select(ImportantLink)
    if not can_manage_communications(current_user):
        query = query.where(ImportantLink.is_active.is_(True))
    if category:
        query = query.where(ImportantLink.category_slug == slugify(category))

    result = await db.execute(query.order_by(ImportantLink.category, ImportantLink.order, ImportantLink.id))
    links = filter_visible(result.scalars().all(), current_user)
    return ok([LinkResponse.model_validate(link) for link in links])


@router.post("", response_model=ApiResponse[LinkResponse], status_code=201)
async def create_link(
    link_in: LinkCreate,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_communications_manager)
):
    data = link_in.model_dump()
    data["url"] = str(link_in.url)
    link = ImportantLink(**data, category_slug=slugify(link_in.category))
    db.add(link)
    await db.commit()
    await db.refresh(link)

    if link.is_active:
        await notify_audience(
            db,
            title=f"New link: {link.title}",
            message=link.description or link.url,
            type=NotificationType.LINK.value,
            resource_id=link.id,
            roles=link.visible_to_roles,
            positions=link.visible_to_positions,
        )
        await db.commit()
    return ok(LinkResponse.model_validate(link))


@router.put("/{link_id}", response_model=ApiResponse[LinkResponse])
async def update_link(
    link_id: int,
    link_in: LinkUpdate,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_communications_manager)
):
    link = await _get_link(db, link_id)

    changes = link_in.changes()
    if "url" in changes:
        changes["url"] = str(link_in.url)
    if "category" in changes:
        changes["category_slug"] = slugify(changes["category"])
    for field, value in changes.items():
        setattr(link, field, value)
    await db.commit()
    await db.refresh(link)
    return ok(LinkResponse.model_validate(link))


@router.delete("/{link_id}", response_model=ApiResponse[MessageData])
async def delete_link(
    link_id: int,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_communications_manager)
):
    link = await _get_link(db, link_id)
    await db.delete(link)
    await db.commit()
    return ok(MessageData(message="Link deleted successfully"))
