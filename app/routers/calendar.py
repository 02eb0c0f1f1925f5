from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.core.auth import get_current_user
from app.core.permissions import can_edit_event, can_manage_events, require_permission
from app.models.calendar import CalendarEvent
from app.models.enums import EventType
from app.schemas.base import ApiResponse, MessageData, ok
from app.schemas.calendar import EventCategory, EventCreate, EventResponse, EventUpdate
from app.services.visibility import filter_visible, is_visible_to
from app.utils.timeutils import as_utc

router = APIRouter(prefix="/calendar/events", tags=["calendar"])

get_event_manager = require_permission(can_manage_events, "You don't have permission to create events")


async def _get_event(db: AsyncSession, event_id: int) -> CalendarEvent:
    result = await db.execute(select(CalendarEvent).where(CalendarEvent.id == event_id))
    event = result.scalar_one_or_none()
    if not event:
        raise HTTPException(404, "Event not found")
    return event


@router.get("", response_model=ApiResponse[List[EventResponse]])
async def list_events(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    event_type: Optional[EventType] = Query(None, alias="eventType"),
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    query = select(CalendarEvent)
    start_date, end_date = as_utc(start_date), as_utc(end_date)
    if start_date and end_date:
        # Any overlap with the requested window
        query = query.where(CalendarEvent.start_date <= end_date).where(CalendarEvent.end_date >= start_date)
    elif start_date:
        query = query.where(CalendarEvent.end_date >= start_date)
    elif end_date:
        query = query.where(CalendarEvent.start_date <= end_date)
    if event_type:
        query = query.where(CalendarEvent.event_type == event_type.value)

    result = await db.execute(query.order_by(CalendarEvent.start_date, CalendarEvent.id))
    events = filter_visible(result.scalars().all(), current_user)
    return ok([EventResponse.model_validate(e) for e in events])


@router.get("/categories", response_model=ApiResponse[List[EventCategory]])
async def list_event_categories(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Every event type, with how many events of that type exist."""
    result = await db.execute(
        select(CalendarEvent.event_type, func.count(CalendarEvent.id)).group_by(CalendarEvent.event_type)
    )
    counts = dict(result.all())
    return ok([
        EventCategory(
            type=event_type.value,
            display_name=event_type.value.replace("_", " ").title(),
            count=counts.get(event_type.value, 0),
        )
        for event_type in EventType
    ])


@router.get("/{event_id}", response_model=ApiResponse[EventResponse])
async def get_event(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    event = await _get_event(db, event_id)
    if not is_visible_to(event, current_user) and event.created_by_id != current_user.id:
        raise HTTPException(403, "You don't have permission to view this event")
    return ok(EventResponse.model_validate(event))


@router.post("", response_model=ApiResponse[EventResponse], status_code=201)
async def create_event(
    event_in: EventCreate,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_event_manager)
):
    event = CalendarEvent(**event_in.model_dump(), created_by_id=manager.id)
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return ok(EventResponse.model_validate(event))


@router.put("/{event_id}", response_model=ApiResponse[EventResponse])
async def update_event(
    event_id: int,
    event_in: EventUpdate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    event = await _get_event(db, event_id)
    if not can_edit_event(current_user, event.created_by_id):
        raise HTTPException(403, "You don't have permission to update this event")

    changes = event_in.changes()

    start = as_utc(changes.get("start_date", event.start_date))
    end = as_utc(changes.get("end_date", event.end_date))
    if end < start:
        raise HTTPException(400, "End date must be after start date")

    for field, value in changes.items():
        setattr(event, field, value)
    await db.commit()
    await db.refresh(event)
    return ok(EventResponse.model_validate(event))


@router.delete("/{event_id}", response_model=ApiResponse[MessageData])
async def delete_event(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    event = await _get_event(db, event_id)
    if not can_edit_event(current_user, event.created_by_id):
        raise HTTPException(403, "You don't have permission to delete this event")

    await db.delete(event)
    await db.commit()
    return ok(MessageData(message="Event deleted successfully"))
