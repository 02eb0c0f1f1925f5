from typing import List, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.core.auth import get_current_user
from app.core.exceptions import InvalidRequestError, PermissionDeniedError
from app.core.permissions import can_manage_leaderboards, get_leaderboard_manager
from app.models.enums import SalesPosition
from app.models.leaderboard import Leaderboard
from app.schemas.base import ApiResponse, MessageData, ok
from app.schemas.leaderboard import (
    BulkImportRequest, BulkImportResponse, EntryCreate, EntryFilter, EntryResponse, EntryUpdate,
    LeaderboardCreate, LeaderboardDetailResponse, LeaderboardResponse, LeaderboardUpdate,
)
from app.services import ranking
from app.services.visibility import filter_visible, is_visible_to

router = APIRouter(prefix="/leaderboards", tags=["leaderboards"])


def entry_filters(
    search: Optional[str] = None,
    position: Optional[str] = None,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    limit: Optional[int] = Query(None, ge=1, le=1000),
) -> EntryFilter:
    if position == "ALL":
        position = None
    if position is not None and position not in SalesPosition.__members__:
        raise InvalidRequestError(f"Unknown position: {position}")
    return EntryFilter(
        search=search or None,
        position=position,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
    )


def ensure_can_view(leaderboard: Leaderboard, user) -> None:
    """Inactive and position-restricted boards are hidden from non-managers."""
    if can_manage_leaderboards(user):
        return
    if not leaderboard.is_active:
        raise PermissionDeniedError("This leaderboard is not active")
    if not is_visible_to(leaderboard, user):
        raise PermissionDeniedError("You don't have permission to access this leaderboard")


def _entry_response(entry, rank=None) -> EntryResponse:
    response = EntryResponse.model_validate(entry)
    if rank is not None and response.rank is None:
        response = response.model_copy(update={"rank": rank})
    return response


@router.get("", response_model=ApiResponse[List[LeaderboardResponse]])
async def list_leaderboards(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    query = select(Leaderboard)
    if not can_manage_leaderboards(current_user):
        query = query.where(Leaderboard.is_active.is_(True))
    result = await db.execute(query.order_by(Leaderboard.updated_at.desc(), Leaderboard.id.desc()))
    leaderboards = filter_visible(result.scalars().all(), current_user)
    return ok([LeaderboardResponse.model_validate(lb) for lb in leaderboards])


@router.post("", response_model=ApiResponse[LeaderboardResponse], status_code=201)
async def create_leaderboard(
    leaderboard_in: LeaderboardCreate,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_leaderboard_manager)
):
    leaderboard = Leaderboard(**leaderboard_in.model_dump())
    db.add(leaderboard)
    await db.commit()
    await db.refresh(leaderboard)
    return ok(LeaderboardResponse.model_validate(leaderboard))


@router.get("/entries/{entry_id}", response_model=ApiResponse[EntryResponse])
async def get_leaderboard_entry(
    entry_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    entry = await ranking.get_entry(db, entry_id)
    if not entry:
        raise HTTPException(404, "Leaderboard entry not found")

    if entry.user_id != current_user.id:
        leaderboard = await ranking.get_leaderboard(db, entry.leaderboard_id)
        ensure_can_view(leaderboard, current_user)
    return ok(_entry_response(entry))


@router.put("/entries/{entry_id}", response_model=ApiResponse[EntryResponse])
async def update_leaderboard_entry(
    entry_id: int,
    entry_in: EntryUpdate,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_leaderboard_manager)
):
    entry = await ranking.get_entry(db, entry_id)
    if not entry:
        raise HTTPException(404, "Leaderboard entry not found")

    updated = await ranking.update_entry(db, entry, entry_in)
    return ok(_entry_response(updated))


@router.delete("/entries/{entry_id}", response_model=ApiResponse[MessageData])
async def delete_leaderboard_entry(
    entry_id: int,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_leaderboard_manager)
):
    entry = await ranking.get_entry(db, entry_id)
    if not entry:
        raise HTTPException(404, "Leaderboard entry not found")

    await ranking.delete_entry(db, entry)
    return ok(MessageData(message="Leaderboard entry deleted successfully"))


@router.get("/{leaderboard_id}", response_model=ApiResponse[LeaderboardDetailResponse])
async def get_leaderboard(
    leaderboard_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    leaderboard = await ranking.get_leaderboard(db, leaderboard_id)
    ensure_can_view(leaderboard, current_user)

    detail = LeaderboardDetailResponse.model_validate(leaderboard)
    detail.entry_count = await ranking.count_entries(db, leaderboard_id)
    return ok(detail)


@router.put("/{leaderboard_id}", response_model=ApiResponse[LeaderboardResponse])
async def update_leaderboard(
    leaderboard_id: int,
    leaderboard_in: LeaderboardUpdate,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_leaderboard_manager)
):
    leaderboard = await ranking.get_leaderboard(db, leaderboard_id)

    changes = leaderboard_in.changes()
    for field, value in changes.items():
        setattr(leaderboard, field, value)
    await db.commit()
    await db.refresh(leaderboard)
    return ok(LeaderboardResponse.model_validate(leaderboard))


@router.delete("/{leaderboard_id}", response_model=ApiResponse[MessageData])
async def delete_leaderboard(
    leaderboard_id: int,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_leaderboard_manager)
):
    leaderboard = await ranking.get_leaderboard(db, leaderboard_id)
    await ranking.delete_leaderboard(db, leaderboard)
    return ok(MessageData(message="Leaderboard deleted successfully"))


@router.get("/{leaderboard_id}/entries", response_model=ApiResponse[List[EntryResponse]])
async def list_leaderboard_entries(
    leaderboard_id: int,
    filters: EntryFilter = Depends(entry_filters),
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    leaderboard = await ranking.get_leaderboard(db, leaderboard_id)
    ensure_can_view(leaderboard, current_user)

    ranked = await ranking.list_entries(db, leaderboard_id, filters)
    return ok([_entry_response(entry, rank) for entry, rank in ranked])


@router.post("/{leaderboard_id}/entries", response_model=ApiResponse[EntryResponse], status_code=201)
async def create_leaderboard_entry(
    leaderboard_id: int,
    entry_in: EntryCreate,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_leaderboard_manager)
):
    await ranking.get_leaderboard(db, leaderboard_id)
    entry = await ranking.create_entry(db, leaderboard_id, entry_in)
    return ok(_entry_response(entry))


@router.post("/{leaderboard_id}/entries/bulk", response_model=ApiResponse[BulkImportResponse])
async def bulk_import_entries(
    leaderboard_id: int,
    import_in: BulkImportRequest,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_leaderboard_manager)
):
    await ranking.get_leaderboard(db, leaderboard_id)
    results = await ranking.import_entries(db, leaderboard_id, import_in)
    return ok(BulkImportResponse(message="Bulk import completed", results=results))
