"""
Leaderboard entry storage and rank assignment.

Entries compete within a (leaderboard, period_start, period_end) group. After
any write to a group its ranks are recomputed before the request returns:
score descending, ties broken by entry id (earlier entry ranks higher),
ranks 1..n with no gaps.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select, delete, func, nullslast
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, InvalidRequestError, NotFoundError
from app.core.logging import setup_logger
from app.models.leaderboard import Leaderboard, LeaderboardEntry
from app.models.user import User
from app.schemas.leaderboard import (
    BulkImportRequest, EntryCreate, EntryFilter, EntryUpdate, ImportResults,
)
from app.services.identity import resolve_identities
from app.utils.timeutils import as_utc

logger = setup_logger(__name__)


async def get_leaderboard(db: AsyncSession, leaderboard_id: int) -> Leaderboard:
    result = await db.execute(select(Leaderboard).where(Leaderboard.id == leaderboard_id))
    leaderboard = result.scalar_one_or_none()
    if leaderboard is None:
        raise NotFoundError("Leaderboard")
    return leaderboard


async def count_entries(db: AsyncSession, leaderboard_id: int) -> int:
    result = await db.execute(
        select(func.count(LeaderboardEntry.id)).where(LeaderboardEntry.leaderboard_id == leaderboard_id)
    )
    return result.scalar_one()


async def get_entry(db: AsyncSession, entry_id: int) -> Optional[LeaderboardEntry]:
    result = await db.execute(
        select(LeaderboardEntry)
        .where(LeaderboardEntry.id == entry_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _find_period_entry(
    db: AsyncSession, leaderboard_id: int, user_id: int, period_start: datetime, period_end: datetime
) -> Optional[LeaderboardEntry]:
    result = await db.execute(
        select(LeaderboardEntry)
        .where(LeaderboardEntry.leaderboard_id == leaderboard_id)
        .where(LeaderboardEntry.user_id == user_id)
        .where(LeaderboardEntry.period_start == period_start)
        .where(LeaderboardEntry.period_end == period_end)
    )
    return result.scalars().first()


async def recompute_ranks(
    db: AsyncSession, leaderboard_id: int, period_start: datetime, period_end: datetime
) -> bool:
    """
    Rewrite the ranks of one period group in a single transaction.

    Failures are logged and rolled back, never raised: the entry write that
    triggered the recomputation has already been committed. Returns whether
    the new ranks were stored.
    """
    try:
        result = await db.execute(
            select(LeaderboardEntry)
            .where(LeaderboardEntry.leaderboard_id == leaderboard_id)
            .where(LeaderboardEntry.period_start == period_start)
            .where(LeaderboardEntry.period_end == period_end)
            .order_by(LeaderboardEntry.score.desc(), LeaderboardEntry.id.asc())
            .with_for_update()
        )
        entries = result.scalars().all()
        for rank, entry in enumerate(entries, start=1):
            if entry.rank != rank:
                entry.rank = rank
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception(
            "Error updating ranks for leaderboard %s (%s - %s)", leaderboard_id, period_start, period_end
        )
        return False

    logger.info(
        "Ranked %d entries for leaderboard %s (%s - %s)",
        len(entries), leaderboard_id, period_start, period_end,
    )
    return True


async def upsert_entry(
    db: AsyncSession,
    leaderboard_id: int,
    user_id: int,
    period_start: datetime,
    period_end: datetime,
    score: float,
    metrics: Dict[str, Any],
) -> Tuple[LeaderboardEntry, bool]:
    """Update the user's entry for this exact period in place, or create it. Commits; ranks are left to the caller."""
    entry = await _find_period_entry(db, leaderboard_id, user_id, period_start, period_end)
    created = entry is None
    if created:
        entry = LeaderboardEntry(
            leaderboard_id=leaderboard_id,
            user_id=user_id,
            score=score,
            period_start=period_start,
            period_end=period_end,
            metrics=metrics,
        )
        db.add(entry)
    else:
        entry.score = score
        entry.metrics = metrics
    await db.commit()
    return entry, created


async def create_entry(db: AsyncSession, leaderboard_id: int, data: EntryCreate) -> LeaderboardEntry:
    """Strict single-entry create: the user must exist and the period must be free."""
    user = await db.execute(select(User.id).where(User.id == data.user_id))
    if user.scalar_one_or_none() is None:
        raise NotFoundError("User")

    existing = await _find_period_entry(db, leaderboard_id, data.user_id, data.period_start, data.period_end)
    if existing is not None:
        raise ConflictError("An entry already exists for this user and time period")

    entry = LeaderboardEntry(
        leaderboard_id=leaderboard_id,
        user_id=data.user_id,
        score=data.score,
        period_start=data.period_start,
        period_end=data.period_end,
        metrics=data.metrics or {},
    )
    db.add(entry)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("An entry already exists for this user and time period")

    entry_id = entry.id
    await recompute_ranks(db, leaderboard_id, data.period_start, data.period_end)
    return await get_entry(db, entry_id)


async def update_entry(db: AsyncSession, entry: LeaderboardEntry, data: EntryUpdate) -> LeaderboardEntry:
    entry_id = entry.id
    leaderboard_id = entry.leaderboard_id
    old_period = (entry.period_start, entry.period_end)
    new_start = data.period_start if data.period_start is not None else entry.period_start
    new_end = data.period_end if data.period_end is not None else entry.period_end

    if as_utc(new_start) > as_utc(new_end):
        raise InvalidRequestError("End date must be after start date")

    moved = as_utc(new_start) != as_utc(old_period[0]) or as_utc(new_end) != as_utc(old_period[1])
    if moved:
        clash = await _find_period_entry(db, leaderboard_id, entry.user_id, new_start, new_end)
        if clash is not None and clash.id != entry_id:
            raise ConflictError("An entry already exists for this user and time period")

    if data.score is not None:
        entry.score = data.score
    if data.metrics is not None:
        entry.metrics = data.metrics
    entry.period_start = new_start
    entry.period_end = new_end
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("An entry already exists for this user and time period")

    await recompute_ranks(db, leaderboard_id, new_start, new_end)
    if moved:
        await recompute_ranks(db, leaderboard_id, *old_period)
    return await get_entry(db, entry_id)


async def delete_entry(db: AsyncSession, entry: LeaderboardEntry) -> None:
    leaderboard_id, period_start, period_end = entry.leaderboard_id, entry.period_start, entry.period_end
    await db.delete(entry)
    await db.commit()
    await recompute_ranks(db, leaderboard_id, period_start, period_end)


async def delete_leaderboard(db: AsyncSession, leaderboard: Leaderboard) -> None:
    await db.execute(delete(LeaderboardEntry).where(LeaderboardEntry.leaderboard_id == leaderboard.id))
    await db.delete(leaderboard)
    await db.commit()


async def import_entries(db: AsyncSession, leaderboard_id: int, request: BulkImportRequest) -> ImportResults:
    """
    Create-or-update one entry per row for the request's period.

    Rows that cannot be resolved to a user are skipped; rows whose write
    fails are counted as failed. Neither aborts the batch. Ranks for the
    period are recomputed once at the end.
    """
    results = ImportResults()
    resolutions = await resolve_identities(db, request.entries)

    for resolution in resolutions:
        if not resolution.resolved:
            results.skipped += 1
            results.errors.append(resolution.reason)
            continue
        row = resolution.entry
        try:
            await upsert_entry(
                db,
                leaderboard_id,
                resolution.user_id,
                request.period_start,
                request.period_end,
                row.score,
                row.extra_metrics,
            )
            results.success += 1
        except SQLAlchemyError as exc:
            await db.rollback()
            results.failed += 1
            results.errors.append(f"Error processing entry: {exc}")
            logger.warning("Bulk import row for user %s failed: %s", resolution.user_id, exc)

    await recompute_ranks(db, leaderboard_id, request.period_start, request.period_end)
    logger.info(
        "Bulk import into leaderboard %s: %d succeeded, %d failed, %d skipped",
        leaderboard_id, results.success, results.failed, results.skipped,
    )
    return results


def rank_for_display(entries: Sequence[LeaderboardEntry]) -> List[Tuple[LeaderboardEntry, Optional[int]]]:
    """
    Pair entries with the rank to show.

    When none of the entries has a stored rank, ranks are derived from score
    order on the fly and not written back.
    """
    if any(entry.rank is not None for entry in entries):
        return [(entry, entry.rank) for entry in entries]
    ordered = sorted(entries, key=lambda entry: entry.score, reverse=True)
    return [(entry, index) for index, entry in enumerate(ordered, start=1)]


async def list_entries(
    db: AsyncSession, leaderboard_id: int, filters: EntryFilter
) -> List[Tuple[LeaderboardEntry, Optional[int]]]:
    query = select(LeaderboardEntry).where(LeaderboardEntry.leaderboard_id == leaderboard_id)
    if filters.start_date:
        query = query.where(LeaderboardEntry.period_start >= filters.start_date)
    if filters.end_date:
        query = query.where(LeaderboardEntry.period_end <= filters.end_date)
    query = query.order_by(
        nullslast(LeaderboardEntry.rank.asc()),
        LeaderboardEntry.score.desc(),
        LeaderboardEntry.id.asc(),
    )
    if filters.limit:
        query = query.limit(filters.limit)

    result = await db.execute(query)
    ranked = rank_for_display(result.scalars().all())

    # User-side filters run after ranking so ranks stay relative to the whole period
    if filters.position:
        ranked = [(e, r) for e, r in ranked if e.user is not None and e.user.position == filters.position]
    if filters.search:
        needle = filters.search.lower()
        ranked = [(e, r) for e, r in ranked if e.user is not None and needle in (e.user.name or "").lower()]
    return ranked
