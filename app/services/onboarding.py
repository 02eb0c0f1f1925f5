"""
Onboarding track selection and completion analytics.
"""
from collections import defaultdict
from datetime import timedelta
from typing import Dict, List, Optional, Sequence

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import ProgressStatus
from app.models.onboarding import OnboardingProgress, OnboardingStep, OnboardingTrack
from app.models.user import User
from app.schemas.onboarding import (
    AnalyticsPeriod, OnboardingAnalytics, RecentCompletion, StepStats, TrackStats,
)
from app.services.visibility import audience_matches, filter_visible
from app.utils.timeutils import as_utc, utcnow

RECENT_COMPLETIONS = 20


def pick_track(tracks: Sequence[OnboardingTrack], user) -> Optional[OnboardingTrack]:
    """
    First active track the user can see. Managers see every track, so one
    addressed to their own role and position is preferred.
    """
    visible = filter_visible([t for t in tracks if t.is_active], user)
    for track in visible:
        if audience_matches(user, track.visible_to_roles, track.visible_to_positions):
            return track
    return visible[0] if visible else None


def _in_window(progress: OnboardingProgress, since) -> bool:
    started = as_utc(progress.started_at)
    completed = as_utc(progress.completed_at)
    return (started is not None and started >= since) or (completed is not None and completed >= since)


def _step_stats(step: OnboardingStep, rows: List[OnboardingProgress], since) -> StepStats:
    recent = [p for p in rows if _in_window(p, since)]
    completions = [p for p in recent if p.status == ProgressStatus.COMPLETED.value]
    in_progress = sum(1 for p in recent if p.status == ProgressStatus.IN_PROGRESS.value)

    timed = [p for p in completions if p.started_at and p.completed_at]
    avg_minutes = 0
    if timed:
        total = sum(((as_utc(p.completed_at) - as_utc(p.started_at)) for p in timed), timedelta())
        avg_minutes = round(total.total_seconds() / len(timed) / 60)

    return StepStats(
        step_id=step.id,
        title=step.title,
        order=step.order,
        total_attempts=len(rows),
        completions=len(completions),
        in_progress=in_progress,
        completion_rate=round(len(completions) / len(rows) * 100) if rows else 0,
        avg_completion_time_minutes=avg_minutes,
    )


async def build_analytics(db: AsyncSession, period_days: int, track_id: Optional[int] = None) -> OnboardingAnalytics:
    """
    Completion statistics for active tracks.

    Attempts count every progress record of a step; completions and
    in-progress counts only records started or completed inside the window.
    A user has completed a track when every one of its steps is COMPLETED.
    """
    end = utcnow()
    since = end - timedelta(days=period_days)

    query = select(OnboardingTrack).where(OnboardingTrack.is_active.is_(True))
    if track_id is not None:
        query = query.where(OnboardingTrack.id == track_id)
    tracks = (await db.execute(query.order_by(OnboardingTrack.id))).scalars().all()

    step_ids = [step.id for track in tracks for step in track.steps]
    rows_by_step: Dict[int, List[OnboardingProgress]] = defaultdict(list)
    if step_ids:
        result = await db.execute(select(OnboardingProgress).where(OnboardingProgress.step_id.in_(step_ids)))
        for progress in result.scalars().all():
            rows_by_step[progress.step_id].append(progress)

    active_users = (await db.execute(select(func.count(User.id)).where(User.is_active.is_(True)))).scalar_one()

    track_stats = []
    for track in tracks:
        done_by_user: Dict[int, int] = defaultdict(int)
        for step in track.steps:
            for progress in rows_by_step[step.id]:
                if progress.status == ProgressStatus.COMPLETED.value:
                    done_by_user[progress.user_id] += 1
        total_steps = len(track.steps)
        completed_all = sum(1 for done in done_by_user.values() if total_steps and done == total_steps)

        track_stats.append(TrackStats(
            track_id=track.id,
            track_name=track.name,
            total_steps=total_steps,
            users_completed_all=completed_all,
            track_completion_rate=round(completed_all / active_users * 100) if active_users else 0,
            step_stats=[_step_stats(step, rows_by_step[step.id], since) for step in track.steps],
        ))

    recent = await db.execute(
        select(OnboardingProgress, User.name, OnboardingStep.title, OnboardingTrack.id, OnboardingTrack.name)
        .join(User, User.id == OnboardingProgress.user_id)
        .join(OnboardingStep, OnboardingStep.id == OnboardingProgress.step_id)
        .join(OnboardingTrack, OnboardingTrack.id == OnboardingStep.track_id)
        .where(OnboardingProgress.status == ProgressStatus.COMPLETED.value)
        .where(OnboardingProgress.completed_at >= since)
        .order_by(OnboardingProgress.completed_at.desc())
        .limit(RECENT_COMPLETIONS)
    )
    recent_activity = [
        RecentCompletion(
            user_id=progress.user_id,
            user_name=user_name,
            step_id=progress.step_id,
            step_title=step_title,
            track_id=step_track_id,
            track_name=track_name,
            completed_at=as_utc(progress.completed_at),
        )
        for progress, user_name, step_title, step_track_id, track_name in recent.all()
    ]

    return OnboardingAnalytics(
        active_users=active_users,
        tracks=track_stats,
        recent_activity=recent_activity,
        period=AnalyticsPeriod(start_date=since, end_date=end, days=period_days),
    )
