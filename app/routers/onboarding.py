from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.database import get_db
from app.core.auth import get_current_user
from app.core.exceptions import NotFoundError
from app.core.logging import setup_logger
from app.core.permissions import can_manage_onboarding, get_onboarding_manager
from app.models.enums import ProgressStatus
from app.models.onboarding import (
    OnboardingProgress, OnboardingResource, OnboardingStep, OnboardingTrack,
)
from app.models.user import User
from app.schemas.base import ApiResponse, MessageData, ok
from app.schemas.onboarding import (
    MyOnboarding, OnboardingAnalytics, ResourceCreate, ResourceDetailResponse, ResourceResponse,
    ResourceUpdate, StepCreate, StepProgressResponse, StepProgressUpdate, StepResponse, StepUpdate,
    TrackCreate, TrackDetailResponse, TrackResponse, TrackUpdate,
)
from app.services.onboarding import build_analytics, pick_track
from app.services.visibility import filter_visible, is_visible_to
from app.utils.timeutils import utcnow

logger = setup_logger(__name__)

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


async def _load_track(db: AsyncSession, track_id: int) -> OnboardingTrack:
    result = await db.execute(
        select(OnboardingTrack)
        .where(OnboardingTrack.id == track_id)
        .execution_options(populate_existing=True)
    )
    track = result.scalar_one_or_none()
    if not track:
        raise HTTPException(404, "Onboarding track not found")
    return track


async def _load_step(db: AsyncSession, step_id: int) -> OnboardingStep:
    result = await db.execute(
        select(OnboardingStep)
        .where(OnboardingStep.id == step_id)
        .execution_options(populate_existing=True)
    )
    step = result.scalar_one_or_none()
    if not step:
        raise HTTPException(404, "Onboarding step not found")
    return step


async def _load_resource(db: AsyncSession, resource_id: int) -> OnboardingResource:
    result = await db.execute(
        select(OnboardingResource)
        .where(OnboardingResource.id == resource_id)
        .options(selectinload(OnboardingResource.steps))
        .execution_options(populate_existing=True)
    )
    resource = result.scalar_one_or_none()
    if not resource:
        raise HTTPException(404, "Resource not found")
    return resource


async def _load_resources(db: AsyncSession, resource_ids: List[int]) -> List[OnboardingResource]:
    if not resource_ids:
        return []
    result = await db.execute(select(OnboardingResource).where(OnboardingResource.id.in_(set(resource_ids))))
    resources = result.scalars().all()
    if len(resources) != len(set(resource_ids)):
        raise NotFoundError("Resource")
    return list(resources)


def _ensure_can_follow(track: OnboardingTrack, user) -> None:
    """Learners only reach active tracks addressed to them."""
    if can_manage_onboarding(user):
        return
    if not track.is_active:
        raise HTTPException(404, "Onboarding track not found")
    if not is_visible_to(track, user):
        raise HTTPException(403, "You don't have access to this onboarding track")


async def _progress_by_step(db: AsyncSession, user_id: int, step_ids: List[int]) -> Dict[int, OnboardingProgress]:
    if not step_ids:
        return {}
    result = await db.execute(
        select(OnboardingProgress)
        .where(OnboardingProgress.user_id == user_id)
        .where(OnboardingProgress.step_id.in_(step_ids))
    )
    return {p.step_id: p for p in result.scalars().all()}


def _step_response(step: OnboardingStep, progress: Optional[OnboardingProgress] = None) -> StepResponse:
    response = StepResponse.model_validate(step)
    response.progress = StepProgressResponse.model_validate(progress) if progress else None
    return response


@router.get("", response_model=ApiResponse[MyOnboarding])
async def get_my_onboarding(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    result = await db.execute(
        select(OnboardingTrack)
        .where(OnboardingTrack.is_active.is_(True))
        .order_by(OnboardingTrack.id)
    )
    track = pick_track(result.scalars().all(), current_user)
    if track is None:
        return ok(MyOnboarding(message="No onboarding tracks available for your position"))

    progress = await _progress_by_step(db, current_user.id, [s.id for s in track.steps])
    steps = [_step_response(step, progress.get(step.id)) for step in track.steps]
    completed = sum(1 for s in steps if s.progress and s.progress.status == ProgressStatus.COMPLETED.value)
    return ok(MyOnboarding(
        track=TrackResponse.model_validate(track),
        steps=steps,
        completed_steps=completed,
        total_steps=len(steps),
    ))


# Tracks

@router.get("/tracks", response_model=ApiResponse[List[TrackDetailResponse]])
async def list_tracks(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    query = select(OnboardingTrack)
    if not can_manage_onboarding(current_user):
        query = query.where(OnboardingTrack.is_active.is_(True))
    result = await db.execute(query.order_by(OnboardingTrack.updated_at.desc(), OnboardingTrack.id.desc()))
    tracks = filter_visible(result.scalars().all(), current_user)
    return ok([TrackDetailResponse.model_validate(t) for t in tracks])


@router.post("/tracks", response_model=ApiResponse[TrackDetailResponse], status_code=201)
async def create_track(
    track_in: TrackCreate,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_onboarding_manager)
):
    track = OnboardingTrack(**track_in.model_dump())
    db.add(track)
    await db.commit()

    track = await _load_track(db, track.id)
    logger.info("Onboarding track %s created by user %s", track.id, manager.id)
    return ok(TrackDetailResponse.model_validate(track))


@router.get("/tracks/{track_id}", response_model=ApiResponse[TrackDetailResponse])
async def get_track(
    track_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    track = await _load_track(db, track_id)
    _ensure_can_follow(track, current_user)
    return ok(TrackDetailResponse.model_validate(track))


@router.put("/tracks/{track_id}", response_model=ApiResponse[TrackDetailResponse])
async def update_track(
    track_id: int,
    track_in: TrackUpdate,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_onboarding_manager)
):
    track = await _load_track(db, track_id)
    for field, value in track_in.changes().items():
        setattr(track, field, value)
    await db.commit()

    track = await _load_track(db, track_id)
    return ok(TrackDetailResponse.model_validate(track))


@router.delete("/tracks/{track_id}", response_model=ApiResponse[MessageData])
async def delete_track(
    track_id: int,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_onboarding_manager)
):
    track = await _load_track(db, track_id)
    step_ids = [s.id for s in track.steps]
    if step_ids:
        await db.execute(delete(OnboardingProgress).where(OnboardingProgress.step_id.in_(step_ids)))
    await db.delete(track)
    await db.commit()
    return ok(MessageData(message="Onboarding track deleted successfully"))


# Steps

@router.get("/steps", response_model=ApiResponse[List[StepResponse]])
async def list_steps(
    track_id: Optional[int] = Query(None, alias="trackId"),
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_onboarding_manager)
):
    query = select(OnboardingStep)
    if track_id is not None:
        query = query.where(OnboardingStep.track_id == track_id)
    result = await db.execute(query.order_by(OnboardingStep.track_id, OnboardingStep.order, OnboardingStep.id))
    return ok([_step_response(step) for step in result.scalars().all()])


@router.post("/steps", response_model=ApiResponse[StepResponse], status_code=201)
async def create_step(
    step_in: StepCreate,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_onboarding_manager)
):
    await _load_track(db, step_in.track_id)
    resources = await _load_resources(db, step_in.resource_ids)

    step = OnboardingStep(**step_in.model_dump(exclude={"resource_ids"}), resources=resources)
    db.add(step)
    await db.commit()

    step = await _load_step(db, step.id)
    return ok(_step_response(step))


@router.get("/steps/{step_id}", response_model=ApiResponse[StepResponse])
async def get_step(
    step_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    step = await _load_step(db, step_id)
    _ensure_can_follow(await _load_track(db, step.track_id), current_user)
    progress = await _progress_by_step(db, current_user.id, [step.id])
    return ok(_step_response(step, progress.get(step.id)))


@router.put("/steps/{step_id}", response_model=ApiResponse[StepResponse])
async def update_step(
    step_id: int,
    step_in: StepUpdate,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_onboarding_manager)
):
    step = await _load_step(db, step_id)

    changes = step_in.changes(exclude={"resource_ids"})
    if "track_id" in changes and changes["track_id"] != step.track_id:
        result = await db.execute(select(OnboardingTrack.id).where(OnboardingTrack.id == changes["track_id"]))
        if result.scalar_one_or_none() is None:
            raise HTTPException(404, "Target onboarding track not found")
    for field, value in changes.items():
        setattr(step, field, value)
    if step_in.resource_ids is not None:
        step.resources = await _load_resources(db, step_in.resource_ids)
    await db.commit()

    step = await _load_step(db, step_id)
    return ok(_step_response(step))


@router.delete("/steps/{step_id}", response_model=ApiResponse[MessageData])
async def delete_step(
    step_id: int,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_onboarding_manager)
):
    step = await _load_step(db, step_id)
    await db.execute(delete(OnboardingProgress).where(OnboardingProgress.step_id == step_id))
    await db.delete(step)
    await db.commit()
    return ok(MessageData(message="Onboarding step deleted successfully"))


@router.put("/steps/{step_id}/progress", response_model=ApiResponse[StepProgressResponse])
async def update_step_progress(
    step_id: int,
    progress_in: StepProgressUpdate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    step = await _load_step(db, step_id)
    _ensure_can_follow(await _load_track(db, step.track_id), current_user)

    progress = (await _progress_by_step(db, current_user.id, [step_id])).get(step_id)
    if progress is None:
        progress = OnboardingProgress(user_id=current_user.id, step_id=step_id)
        db.add(progress)

    now = utcnow()
    progress.status = progress_in.status
    if progress_in.notes is not None:
        progress.notes = progress_in.notes
    if progress_in.status != ProgressStatus.NOT_STARTED.value and progress.started_at is None:
        progress.started_at = now
    if progress_in.status == ProgressStatus.COMPLETED.value:
        progress.completed_at = now
    else:
        progress.completed_at = None
    await db.commit()
    await db.refresh(progress)
    return ok(StepProgressResponse.model_validate(progress))


@router.delete("/steps/{step_id}/progress", response_model=ApiResponse[MessageData])
async def reset_step_progress(
    step_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    await _load_step(db, step_id)
    await db.execute(
        delete(OnboardingProgress)
        .where(OnboardingProgress.user_id == current_user.id)
        .where(OnboardingProgress.step_id == step_id)
    )
    await db.commit()
    return ok(MessageData(message="Step progress reset successfully"))


# Resources

@router.get("/resources", response_model=ApiResponse[List[ResourceResponse]])
async def list_resources(
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_onboarding_manager)
):
    result = await db.execute(
        select(OnboardingResource).order_by(OnboardingResource.created_at.desc(), OnboardingResource.id.desc())
    )
    return ok([ResourceResponse.model_validate(r) for r in result.scalars().all()])


@router.post("/resources", response_model=ApiResponse[ResourceResponse], status_code=201)
async def create_resource(
    resource_in: ResourceCreate,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_onboarding_manager)
):
    data = resource_in.model_dump()
    data["url"] = str(resource_in.url)
    resource = OnboardingResource(**data)
    db.add(resource)
    await db.commit()
    await db.refresh(resource)
    return ok(ResourceResponse.model_validate(resource))


@router.get("/resources/{resource_id}", response_model=ApiResponse[ResourceDetailResponse])
async def get_resource(
    resource_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    resource = await _load_resource(db, resource_id)
    return ok(ResourceDetailResponse.model_validate(resource))


@router.put("/resources/{resource_id}", response_model=ApiResponse[ResourceResponse])
async def update_resource(
    resource_id: int,
    resource_in: ResourceUpdate,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_onboarding_manager)
):
    resource = await _load_resource(db, resource_id)

    changes = resource_in.changes()
    if "url" in changes:
        changes["url"] = str(resource_in.url)
    for field, value in changes.items():
        setattr(resource, field, value)
    await db.commit()
    await db.refresh(resource)
    return ok(ResourceResponse.model_validate(resource))


@router.delete("/resources/{resource_id}", response_model=ApiResponse[MessageData])
async def delete_resource(
    resource_id: int,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_onboarding_manager)
):
    resource = await _load_resource(db, resource_id)
    await db.delete(resource)
    await db.commit()
    return ok(MessageData(message="Resource deleted successfully"))


# Manager views

@router.get("/analytics", response_model=ApiResponse[OnboardingAnalytics])
async def get_analytics(
    track_id: Optional[int] = Query(None, alias="trackId"),
    period_days: int = Query(30, alias="periodDays", ge=1, le=365),
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_onboarding_manager)
):
    return ok(await build_analytics(db, period_days, track_id))


@router.post("/users/{user_id}/steps/{step_id}/reset", response_model=ApiResponse[MessageData])
async def reset_user_step_progress(
    user_id: int,
    step_id: int,
    db: AsyncSession = Depends(get_db),
    manager = Depends(get_onboarding_manager)
):
    user = await db.execute(select(User.id).where(User.id == user_id))
    if user.scalar_one_or_none() is None:
        raise HTTPException(404, "User not found")
    await _load_step(db, step_id)

    progress = (await _progress_by_step(db, user_id, [step_id])).get(step_id)
    if progress is None:
        raise HTTPException(404, "No progress record found to reset")
    await db.delete(progress)
    await db.commit()
    logger.info("User %s reset onboarding step %s for user %s", manager.id, step_id, user_id)
    return ok(MessageData(message="User's step progress reset successfully"))
