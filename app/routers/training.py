from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.core.auth import get_current_user
from app.core.logging import setup_logger
from app.core.permissions import can_edit_training_content, get_training_editor
from app.models.enums import ProgressStatus, TrainingCategory
from app.models.training import (
    QuizOption, QuizQuestion, TrainingModule, TrainingProgress, TrainingSection,
)
from app.schemas.base import ApiResponse, MessageData, ok
from app.schemas.training import (
    ModuleCreate, ModuleDetailResponse, ModuleResponse, ModuleUpdate, ProgressResponse,
    ProgressUpdate, QuizResult, QuizSubmission, SectionIn,
)
from app.services.quiz import grade_quiz
from app.services.visibility import filter_visible, is_visible_to
from app.utils.timeutils import utcnow

logger = setup_logger(__name__)

router = APIRouter(prefix="/training/modules", tags=["training"])


def build_sections(sections: List[SectionIn]) -> List[TrainingSection]:
    return [
        TrainingSection(
            title=s.title,
            content=s.content,
            content_format=s.content_format,
            order=s.order,
            is_optional=s.is_optional,
            questions=[
                QuizQuestion(
                    question=q.question,
                    question_type=q.question_type,
                    explanation=q.explanation,
                    points=q.points,
                    options=[QuizOption(text=o.text, is_correct=o.is_correct) for o in q.options],
                )
                for q in s.questions
            ],
        )
        for s in sections
    ]


async def _load_module(db: AsyncSession, module_id: int) -> TrainingModule:
    result = await db.execute(
        select(TrainingModule)
        .where(TrainingModule.id == module_id)
        .execution_options(populate_existing=True)
    )
    module = result.scalar_one_or_none()
    if not module:
        raise HTTPException(404, "Training module not found")
    return module


async def _get_accessible_module(db: AsyncSession, module_id: int, user) -> TrainingModule:
    """Editors see every module; learners only published modules in their audience."""
    module = await _load_module(db, module_id)
    if can_edit_training_content(user):
        return module
    if not module.is_published:
        raise HTTPException(404, "Training module not found")
    if not is_visible_to(module, user):
        raise HTTPException(403, "You don't have permission to access this module")
    return module


async def _get_progress(db: AsyncSession, user_id: int, module_id: int) -> Optional[TrainingProgress]:
    result = await db.execute(
        select(TrainingProgress)
        .where(TrainingProgress.user_id == user_id)
        .where(TrainingProgress.module_id == module_id)
    )
    return result.scalar_one_or_none()


async def _get_or_start_progress(db: AsyncSession, user_id: int, module_id: int) -> TrainingProgress:
    progress = await _get_progress(db, user_id, module_id)
    if progress is None:
        progress = TrainingProgress(
            user_id=user_id,
            module_id=module_id,
            status=ProgressStatus.IN_PROGRESS.value,
            current_section=0,
            percent_complete=0.0,
        )
        db.add(progress)
    return progress


def _detail(module: TrainingModule, progress: Optional[TrainingProgress], show_answers: bool) -> ModuleDetailResponse:
    detail = ModuleDetailResponse.model_validate(module)
    detail.progress = ProgressResponse.model_validate(progress) if progress else None
    if not show_answers:
        for section in detail.sections:
            for question in section.questions:
                for option in question.options:
                    option.is_correct = None
    return detail


@router.get("", response_model=ApiResponse[List[ModuleResponse]])
async def list_modules(
    category: Optional[TrainingCategory] = None,
    status: Optional[str] = Query(None, pattern="^(published|draft)$"),
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    query = select(TrainingModule)
    if category:
        query = query.where(TrainingModule.category == category.value)
    if not can_edit_training_content(current_user):
        query = query.where(TrainingModule.is_published.is_(True))
    elif status:
        query = query.where(TrainingModule.is_published.is_(status == "published"))
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(or_(
            func.lower(TrainingModule.title).like(pattern),
            func.lower(TrainingModule.description).like(pattern),
        ))

    result = await db.execute(query.order_by(TrainingModule.order, TrainingModule.id))
    modules = filter_visible(result.scalars().all(), current_user)

    progress_rows = await db.execute(
        select(TrainingProgress).where(TrainingProgress.user_id == current_user.id)
    )
    progress_by_module: Dict[int, TrainingProgress] = {p.module_id: p for p in progress_rows.scalars().all()}

    items = []
    for module in modules:
        item = ModuleResponse.model_validate(module)
        progress = progress_by_module.get(module.id)
        item.progress = ProgressResponse.model_validate(progress) if progress else None
        items.append(item)
    return ok(items)


@router.get("/{module_id}", response_model=ApiResponse[ModuleDetailResponse])
async def get_module(
    module_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    module = await _get_accessible_module(db, module_id, current_user)
    progress = await _get_progress(db, current_user.id, module_id)
    return ok(_detail(module, progress, can_edit_training_content(current_user)))


@router.post("", response_model=ApiResponse[ModuleDetailResponse], status_code=201)
async def create_module(
    module_in: ModuleCreate,
    db: AsyncSession = Depends(get_db),
    editor = Depends(get_training_editor)
):
    data = module_in.model_dump(exclude={"sections"})
    module = TrainingModule(**data, sections=build_sections(module_in.sections))
    db.add(module)
    await db.commit()

    module = await _load_module(db, module.id)
    logger.info("Training module %s created by user %s", module.id, editor.id)
    return ok(_detail(module, None, True))


@router.put("/{module_id}", response_model=ApiResponse[ModuleDetailResponse])
async def update_module(
    module_id: int,
    module_in: ModuleUpdate,
    db: AsyncSession = Depends(get_db),
    editor = Depends(get_training_editor)
):
    module = await _load_module(db, module_id)

    changes = module_in.changes(exclude={"sections"})
    for field, value in changes.items():
        setattr(module, field, value)
    if module_in.sections is not None:
        module.sections = build_sections(module_in.sections)
    await db.commit()

    module = await _load_module(db, module_id)
    return ok(_detail(module, None, True))


@router.delete("/{module_id}", response_model=ApiResponse[MessageData])
async def delete_module(
    module_id: int,
    db: AsyncSession = Depends(get_db),
    editor = Depends(get_training_editor)
):
    module = await _load_module(db, module_id)
    await db.execute(delete(TrainingProgress).where(TrainingProgress.module_id == module_id))
    await db.delete(module)
    await db.commit()
    return ok(MessageData(message="Training module deleted successfully"))


@router.get("/{module_id}/progress", response_model=ApiResponse[Optional[ProgressResponse]])
async def get_progress(
    module_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    await _get_accessible_module(db, module_id, current_user)
    progress = await _get_progress(db, current_user.id, module_id)
    return ok(ProgressResponse.model_validate(progress) if progress else None)


@router.put("/{module_id}/progress", response_model=ApiResponse[ProgressResponse])
async def update_progress(
    module_id: int,
    progress_in: ProgressUpdate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    await _get_accessible_module(db, module_id, current_user)
    progress = await _get_or_start_progress(db, current_user.id, module_id)

    changes = progress_in.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(progress, field, value)

    if progress.status == ProgressStatus.COMPLETED.value:
        if progress.completed_at is None:
            progress.completed_at = utcnow()
        if "percent_complete" not in changes:
            progress.percent_complete = 100.0
    progress.last_accessed_at = utcnow()

    await db.commit()
    await db.refresh(progress)
    return ok(ProgressResponse.model_validate(progress))


@router.post("/{module_id}/quiz", response_model=ApiResponse[QuizResult])
async def submit_quiz(
    module_id: int,
    submission: QuizSubmission,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    module = await _get_accessible_module(db, module_id, current_user)
    result = grade_quiz(module, submission.answers)

    progress = await _get_or_start_progress(db, current_user.id, module_id)
    progress.quiz_score = result.score
    progress.last_quiz_answers = [answer.model_dump(by_alias=True) for answer in result.answers]
    progress.last_accessed_at = utcnow()
    await db.commit()

    logger.info(
        "User %s scored %.1f on module %s (%d/%d)",
        current_user.id, result.score, module_id, result.correct_answers, result.total_questions,
    )
    return ok(result)
