from pydantic import Field
from datetime import datetime
from typing import List, Optional
from app.models.enums import (
    ContentFormat, ProgressStatus, QuestionType, SalesPosition, TrainingCategory, UserRole,
)
from app.schemas.base import CamelModel, PartialUpdate, UtcDatetime


class OptionIn(CamelModel):
    text: str = Field(..., min_length=1)
    is_correct: bool = False

class QuestionIn(CamelModel):
    question: str = Field(..., min_length=2)
    question_type: QuestionType = QuestionType.MULTIPLE_CHOICE
    explanation: Optional[str] = None
    points: int = Field(1, ge=1)
    options: List[OptionIn] = Field(..., min_length=1)

class SectionIn(CamelModel):
    title: str = Field(..., min_length=2, max_length=255)
    content: str = ""
    content_format: ContentFormat
    order: int = Field(1, ge=0)
    is_optional: bool = False
    questions: List[QuestionIn] = []

class ModuleCreate(CamelModel):
    title: str = Field(..., min_length=2, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    category: TrainingCategory
    order: int = Field(1, ge=0)
    is_required: bool = False
    is_published: bool = False
    visible_to_roles: List[UserRole] = []
    visible_to_positions: List[SalesPosition] = []
    estimated_duration: Optional[int] = Field(None, ge=1)
    sections: List[SectionIn] = []

class ModuleUpdate(PartialUpdate):
    not_nullable = (
        "title", "category", "order", "is_required", "is_published", "visible_to_roles", "visible_to_positions",
    )

    title: Optional[str] = Field(None, min_length=2, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    category: Optional[TrainingCategory] = None
    order: Optional[int] = Field(None, ge=0)
    is_required: Optional[bool] = None
    is_published: Optional[bool] = None
    visible_to_roles: Optional[List[UserRole]] = None
    visible_to_positions: Optional[List[SalesPosition]] = None
    estimated_duration: Optional[int] = Field(None, ge=1)
    # When given, replaces all sections
    sections: Optional[List[SectionIn]] = None


class OptionResponse(CamelModel):
    id: int
    text: str
    is_correct: Optional[bool] = None  # hidden from learners

class QuestionResponse(CamelModel):
    id: int
    question: str
    question_type: QuestionType
    explanation: Optional[str]
    points: int
    options: List[OptionResponse]

class SectionResponse(CamelModel):
    id: int
    title: str
    content: str
    content_format: ContentFormat
    order: int
    is_optional: bool
    questions: List[QuestionResponse] = []

class ProgressResponse(CamelModel):
    id: int
    user_id: int
    module_id: int
    status: ProgressStatus
    current_section: int
    percent_complete: float
    quiz_score: Optional[float]
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    last_accessed_at: Optional[datetime]

class ModuleResponse(CamelModel):
    id: int
    title: str
    description: Optional[str]
    category: TrainingCategory
    order: int
    is_required: bool
    is_published: bool
    visible_to_roles: List[UserRole]
    visible_to_positions: List[SalesPosition]
    estimated_duration: Optional[int]
    progress: Optional[ProgressResponse] = None

class ModuleDetailResponse(ModuleResponse):
    sections: List[SectionResponse] = []


class ProgressUpdate(CamelModel):
    status: Optional[ProgressStatus] = None
    current_section: Optional[int] = Field(None, ge=0)
    percent_complete: Optional[float] = Field(None, ge=0, le=100)
    completed_at: Optional[UtcDatetime] = None


class QuizAnswerIn(CamelModel):
    question_id: int
    selected_options: List[int] = []
    text_answer: Optional[str] = None

class QuizSubmission(CamelModel):
    answers: List[QuizAnswerIn] = Field(..., min_length=1)

class GradedAnswer(CamelModel):
    question_id: int
    selected_options: List[int]
    text_answer: Optional[str]
    is_correct: bool

class QuizResult(CamelModel):
    score: float
    correct_answers: int
    total_questions: int
    answers: List[GradedAnswer]
