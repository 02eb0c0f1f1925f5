from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Float, DateTime, JSON, ForeignKey, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.visibility import VisibilityMixin
from app.utils.timeutils import utcnow


class TrainingModule(VisibilityMixin, Base):
    __tablename__ = "training_modules"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=False)
    order = Column("sort_order", Integer, nullable=False, default=1)
    is_required = Column(Boolean, nullable=False, default=False)
    is_published = Column(Boolean, nullable=False, default=False)
    estimated_duration = Column(Integer, nullable=True)  # minutes
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    sections = relationship(
        "TrainingSection",
        lazy="selectin",
        order_by="TrainingSection.order",
        cascade="all, delete-orphan",
    )


class TrainingSection(Base):
    __tablename__ = "training_sections"

    id = Column(Integer, primary_key=True, index=True)
    module_id = Column(Integer, ForeignKey("training_modules.id", ondelete="CASCADE"), nullable=False)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False, default="")
    content_format = Column(String, nullable=False)  # HTML, MARKDOWN, VIDEO, PDF, QUIZ
    order = Column("sort_order", Integer, nullable=False, default=1)
    is_optional = Column(Boolean, nullable=False, default=False)

    questions = relationship(
        "QuizQuestion",
        lazy="selectin",
        order_by="QuizQuestion.id",
        cascade="all, delete-orphan",
    )


class QuizQuestion(Base):
    __tablename__ = "quiz_questions"

    id = Column(Integer, primary_key=True, index=True)
    section_id = Column(Integer, ForeignKey("training_sections.id", ondelete="CASCADE"), nullable=False)
    question = Column(Text, nullable=False)
    question_type = Column(String, nullable=False, default="MULTIPLE_CHOICE")
    explanation = Column(Text, nullable=True)
    points = Column(Integer, nullable=False, default=1)

    options = relationship(
        "QuizOption",
        lazy="selectin",
        order_by="QuizOption.id",
        cascade="all, delete-orphan",
    )


class QuizOption(Base):
    __tablename__ = "quiz_options"

    id = Column(Integer, primary_key=True, index=True)
    question_id = Column(Integer, ForeignKey("quiz_questions.id", ondelete="CASCADE"), nullable=False)
    text = Column(String, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)


class TrainingProgress(Base):
    __tablename__ = "training_progress"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    module_id = Column(Integer, ForeignKey("training_modules.id", ondelete="CASCADE"), nullable=False)
    status = Column(String, nullable=False, default="NOT_STARTED")
    current_section = Column(Integer, nullable=False, default=0)
    percent_complete = Column(Float, nullable=False, default=0.0)
    quiz_score = Column(Float, nullable=True)
    last_quiz_answers = Column(JSON, nullable=True)  # graded answers of the latest attempt
    started_at = Column(DateTime(timezone=True), default=utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    last_accessed_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "module_id", name="uq_progress_user_module"),
    )
