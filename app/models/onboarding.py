from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Table, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.visibility import VisibilityMixin
from app.utils.timeutils import utcnow

onboarding_step_resources = Table(
    "onboarding_step_resources",
    Base.metadata,
    Column("step_id", Integer, ForeignKey("onboarding_steps.id", ondelete="CASCADE"), primary_key=True),
    Column("resource_id", Integer, ForeignKey("onboarding_resources.id", ondelete="CASCADE"), primary_key=True),
)


class OnboardingTrack(VisibilityMixin, Base):
    __tablename__ = "onboarding_tracks"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    steps = relationship(
        "OnboardingStep",
        lazy="selectin",
        order_by="OnboardingStep.order",
        cascade="all, delete-orphan",
    )


class OnboardingStep(Base):
    __tablename__ = "onboarding_steps"

    id = Column(Integer, primary_key=True, index=True)
    track_id = Column(Integer, ForeignKey("onboarding_tracks.id", ondelete="CASCADE"), nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    instructions = Column(Text, nullable=True)
    order = Column("sort_order", Integer, nullable=False, default=1)
    estimated_duration = Column(Integer, nullable=True)  # minutes
    is_required = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    resources = relationship(
        "OnboardingResource",
        secondary=onboarding_step_resources,
        lazy="selectin",
        order_by="OnboardingResource.id",
        back_populates="steps",
    )


class OnboardingResource(Base):
    __tablename__ = "onboarding_resources"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String, nullable=False)  # LINK, VIDEO, PDF, DOCUMENT, ...
    url = Column(String, nullable=False)
    is_external = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    steps = relationship(
        "OnboardingStep",
        secondary=onboarding_step_resources,
        order_by="OnboardingStep.id",
        back_populates="resources",
    )


class OnboardingProgress(Base):
    __tablename__ = "onboarding_progress"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    step_id = Column(Integer, ForeignKey("onboarding_steps.id", ondelete="CASCADE"), nullable=False)
    status = Column(String, nullable=False, default="NOT_STARTED")
    notes = Column(Text, nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "step_id", name="uq_onboarding_progress_user_step"),
    )
