from sqlalchemy import (
    Column, Integer, String, Text, Float, Boolean, DateTime, JSON,
    ForeignKey, UniqueConstraint, Index,
)
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.timeutils import utcnow


class Leaderboard(Base):
    __tablename__ = "leaderboards"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String, nullable=False)     # APPOINTMENT_SETTERS, CLOSERS, REFERRALS, OVERALL
    period = Column(String, nullable=False)   # DAILY ... ALL_TIME
    for_positions = Column(JSON, nullable=False, default=list)  # empty = all positions
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Leaderboards are only scoped by position
    @property
    def visible_to_roles(self):
        return []

    @property
    def visible_to_positions(self):
        return self.for_positions or []


class LeaderboardEntry(Base):
    __tablename__ = "leaderboard_entries"

    id = Column(Integer, primary_key=True, index=True)
    leaderboard_id = Column(Integer, ForeignKey("leaderboards.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    score = Column(Float, nullable=False)
    rank = Column(Integer, nullable=True)  # NULL until computed
    period_start = Column(DateTime(timezone=True), nullable=False)
    period_end = Column(DateTime(timezone=True), nullable=False)
    metrics = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = relationship("User", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("leaderboard_id", "user_id", "period_start", "period_end", name="uq_entry_user_period"),
        Index("ix_entry_leaderboard_period", "leaderboard_id", "period_start", "period_end"),
    )
