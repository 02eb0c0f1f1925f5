from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from app.database import Base
from app.models.visibility import VisibilityMixin
from app.utils.timeutils import utcnow


class CalendarEvent(VisibilityMixin, Base):
    __tablename__ = "calendar_events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    event_type = Column(String, nullable=False)
    is_blitz = Column(Boolean, nullable=False, default=False)
    start_date = Column(DateTime(timezone=True), nullable=False, index=True)
    end_date = Column(DateTime(timezone=True), nullable=False)
    all_day = Column(Boolean, nullable=False, default=False)
    location = Column(String, nullable=True)
    location_url = Column(String, nullable=True)
    recurrence = Column(String, nullable=False, default="NONE")
    recurrence_end_date = Column(DateTime(timezone=True), nullable=True)
    is_public = Column(Boolean, nullable=False, default=True)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
