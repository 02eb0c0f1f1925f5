from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from app.database import Base
from app.models.visibility import VisibilityMixin
from app.utils.timeutils import utcnow


class Announcement(VisibilityMixin, Base):
    __tablename__ = "announcements"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    priority = Column(String, nullable=False, default="MEDIUM")  # LOW, MEDIUM, HIGH, URGENT
    category = Column(String, nullable=True)
    publish_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    expiry_date = Column(DateTime(timezone=True), nullable=True)
    is_pinned = Column(Boolean, nullable=False, default=False)
    is_draft = Column(Boolean, nullable=False, default=False)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class ImportantLink(VisibilityMixin, Base):
    __tablename__ = "important_links"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    url = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=True)
    category_slug = Column(String, nullable=True)
    icon = Column(String, nullable=True)
    order = Column("sort_order", Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String, nullable=False)           # ANNOUNCEMENT, LINK, ...
    resource_id = Column(Integer, nullable=True)    # id of the announcement/link it points at
    is_read = Column(Boolean, nullable=False, default=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
