from pydantic import Field, HttpUrl
from datetime import datetime
from typing import List, Optional
from app.models.enums import AnnouncementPriority, NotificationType, SalesPosition, UserRole
from app.schemas.base import CamelModel, PartialUpdate, UtcDatetime


class AnnouncementCreate(CamelModel):
    title: str = Field(..., min_length=2, max_length=255)
    content: str = Field(..., min_length=2)
    priority: AnnouncementPriority = AnnouncementPriority.MEDIUM
    category: Optional[str] = None
    visible_to_roles: List[UserRole] = []
    visible_to_positions: List[SalesPosition] = []
    publish_date: Optional[UtcDatetime] = None  # defaults to now
    expiry_date: Optional[UtcDatetime] = None
    is_pinned: bool = False
    is_draft: bool = False


class AnnouncementUpdate(PartialUpdate):
    not_nullable = (
        "title", "content", "priority", "visible_to_roles", "visible_to_positions", "is_pinned", "is_draft",
    )

    title: Optional[str] = Field(None, min_length=2, max_length=255)
    content: Optional[str] = Field(None, min_length=2)
    priority: Optional[AnnouncementPriority] = None
    category: Optional[str] = None
    visible_to_roles: Optional[List[UserRole]] = None
    visible_to_positions: Optional[List[SalesPosition]] = None
    publish_date: Optional[UtcDatetime] = None
    expiry_date: Optional[UtcDatetime] = None
    is_pinned: Optional[bool] = None
    is_draft: Optional[bool] = None


class AnnouncementResponse(CamelModel):
    id: int
    title: str
    content: str
    priority: AnnouncementPriority
    category: Optional[str]
    visible_to_roles: List[UserRole]
    visible_to_positions: List[SalesPosition]
    publish_date: datetime
    expiry_date: Optional[datetime]
    is_pinned: bool
    is_draft: bool
    created_by_id: Optional[int]
    created_at: Optional[datetime]


class LinkCreate(CamelModel):
    title: str = Field(..., min_length=2, max_length=255)
    url: HttpUrl
    description: Optional[str] = Field(None, max_length=2000)
    category: Optional[str] = None
    icon: Optional[str] = None
    order: int = Field(0, ge=0)
    visible_to_roles: List[UserRole] = []
    visible_to_positions: List[SalesPosition] = []
    is_active: bool = True


class LinkUpdate(PartialUpdate):
    not_nullable = ("title", "url", "order", "visible_to_roles", "visible_to_positions", "is_active")

    title: Optional[str] = Field(None, min_length=2, max_length=255)
    url: Optional[HttpUrl] = None
    description: Optional[str] = Field(None, max_length=2000)
    category: Optional[str] = None
    icon: Optional[str] = None
    order: Optional[int] = Field(None, ge=0)
    visible_to_roles: Optional[List[UserRole]] = None
    visible_to_positions: Optional[List[SalesPosition]] = None
    is_active: Optional[bool] = None


class LinkResponse(CamelModel):
    id: int
    title: str
    url: str
    description: Optional[str]
    category: Optional[str]
    category_slug: Optional[str]
    icon: Optional[str]
    order: int
    visible_to_roles: List[UserRole]
    visible_to_positions: List[SalesPosition]
    is_active: bool


class NotificationCreate(CamelModel):
    user_id: int
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    type: NotificationType
    resource_id: Optional[int] = None
    expires_at: Optional[UtcDatetime] = None


class NotificationResponse(CamelModel):
    id: int
    user_id: int
    title: str
    message: str
    type: NotificationType
    resource_id: Optional[int]
    is_read: bool
    expires_at: Optional[datetime]
    created_at: Optional[datetime]
