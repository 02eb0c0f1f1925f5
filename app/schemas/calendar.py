from pydantic import Field, model_validator
from datetime import datetime
from typing import List, Optional
from app.models.enums import EventType, Recurrence, SalesPosition, UserRole
from app.schemas.base import CamelModel, PartialUpdate, UtcDatetime


class EventCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    event_type: EventType
    is_blitz: bool = False
    start_date: UtcDatetime
    end_date: UtcDatetime
    all_day: bool = False
    location: Optional[str] = None
    location_url: Optional[str] = None
    recurrence: Recurrence = Recurrence.NONE
    recurrence_end_date: Optional[UtcDatetime] = None
    is_public: bool = True
    visible_to_roles: List[UserRole] = []
    visible_to_positions: List[SalesPosition] = []

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("End date must be after start date")
        return self


class EventUpdate(PartialUpdate):
    not_nullable = (
        "title", "event_type", "is_blitz", "start_date", "end_date", "all_day",
        "recurrence", "is_public", "visible_to_roles", "visible_to_positions",
    )

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    event_type: Optional[EventType] = None
    is_blitz: Optional[bool] = None
    start_date: Optional[UtcDatetime] = None
    end_date: Optional[UtcDatetime] = None
    all_day: Optional[bool] = None
    location: Optional[str] = None
    location_url: Optional[str] = None
    recurrence: Optional[Recurrence] = None
    recurrence_end_date: Optional[UtcDatetime] = None
    is_public: Optional[bool] = None
    visible_to_roles: Optional[List[UserRole]] = None
    visible_to_positions: Optional[List[SalesPosition]] = None


class EventResponse(CamelModel):
    id: int
    title: str
    description: Optional[str]
    event_type: EventType
    is_blitz: bool
    start_date: datetime
    end_date: datetime
    all_day: bool
    location: Optional[str]
    location_url: Optional[str]
    recurrence: Recurrence
    recurrence_end_date: Optional[datetime]
    is_public: bool
    visible_to_roles: List[UserRole]
    visible_to_positions: List[SalesPosition]
    created_by_id: Optional[int]


class EventCategory(CamelModel):
    type: EventType
    display_name: str
    count: int
