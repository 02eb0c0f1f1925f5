from pydantic import Field, HttpUrl
from datetime import datetime
from typing import List, Optional
from app.models.enums import ProgressStatus, ResourceType, SalesPosition, UserRole
from app.schemas.base import CamelModel, PartialUpdate


class TrackCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: str = Field(..., min_length=5)
    visible_to_roles: List[UserRole] = []
    visible_to_positions: List[SalesPosition] = []
    is_active: bool = True

class TrackUpdate(PartialUpdate):
    not_nullable = ("name", "description", "visible_to_roles", "visible_to_positions", "is_active")

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, min_length=5)
    visible_to_roles: Optional[List[UserRole]] = None
    visible_to_positions: Optional[List[SalesPosition]] = None
    is_active: Optional[bool] = None


class StepCreate(CamelModel):
    track_id: int
    title: str = Field(..., min_length=2, max_length=100)
    description: str = ""
    instructions: Optional[str] = None
    order: int = Field(1, ge=0)
    estimated_duration: Optional[int] = Field(None, ge=1)
    is_required: bool = True
    resource_ids: List[int] = []

class StepUpdate(PartialUpdate):
    not_nullable = ("track_id", "title", "description", "order", "is_required")

    track_id: Optional[int] = None
    title: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = None
    instructions: Optional[str] = None
    order: Optional[int] = Field(None, ge=0)
    estimated_duration: Optional[int] = Field(None, ge=1)
    is_required: Optional[bool] = None
    # When given, replaces the attached resources
    resource_ids: Optional[List[int]] = None


class ResourceCreate(CamelModel):
    title: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    type: ResourceType
    url: HttpUrl
    is_external: bool = True

class ResourceUpdate(PartialUpdate):
    not_nullable = ("title", "type", "url", "is_external")

    title: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    type: Optional[ResourceType] = None
    url: Optional[HttpUrl] = None
    is_external: Optional[bool] = None


class StepProgressUpdate(CamelModel):
    status: ProgressStatus
    notes: Optional[str] = Field(None, max_length=2000)


class ResourceResponse(CamelModel):
    id: int
    title: str
    description: Optional[str]
    type: ResourceType
    url: str
    is_external: bool
    created_at: Optional[datetime]

class StepRef(CamelModel):
    id: int
    title: str
    track_id: int

class ResourceDetailResponse(ResourceResponse):
    steps: List[StepRef] = []

class StepProgressResponse(CamelModel):
    id: int
    user_id: int
    step_id: int
    status: ProgressStatus
    notes: Optional[str]
    started_at: Optional[datetime]
    completed_at: Optional[datetime]

class StepResponse(CamelModel):
    id: int
    track_id: int
    title: str
    description: str
    instructions: Optional[str]
    order: int
    estimated_duration: Optional[int]
    is_required: bool
    resources: List[ResourceResponse] = []
    progress: Optional[StepProgressResponse] = None

class TrackResponse(CamelModel):
    id: int
    name: str
    description: str
    visible_to_roles: List[UserRole]
    visible_to_positions: List[SalesPosition]
    is_active: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

class TrackDetailResponse(TrackResponse):
    steps: List[StepResponse] = []


class MyOnboarding(CamelModel):
    """The signed-in user's track, with their progress on each step."""
    track: Optional[TrackResponse] = None
    steps: List[StepResponse] = []
    completed_steps: int = 0
    total_steps: int = 0
    message: Optional[str] = None


class StepStats(CamelModel):
    step_id: int
    title: str
    order: int
    total_attempts: int
    completions: int
    in_progress: int
    completion_rate: int
    avg_completion_time_minutes: int

class TrackStats(CamelModel):
    track_id: int
    track_name: str
    total_steps: int
    users_completed_all: int
    track_completion_rate: int
    step_stats: List[StepStats]

class RecentCompletion(CamelModel):
    user_id: int
    user_name: Optional[str]
    step_id: int
    step_title: str
    track_id: int
    track_name: str
    completed_at: datetime

class AnalyticsPeriod(CamelModel):
    start_date: datetime
    end_date: datetime
    days: int

class OnboardingAnalytics(CamelModel):
    active_users: int
    tracks: List[TrackStats]
    recent_activity: List[RecentCompletion]
    period: AnalyticsPeriod
