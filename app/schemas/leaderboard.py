from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from pydantic import ConfigDict, Field, model_validator
from app.models.enums import LeaderboardType, LeaderboardPeriod, SalesPosition
from app.schemas.base import CamelModel, PartialUpdate, UtcDatetime
from app.schemas.user import UserPublic


class LeaderboardCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    type: LeaderboardType
    period: LeaderboardPeriod
    for_positions: List[SalesPosition] = []
    is_active: bool = True


class LeaderboardUpdate(PartialUpdate):
    not_nullable = ("name", "type", "period", "for_positions", "is_active")

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    type: Optional[LeaderboardType] = None
    period: Optional[LeaderboardPeriod] = None
    for_positions: Optional[List[SalesPosition]] = None
    is_active: Optional[bool] = None


class LeaderboardResponse(CamelModel):
    id: int
    name: str
    description: Optional[str]
    type: LeaderboardType
    period: LeaderboardPeriod
    for_positions: List[SalesPosition]
    is_active: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class LeaderboardDetailResponse(LeaderboardResponse):
    entry_count: int = 0


class EntryCreate(CamelModel):
    user_id: int
    score: float = Field(..., allow_inf_nan=False)
    period_start: UtcDatetime
    period_end: UtcDatetime
    metrics: Dict[str, Any] = {}

    @model_validator(mode="after")
    def check_period(self):
        if self.period_start > self.period_end:
            raise ValueError("End date must be after start date")
        return self


class EntryUpdate(CamelModel):
    score: Optional[float] = Field(None, allow_inf_nan=False)
    period_start: Optional[UtcDatetime] = None
    period_end: Optional[UtcDatetime] = None
    metrics: Optional[Dict[str, Any]] = None


class BulkEntry(CamelModel):
    """One import row. Unknown keys are carried into the entry's metrics."""
    model_config = ConfigDict(extra="allow")

    # Kept as given; ids that are not integers are reported by the resolver
    user_id: Optional[Union[int, str]] = None
    email: Optional[str] = None
    score: float = Field(..., allow_inf_nan=False)

    @property
    def extra_metrics(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class BulkImportRequest(CamelModel):
    period_start: UtcDatetime
    period_end: UtcDatetime
    entries: List[BulkEntry] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_period(self):
        if self.period_start > self.period_end:
            raise ValueError("End date must be after start date")
        return self


class ImportResults(CamelModel):
    success: int = 0
    failed: int = 0
    skipped: int = 0
    errors: List[str] = []


class BulkImportResponse(CamelModel):
    message: str
    results: ImportResults


class EntryResponse(CamelModel):
    id: int
    leaderboard_id: int
    user_id: int
    score: float
    rank: Optional[int]
    period_start: datetime
    period_end: datetime
    metrics: Dict[str, Any]
    user: Optional[UserPublic] = None


class EntryFilter(CamelModel):
    search: Optional[str] = None
    position: Optional[SalesPosition] = None
    start_date: Optional[UtcDatetime] = None
    end_date: Optional[UtcDatetime] = None
    limit: Optional[int] = Field(None, ge=1, le=1000)
