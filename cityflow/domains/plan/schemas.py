"""Pydantic schemas for the Plan domain."""

from datetime import datetime
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import (
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from cityflow.domains.plan.content import TimelineItemCategory
from cityflow.domains.plan.models import PlanStatus

PlanSortField = Literal["created_at", "name"]
SortOrder = Literal["asc", "desc"]


# ==================== Plan Schemas ====================


class PlanCreate(BaseModel):
    """Schema for creating a new draft plan."""

    name: str = Field(..., min_length=1, max_length=255)
    destination: str = Field(..., min_length=1, max_length=255)
    start_date: AwareDatetime
    end_date: AwareDatetime
    notes: str | None = None

    @field_validator("name", "destination")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("cannot be empty.")
        return value

    @model_validator(mode="after")
    def validate_dates(self) -> "PlanCreate":
        """Ensure end_date is not before start_date."""
        if self.end_date < self.start_date:
            raise ValueError("End date must be equal to or after start date.")
        return self


class PlanUpdate(BaseModel):
    """Schema for updating a plan. Only provided fields are changed.

    Destination and dates can only change while the plan is a draft.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, min_length=1, max_length=255)
    notes: str | None = None
    destination: str | None = Field(None, min_length=1, max_length=255)
    start_date: AwareDatetime | None = None
    end_date: AwareDatetime | None = None

    @model_validator(mode="after")
    def validate_dates(self) -> "PlanUpdate":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("End date must be equal to or after start date.")
        return self


class PlanResponse(BaseModel):
    """Full plan details."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    name: str
    destination: str
    start_date: datetime
    end_date: datetime
    notes: str | None
    status: PlanStatus
    generated_content: dict[str, Any] | None
    created_at: datetime
    updated_at: datetime


class PlanListItem(BaseModel):
    """Plan summary shown in lists."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    destination: str
    start_date: datetime
    end_date: datetime
    status: PlanStatus
    created_at: datetime


class PaginationMeta(BaseModel):
    """Pagination block of a list response."""

    total: int
    limit: int
    offset: int


class PlanListResponse(BaseModel):
    """Paginated list of plans."""

    data: list[PlanListItem]
    pagination: PaginationMeta


class PlanListQuery(BaseModel):
    """Filters, sorting and pagination for listing plans."""

    statuses: list[PlanStatus] | None = None
    sort_by: PlanSortField = "created_at"
    order: SortOrder = "desc"
    limit: int = Field(20, ge=1, le=100)
    offset: int = Field(0, ge=0)

    @field_validator("statuses", mode="before")
    @classmethod
    def split_statuses(cls, value: Any) -> Any:
        """Accept "draft,generated" as well as repeated query values."""
        if not value:
            return None
        if isinstance(value, str):
            value = [value]
        parts = [part.strip() for item in value for part in str(item).split(",")]
        return [part for part in parts if part] or None


# ==================== Fixed Point Schemas ====================


class FixedPointCreate(BaseModel):
    """Schema for adding a fixed point to a plan."""

    location: str = Field(..., min_length=1, max_length=255)
    event_at: AwareDatetime
    event_duration: int = Field(..., gt=0, description="Duration in minutes")
    description: str | None = None


class FixedPointUpdate(BaseModel):
    """Schema for updating a fixed point."""

    model_config = ConfigDict(extra="forbid")

    location: str | None = Field(None, min_length=1, max_length=255)
    event_at: AwareDatetime | None = None
    event_duration: int | None = Field(None, gt=0)
    description: str | None = None


class FixedPointResponse(BaseModel):
    """Fixed point as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    plan_id: UUID
    location: str
    event_at: datetime
    event_duration: int
    description: str | None


# ==================== Timeline Item Schemas ====================


class TimelineItemCreate(BaseModel):
    """Schema for adding an activity to a generated day."""

    time: str | None = None
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    location: str | None = None
    duration: int | None = Field(None, gt=0, description="Duration in minutes")
    category: TimelineItemCategory
    estimated_cost: str | None = None


class TimelineItemUpdate(BaseModel):
    """Schema for editing an activity. Only provided fields are changed."""

    time: str | None = None
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    location: str | None = None
    duration: int | None = Field(None, gt=0)
    category: TimelineItemCategory | None = None
    estimated_cost: str | None = None


# ==================== AI Response Schemas ====================


class AITimelineEvent(BaseModel):
    """One activity as proposed by the AI."""

    time: str = Field(..., description="24-hour HH:mm time, e.g. 18:00")
    activity: str = Field(..., description="Short title of the activity")
    category: TimelineItemCategory
    description: str
    estimated_price: str | None = Field(
        None, description="Numeric string without currency symbol, '0' when free"
    )
    estimated_duration: str | None = Field(None, description="e.g. '2 hours'")


class AIDayPlan(BaseModel):
    """Activities of one day as proposed by the AI."""

    date: str = Field(..., description="YYYY-MM-DD")
    activities: list[AITimelineEvent]


class AIItineraryDates(BaseModel):
    start: str
    end: str


class AIItinerary(BaseModel):
    destination: str
    dates: AIItineraryDates
    days: list[AIDayPlan]


class AISuccessResponse(BaseModel):
    """A generated itinerary."""

    status: Literal["success"]
    summary: str
    currency: str = Field(..., min_length=3, max_length=3, description="ISO 4217 code")
    itinerary: AIItinerary


class AIErrorResponse(BaseModel):
    """The AI's refusal to plan an unrealistic trip or unknown place."""

    status: Literal["error"]
    error_type: Literal["unrealistic_plan", "invalid_location"]
    error_message: str


AIGeneratedContent = Annotated[
    AISuccessResponse | AIErrorResponse,
    Field(discriminator="status"),
]
