"""Pydantic schemas for the Profile domain."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from cityflow.domains.profile.models import TravelPace


class ProfileUpdate(BaseModel):
    """PATCH payload for a profile. Every field is optional."""

    model_config = ConfigDict(extra="forbid")

    preferences: list[str] | None = Field(
        default=None,
        min_length=2,
        max_length=5,
        description="Travel interests, e.g. 'Art & Museums', 'Local Food'",
    )
    travel_pace: TravelPace | None = None
    onboarding_completed: bool | None = None


class ProfileResponse(BaseModel):
    """Profile as returned to the owner."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    preferences: list[str] | None
    travel_pace: TravelPace | None
    generations_remaining: int
    onboarding_completed: bool
    updated_at: datetime
