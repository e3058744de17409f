"""SQLAlchemy models for the Profile domain."""

import enum

from sqlalchemy import CheckConstraint, Enum, Integer
from sqlalchemy.dialects.postgresql import ARRAY, TEXT
from sqlalchemy.orm import Mapped, mapped_column

from cityflow.core.config import settings
from cityflow.infra.database import Base


class TravelPace(str, enum.Enum):
    """How packed each day of a generated plan should be."""

    SLOW = "slow"
    MODERATE = "moderate"
    INTENSIVE = "intensive"


class Profile(Base):
    """Per-user preferences and remaining AI generation credits.

    The primary key is the user id issued by the identity provider.

    Attributes:
        id: User id - inherited from Base, assigned explicitly
        preferences: Travel interests chosen during onboarding
        travel_pace: Preferred pace of the trip
        generations_remaining: AI plan generations the user can still run
        onboarding_completed: Whether the onboarding flow was finished
    """

    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint(
            "generations_remaining >= 0",
            name="generations_remaining_non_negative",
        ),
    )

    preferences: Mapped[list[str] | None] = mapped_column(
        ARRAY(TEXT),
        nullable=True,
    )
    travel_pace: Mapped[TravelPace | None] = mapped_column(
        Enum(
            TravelPace,
            native_enum=True,
            name="travel_pace",
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
        ),
        nullable=True,
    )
    generations_remaining: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=settings.DEFAULT_GENERATIONS_LIMIT,
    )
    onboarding_completed: Mapped[bool] = mapped_column(
        nullable=False,
        default=False,
    )
