"""SQLAlchemy models for the Plan domain."""

import enum
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from cityflow.infra.database import Base


class PlanStatus(str, enum.Enum):
    """Lifecycle of a plan: draft -> generated -> archived."""

    DRAFT = "draft"
    GENERATED = "generated"
    ARCHIVED = "archived"


class Plan(Base):
    """A user's trip.

    Attributes:
        id: Unique identifier (UUID) - inherited from Base
        user_id: Owner of the plan
        name: Display name
        destination: City or region of the trip
        start_date: Trip start (date and time)
        end_date: Trip end, never before start_date
        notes: Free-form wishes passed to the AI
        status: Current lifecycle status
        generated_content: AI itinerary JSON, set once generated
    """

    __tablename__ = "plans"
    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="end_after_start"),
        Index("ix_plans_user_id_status", "user_id", "status"),
    )

    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    destination: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    start_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    end_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    status: Mapped[PlanStatus] = mapped_column(
        Enum(
            PlanStatus,
            native_enum=True,
            name="plan_status",
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
        ),
        nullable=False,
        default=PlanStatus.DRAFT,
        index=True,
    )
    generated_content: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB,
        nullable=True,
        comment="AI-generated itinerary (summary, currency, days)",
    )

    def __repr__(self) -> str:
        return f"<Plan(id={self.id}, name={self.name!r}, status={self.status})>"


class FixedPoint(Base):
    """An immovable commitment inside a plan (flight, check-in, ticket)."""

    __tablename__ = "fixed_points"
    __table_args__ = (
        CheckConstraint("event_duration > 0", name="event_duration_positive"),
    )

    plan_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("plans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    location: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    event_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    event_duration: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Duration in minutes",
    )
    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
