"""SQLAlchemy models for the Feedback domain."""

import enum
from uuid import UUID

from sqlalchemy import Enum, ForeignKey, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from cityflow.infra.database import Base


class FeedbackRating(str, enum.Enum):
    """Thumbs rating of a generated plan."""

    THUMBS_UP = "thumbs_up"
    THUMBS_DOWN = "thumbs_down"


class Feedback(Base):
    """A user's rating of one of their plans. One row per (plan, user)."""

    __tablename__ = "feedback"
    __table_args__ = (
        UniqueConstraint("plan_id", "user_id", name="uq_feedback_plan_id_user_id"),
    )

    plan_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("plans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        nullable=False,
    )
    rating: Mapped[FeedbackRating] = mapped_column(
        Enum(
            FeedbackRating,
            native_enum=True,
            name="feedback_rating",
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
        ),
        nullable=False,
    )
    comment: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
