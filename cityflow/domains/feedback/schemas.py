"""Pydantic schemas for the Feedback domain."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from cityflow.domains.feedback.models import FeedbackRating


class FeedbackSubmit(BaseModel):
    """Body of a feedback submission."""

    rating: FeedbackRating
    comment: str | None = None


class FeedbackResponse(BaseModel):
    """Feedback as returned to its author."""

    model_config = ConfigDict(from_attributes=True)

    rating: FeedbackRating
    comment: str | None
    updated_at: datetime
