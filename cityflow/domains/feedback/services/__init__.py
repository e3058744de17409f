"""Feedback domain services."""

from cityflow.domains.feedback.services.feedback_service import FeedbackService

__all__ = ["FeedbackService"]
