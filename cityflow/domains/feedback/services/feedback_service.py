"""Services for the Feedback domain - Business logic layer."""

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cityflow.core.exceptions import DatabaseError, NotFoundError
from cityflow.domains.feedback.repository import FeedbackRepository
from cityflow.domains.feedback.schemas import FeedbackResponse, FeedbackSubmit
from cityflow.domains.plan.services.plan_service import PlanService

logger = logging.getLogger(__name__)


class FeedbackService:
    """Read and submit a user's feedback on their plans."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repository = FeedbackRepository(session)
        self.plan_service = PlanService(session)

    async def find_feedback(self, plan_id: UUID, user_id: UUID) -> FeedbackResponse | None:
        """Get the user's feedback on a plan, or None when not given yet.

        Raises:
            NotFoundError: If the plan is not the user's
        """
        await self.plan_service.get_plan_model(plan_id, user_id)
        try:
            feedback = await self.repository.get_for_plan(plan_id, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch feedback for plan {plan_id}: {e}")
            raise DatabaseError("Failed to retrieve feedback. Please try again later.", e) from e

        if feedback is None:
            return None
        return FeedbackResponse.model_validate(feedback)

    async def get_feedback(self, plan_id: UUID, user_id: UUID) -> FeedbackResponse:
        """Get the user's feedback on a plan.

        Raises:
            NotFoundError: If the plan is not the user's or has no feedback yet
        """
        feedback = await self.find_feedback(plan_id, user_id)
        if feedback is None:
            logger.debug(f"No feedback yet for plan {plan_id} (user {user_id})")
            raise NotFoundError("No feedback submitted for this plan.")
        return feedback

    async def submit_feedback(
        self,
        plan_id: UUID,
        user_id: UUID,
        data: FeedbackSubmit,
    ) -> tuple[FeedbackResponse, bool]:
        """Create or replace the user's feedback on a plan.

        Returns:
            Tuple of (feedback, created) where created is False on update
        """
        logger.debug(f"Submitting feedback for plan {plan_id} (rating: {data.rating.value})")
        await self.plan_service.get_plan_model(plan_id, user_id)

        try:
            created = await self.repository.get_for_plan(plan_id, user_id) is None
            feedback = await self.repository.upsert(plan_id, user_id, data.rating, data.comment)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to submit feedback for plan {plan_id}: {e}")
            raise DatabaseError("Failed to submit feedback. Please try again later.", e) from e

        logger.info(f"Feedback {'created' if created else 'updated'} for plan {plan_id}")
        return FeedbackResponse.model_validate(feedback), created
