"""Repository for the Feedback domain."""

from uuid import UUID

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from cityflow.domains.feedback.models import Feedback, FeedbackRating
from cityflow.domains.feedback.schemas import FeedbackSubmit
from cityflow.domains.shared.repository import GenericRepository


class FeedbackRepository(GenericRepository[Feedback, FeedbackSubmit, FeedbackSubmit]):
    """Repository for Feedback records."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Feedback, session)

    async def get_for_plan(self, plan_id: UUID, user_id: UUID) -> Feedback | None:
        """Get the user's feedback on a plan."""
        return await self.find_one(Feedback.plan_id == plan_id, Feedback.user_id == user_id)

    async def upsert(
        self,
        plan_id: UUID,
        user_id: UUID,
        rating: FeedbackRating,
        comment: str | None,
    ) -> Feedback:
        """Insert or replace the user's feedback on a plan."""
        stmt = (
            insert(Feedback)
            .values(plan_id=plan_id, user_id=user_id, rating=rating, comment=comment)
            .on_conflict_do_update(
                index_elements=[Feedback.plan_id, Feedback.user_id],
                set_={"rating": rating, "comment": comment, "updated_at": func.now()},
            )
            .returning(Feedback)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()
