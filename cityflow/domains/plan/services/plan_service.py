"""Services for the Plan domain - Business logic layer."""

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cityflow.core.exceptions import ConflictError, DatabaseError, NotFoundError, ValidationError
from cityflow.domains.plan.models import Plan, PlanStatus
from cityflow.domains.plan.repository import PlanRepository
from cityflow.domains.plan.schemas import (
    PaginationMeta,
    PlanCreate,
    PlanListItem,
    PlanListQuery,
    PlanListResponse,
    PlanResponse,
    PlanUpdate,
)

logger = logging.getLogger(__name__)

DRAFT_ONLY_FIELDS = ("destination", "start_date", "end_date")


class PlanService:
    """Service for Plan business logic.

    All reads and writes are scoped to the requesting user: a plan that
    belongs to someone else is reported as not found.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repository = PlanRepository(session)

    # ==================== CRUD Operations ====================

    async def create_plan(self, user_id: UUID, data: PlanCreate) -> PlanResponse:
        """Create a new draft plan."""
        logger.debug(f"Creating plan for user {user_id}")
        try:
            plan = await self.repository.create(
                {
                    **data.model_dump(),
                    "user_id": user_id,
                    "status": PlanStatus.DRAFT,
                }
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to create plan for user {user_id}: {e}")
            raise DatabaseError("Failed to create plan", e) from e

        logger.info(f"Plan {plan.id} created for user {user_id}")
        return PlanResponse.model_validate(plan)

    async def get_plans(self, user_id: UUID, query: PlanListQuery) -> PlanListResponse:
        """List the user's plans with filtering, sorting and pagination."""
        try:
            plans, total = await self.repository.list_for_user(user_id, query)
        except SQLAlchemyError as e:
            logger.error(f"Failed to list plans for user {user_id}: {e}")
            raise DatabaseError("Failed to fetch plans", e) from e

        return PlanListResponse(
            data=[PlanListItem.model_validate(plan) for plan in plans],
            pagination=PaginationMeta(total=total, limit=query.limit, offset=query.offset),
        )

    async def get_plan_model(
        self,
        plan_id: UUID,
        user_id: UUID,
        not_found_message: str = "Plan not found.",
    ) -> Plan:
        """Load a plan owned by the user or raise NotFoundError."""
        try:
            plan = await self.repository.get_owned(plan_id, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch plan {plan_id}: {e}")
            raise DatabaseError("Failed to fetch plan", e) from e

        if plan is None:
            logger.warning(f"Plan {plan_id} not found for user {user_id}")
            raise NotFoundError(not_found_message)
        return plan

    async def get_plan(self, plan_id: UUID, user_id: UUID) -> PlanResponse:
        """Get a single plan with its generated content."""
        plan = await self.get_plan_model(plan_id, user_id)
        return PlanResponse.model_validate(plan)

    async def update_plan(
        self,
        plan_id: UUID,
        user_id: UUID,
        data: PlanUpdate,
    ) -> PlanResponse:
        """Update plan fields.

        Archived plans are read-only. Destination and dates are frozen once
        the plan has been generated, and the date order is checked against
        the stored values for partial updates.
        """
        plan = await self.get_plan_model(plan_id, user_id)
        changes = data.model_dump(exclude_unset=True)

        if not changes:
            return PlanResponse.model_validate(plan)

        if plan.status == PlanStatus.ARCHIVED:
            raise ConflictError("Archived plans cannot be modified.")

        if plan.status != PlanStatus.DRAFT and any(f in changes for f in DRAFT_ONLY_FIELDS):
            raise ConflictError("Destination and dates can only be changed in draft plans.")

        if "name" in changes and changes["name"] is None:
            raise ValidationError("Name cannot be empty.")
        for field in DRAFT_ONLY_FIELDS:
            if field in changes and changes[field] is None:
                raise ValidationError(f"Field '{field}' cannot be null.")

        start = changes.get("start_date", plan.start_date)
        end = changes.get("end_date", plan.end_date)
        if end < start:
            raise ValidationError(
                "End date must be equal to or after start date.",
                details=[{"field": "end_date", "message": "End date must be equal to or after start date."}],
            )

        plan = await self._apply_changes(plan, changes)
        logger.info(f"Plan {plan_id} updated ({', '.join(changes)})")
        return PlanResponse.model_validate(plan)

    async def delete_plan(self, plan_id: UUID, user_id: UUID) -> None:
        """Delete a plan together with its fixed points and feedback."""
        plan = await self.get_plan_model(plan_id, user_id)
        try:
            await self.repository.delete_obj(plan)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to delete plan {plan_id}: {e}")
            raise DatabaseError("Failed to delete plan", e) from e

        logger.info(f"Plan {plan_id} deleted by user {user_id}")

    # ==================== Lifecycle Operations ====================

    async def archive_plan(self, plan_id: UUID, user_id: UUID) -> PlanResponse:
        """Move a plan to history."""
        plan = await self.get_plan_model(plan_id, user_id)
        if plan.status == PlanStatus.ARCHIVED:
            raise ConflictError("Plan is already archived.")

        plan = await self._apply_changes(plan, {"status": PlanStatus.ARCHIVED})
        logger.info(f"Plan {plan_id} archived by user {user_id}")
        return PlanResponse.model_validate(plan)

    async def archive_expired_plans(self, now: datetime | None = None) -> int:
        """Archive generated plans whose trip has already ended.

        Returns:
            Number of plans moved to history
        """
        now = now or datetime.now(timezone.utc)
        try:
            count = await self.repository.archive_ended(now)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to archive expired plans: {e}")
            raise DatabaseError("Failed to archive expired plans", e) from e

        logger.info(f"Archived {count} expired plan(s)")
        return count

    async def save_generated_content(
        self,
        plan: Plan,
        content: dict[str, Any],
        status: PlanStatus | None = None,
    ) -> Plan:
        """Store new generated content (and optionally a new status) on a plan."""
        changes: dict[str, Any] = {"generated_content": content}
        if status is not None:
            changes["status"] = status
        return await self._apply_changes(plan, changes)

    async def _apply_changes(self, plan: Plan, changes: dict[str, Any]) -> Plan:
        # Rollback expires the instance; read the id while it is still loaded
        plan_id = plan.id
        try:
            plan = await self.repository.update_obj(plan, changes)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to update plan {plan_id}: {e}")
            raise DatabaseError("Failed to update plan", e) from e
        return plan
