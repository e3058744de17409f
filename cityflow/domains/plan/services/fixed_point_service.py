"""Fixed point management for plans."""

import logging
from typing import Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cityflow.core.exceptions import ConflictError, DatabaseError, NotFoundError, ValidationError
from cityflow.domains.plan.models import FixedPoint, Plan, PlanStatus
from cityflow.domains.plan.repository import FixedPointRepository
from cityflow.domains.plan.schemas import FixedPointCreate, FixedPointResponse, FixedPointUpdate
from cityflow.domains.plan.services.plan_service import PlanService

logger = logging.getLogger(__name__)

PLAN_ACCESS_ERROR = "Plan not found or you don't have access to it"


class FixedPointService:
    """CRUD for the fixed points of a plan the user owns."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repository = FixedPointRepository(session)
        self.plan_service = PlanService(session)

    async def _get_plan(self, plan_id: UUID, user_id: UUID, *, for_update: bool = False) -> Plan:
        plan = await self.plan_service.get_plan_model(
            plan_id, user_id, not_found_message=PLAN_ACCESS_ERROR
        )
        if for_update and plan.status != PlanStatus.DRAFT:
            raise ConflictError("Fixed points can only be changed in draft plans.")
        return plan

    async def list_models(self, plan_id: UUID) -> Sequence[FixedPoint]:
        """Fixed points of a plan ordered by time, without ownership check."""
        try:
            return await self.repository.list_for_plan(plan_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch fixed points for plan {plan_id}: {e}")
            raise DatabaseError("Failed to fetch fixed points", e) from e

    async def get_fixed_points(self, plan_id: UUID, user_id: UUID) -> list[FixedPointResponse]:
        """List the fixed points of a plan in chronological order."""
        await self._get_plan(plan_id, user_id)
        fixed_points = await self.list_models(plan_id)
        return [FixedPointResponse.model_validate(fp) for fp in fixed_points]

    async def create_fixed_point(
        self,
        plan_id: UUID,
        user_id: UUID,
        data: FixedPointCreate,
    ) -> FixedPointResponse:
        """Attach a new fixed point to a draft plan."""
        await self._get_plan(plan_id, user_id, for_update=True)
        try:
            fixed_point = await self.repository.create({**data.model_dump(), "plan_id": plan_id})
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to create fixed point for plan {plan_id}: {e}")
            raise DatabaseError("Failed to create fixed point", e) from e

        logger.info(f"Fixed point {fixed_point.id} added to plan {plan_id}")
        return FixedPointResponse.model_validate(fixed_point)

    async def update_fixed_point(
        self,
        plan_id: UUID,
        fixed_point_id: UUID,
        user_id: UUID,
        data: FixedPointUpdate,
    ) -> FixedPointResponse:
        """Partially update a fixed point."""
        await self._get_plan(plan_id, user_id, for_update=True)
        fixed_point = await self._get_fixed_point(fixed_point_id, plan_id)

        changes = data.model_dump(exclude_unset=True)
        for field in ("location", "event_at", "event_duration"):
            if field in changes and changes[field] is None:
                raise ValidationError(f"Field '{field}' cannot be null.")

        try:
            fixed_point = await self.repository.update_obj(fixed_point, changes)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to update fixed point {fixed_point_id}: {e}")
            raise DatabaseError("Failed to update fixed point", e) from e

        return FixedPointResponse.model_validate(fixed_point)

    async def delete_fixed_point(self, plan_id: UUID, fixed_point_id: UUID, user_id: UUID) -> None:
        """Remove a fixed point from a draft plan."""
        await self._get_plan(plan_id, user_id, for_update=True)
        fixed_point = await self._get_fixed_point(fixed_point_id, plan_id)
        try:
            await self.repository.delete_obj(fixed_point)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to delete fixed point {fixed_point_id}: {e}")
            raise DatabaseError("Failed to delete fixed point", e) from e

        logger.info(f"Fixed point {fixed_point_id} removed from plan {plan_id}")

    async def _get_fixed_point(self, fixed_point_id: UUID, plan_id: UUID) -> FixedPoint:
        try:
            fixed_point = await self.repository.get_in_plan(fixed_point_id, plan_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch fixed point {fixed_point_id}: {e}")
            raise DatabaseError("Failed to fetch fixed point", e) from e

        if fixed_point is None:
            raise NotFoundError("Fixed point not found.")
        return fixed_point
