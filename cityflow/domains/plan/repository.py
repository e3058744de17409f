"""Repository for the Plan domain - Data access layer using Generic Repository."""

from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from cityflow.domains.plan.models import FixedPoint, Plan, PlanStatus
from cityflow.domains.plan.schemas import (
    FixedPointCreate,
    FixedPointUpdate,
    PlanCreate,
    PlanListQuery,
    PlanUpdate,
)
from cityflow.domains.shared.repository import GenericRepository
from cityflow.domains.shared.specifications import Specification


# ==================== Specifications ====================


class PlanOwnedBySpec(Specification[Plan]):
    """Plans belonging to a user."""

    def __init__(self, user_id: UUID) -> None:
        self.user_id = user_id

    def to_expression(self) -> Any:
        return Plan.user_id == self.user_id


class PlanStatusInSpec(Specification[Plan]):
    """Plans in any of the given statuses."""

    def __init__(self, statuses: list[PlanStatus]) -> None:
        self.statuses = statuses

    def to_expression(self) -> Any:
        return Plan.status.in_(self.statuses)


class PlanEndedBeforeSpec(Specification[Plan]):
    """Plans whose trip ended before the given moment."""

    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def to_expression(self) -> Any:
        return Plan.end_date < self.moment


# ==================== Repositories ====================


class PlanRepository(GenericRepository[Plan, PlanCreate, PlanUpdate]):
    """Repository for Plan CRUD operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Plan, session)

    async def get_owned(self, plan_id: UUID, user_id: UUID) -> Plan | None:
        """Get a plan only if it belongs to the user."""
        return await self.find_one(Plan.id == plan_id, Plan.user_id == user_id)

    async def list_for_user(
        self,
        user_id: UUID,
        query: PlanListQuery,
    ) -> tuple[Sequence[Plan], int]:
        """List a user's plans with filters, sorting and pagination.

        Returns:
            Tuple of (plans, total_count)
        """
        spec: Specification[Plan] = PlanOwnedBySpec(user_id)
        if query.statuses:
            spec = spec & PlanStatusInSpec(query.statuses)

        sort_column = Plan.name if query.sort_by == "name" else Plan.created_at
        order_by = sort_column.asc() if query.order == "asc" else sort_column.desc()

        plans = await self.find_many(
            spec.to_expression(),
            skip=query.offset,
            limit=query.limit,
            order_by=[order_by, Plan.id],
        )
        total = await self.count(spec.to_expression())
        return plans, total

    async def archive_ended(self, now: datetime) -> int:
        """Archive every generated plan whose end date has passed.

        Returns:
            Number of archived plans
        """
        spec = PlanStatusInSpec([PlanStatus.GENERATED]) & PlanEndedBeforeSpec(now)
        return await self.update_many(
            spec.to_expression(),
            data={"status": PlanStatus.ARCHIVED, "updated_at": now},
        )


class FixedPointRepository(GenericRepository[FixedPoint, FixedPointCreate, FixedPointUpdate]):
    """Repository for FixedPoint CRUD operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(FixedPoint, session)

    async def list_for_plan(self, plan_id: UUID) -> Sequence[FixedPoint]:
        """All fixed points of a plan in chronological order."""
        return await self.find_many(
            FixedPoint.plan_id == plan_id,
            limit=None,
            order_by=[FixedPoint.event_at.asc(), FixedPoint.id],
        )

    async def get_in_plan(self, fixed_point_id: UUID, plan_id: UUID) -> FixedPoint | None:
        """Get a fixed point only if it is attached to the plan."""
        return await self.find_one(
            FixedPoint.id == fixed_point_id,
            FixedPoint.plan_id == plan_id,
        )
