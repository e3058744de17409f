"""Editing of the generated day-by-day timeline of a plan."""

import logging
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from cityflow.core.exceptions import ConflictError, NotFoundError
from cityflow.domains.plan.content import (
    DayPlan,
    GeneratedContent,
    TimelineItem,
    item_type_for_category,
    parse_generated_content,
    sort_timeline_items,
)
from cityflow.domains.plan.models import Plan, PlanStatus
from cityflow.domains.plan.schemas import PlanResponse, TimelineItemCreate, TimelineItemUpdate
from cityflow.domains.plan.services.plan_service import PlanService

logger = logging.getLogger(__name__)


def format_duration(minutes: int) -> str:
    return f"{minutes} min"


class TimelineService:
    """Add, edit and remove activities in a generated plan.

    Each change rewrites the plan's generated content and returns the
    updated plan.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.plan_service = PlanService(session)

    async def add_item(
        self,
        plan_id: UUID,
        date: str,
        data: TimelineItemCreate,
        user_id: UUID,
    ) -> PlanResponse:
        """Add an activity to a day and keep the day ordered by time."""
        logger.debug(f"Adding activity to plan {plan_id} on {date}")
        plan, content = await self._load(plan_id, user_id, action="add activities to")
        day = self._find_day(content, date)

        item = TimelineItem(
            id=str(uuid4()),
            type=item_type_for_category(data.category).value,
            category=data.category.value,
            title=data.title,
            time=data.time,
            description=data.description,
            location=data.location,
            estimated_price=data.estimated_cost,
            estimated_duration=format_duration(data.duration) if data.duration else None,
        )
        day.items = sort_timeline_items([*day.items, item])

        stored = content.to_storage(plan.generated_content)
        plan = await self.plan_service.save_generated_content(plan, stored)
        logger.info(f"Activity {item.id} added to plan {plan_id} on {date}")
        return PlanResponse.model_validate(plan)

    async def update_item(
        self,
        plan_id: UUID,
        date: str,
        item_id: str,
        data: TimelineItemUpdate,
        user_id: UUID,
    ) -> PlanResponse:
        """Apply a partial update to an activity.

        The item type follows a category change and the day is re-sorted
        when the time changes.
        """
        logger.debug(f"Updating activity {item_id} in plan {plan_id} on {date}")
        plan, content = await self._load(plan_id, user_id, action="update activities in")
        day = self._find_day(content, date)
        index = self._find_item_index(day, item_id, date)

        command = data.model_dump(exclude_unset=True)
        updates: dict = {}
        for field in ("time", "title", "description", "location"):
            if field in command:
                updates[field] = command[field]
        if "estimated_cost" in command:
            updates["estimated_price"] = command["estimated_cost"]
        if command.get("duration") is not None:
            updates["estimated_duration"] = format_duration(command["duration"])
        if data.category is not None:
            updates["category"] = data.category.value
            updates["type"] = item_type_for_category(data.category).value

        day.items[index] = day.items[index].model_copy(update=updates)
        if "time" in command:
            day.items = sort_timeline_items(day.items)

        stored = content.to_storage(plan.generated_content)
        plan = await self.plan_service.save_generated_content(plan, stored)
        logger.info(f"Activity {item_id} updated in plan {plan_id} on {date}")
        return PlanResponse.model_validate(plan)

    async def delete_item(
        self,
        plan_id: UUID,
        date: str,
        item_id: str,
        user_id: UUID,
    ) -> PlanResponse:
        """Remove an activity from a day."""
        plan, content = await self._load(plan_id, user_id, action="delete activities from")
        day = self._find_day(content, date)
        index = self._find_item_index(day, item_id, date)
        del day.items[index]

        stored = content.to_storage(plan.generated_content)
        plan = await self.plan_service.save_generated_content(plan, stored)
        logger.info(f"Activity {item_id} deleted from plan {plan_id} on {date}")
        return PlanResponse.model_validate(plan)

    # ==================== Helpers ====================

    async def _load(self, plan_id: UUID, user_id: UUID, action: str) -> tuple[Plan, GeneratedContent]:
        plan = await self.plan_service.get_plan_model(plan_id, user_id)
        if plan.status != PlanStatus.GENERATED:
            raise ConflictError(f"Can only {action} generated plans.")

        content = parse_generated_content(plan.generated_content)
        if content is None:
            raise ConflictError("Plan does not have valid generated content.")
        return plan, content

    @staticmethod
    def _find_day(content: GeneratedContent, date: str) -> DayPlan:
        day = content.find_day(date)
        if day is None:
            raise NotFoundError(f"Day {date} not found in plan.")
        return day

    @staticmethod
    def _find_item_index(day: DayPlan, item_id: str, date: str) -> int:
        for index, item in enumerate(day.items):
            if item.id == item_id:
                return index
        raise NotFoundError(f"Activity {item_id} not found in day {date}.")
