"""Timeline editing endpoints for the days of a generated plan."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from cityflow.core.deps import get_current_user_id, get_db_session_dep
from cityflow.domains.plan.schemas import PlanResponse, TimelineItemCreate, TimelineItemUpdate
from cityflow.domains.plan.services import TimelineService

router = APIRouter()


def get_timeline_service(
    session: AsyncSession = Depends(get_db_session_dep),
) -> TimelineService:
    """Dependency for getting TimelineService."""
    return TimelineService(session)


@router.post(
    "",
    response_model=PlanResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add an activity to a day",
    description="""
    Adds an activity to the day `date` (YYYY-MM-DD) of a generated plan.
    The day's activities are re-sorted by time; activities without a time go last.
    """,
)
async def add_timeline_item(
    plan_id: UUID,
    date: str,
    data: TimelineItemCreate,
    service: TimelineService = Depends(get_timeline_service),
    user_id: UUID = Depends(get_current_user_id),
) -> PlanResponse:
    """Add an activity and return the updated plan."""
    return await service.add_item(plan_id, date, data, user_id)


@router.patch(
    "/{item_id}",
    response_model=PlanResponse,
    summary="Update an activity",
)
async def update_timeline_item(
    plan_id: UUID,
    date: str,
    item_id: str,
    data: TimelineItemUpdate,
    service: TimelineService = Depends(get_timeline_service),
    user_id: UUID = Depends(get_current_user_id),
) -> PlanResponse:
    """Update an activity and return the updated plan."""
    return await service.update_item(plan_id, date, item_id, data, user_id)


@router.delete(
    "/{item_id}",
    response_model=PlanResponse,
    summary="Delete an activity",
)
async def delete_timeline_item(
    plan_id: UUID,
    date: str,
    item_id: str,
    service: TimelineService = Depends(get_timeline_service),
    user_id: UUID = Depends(get_current_user_id),
) -> PlanResponse:
    """Delete an activity and return the updated plan."""
    return await service.delete_item(plan_id, date, item_id, user_id)
