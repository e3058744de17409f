"""Fixed point API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from cityflow.core.deps import get_current_user_id, get_db_session_dep
from cityflow.domains.plan.schemas import FixedPointCreate, FixedPointResponse, FixedPointUpdate
from cityflow.domains.plan.services import FixedPointService

router = APIRouter()


def get_fixed_point_service(
    session: AsyncSession = Depends(get_db_session_dep),
) -> FixedPointService:
    """Dependency for getting FixedPointService."""
    return FixedPointService(session)


@router.get(
    "",
    response_model=list[FixedPointResponse],
    summary="List a plan's fixed points",
)
async def get_fixed_points(
    plan_id: UUID,
    service: FixedPointService = Depends(get_fixed_point_service),
    user_id: UUID = Depends(get_current_user_id),
) -> list[FixedPointResponse]:
    """Get fixed points ordered by event time."""
    return await service.get_fixed_points(plan_id, user_id)


@router.post(
    "",
    response_model=FixedPointResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a fixed point to a draft plan",
)
async def create_fixed_point(
    plan_id: UUID,
    data: FixedPointCreate,
    service: FixedPointService = Depends(get_fixed_point_service),
    user_id: UUID = Depends(get_current_user_id),
) -> FixedPointResponse:
    """Add an immovable event the generated itinerary must respect."""
    return await service.create_fixed_point(plan_id, user_id, data)


@router.patch(
    "/{fixed_point_id}",
    response_model=FixedPointResponse,
    summary="Update a fixed point",
)
async def update_fixed_point(
    plan_id: UUID,
    fixed_point_id: UUID,
    data: FixedPointUpdate,
    service: FixedPointService = Depends(get_fixed_point_service),
    user_id: UUID = Depends(get_current_user_id),
) -> FixedPointResponse:
    """Update an existing fixed point."""
    return await service.update_fixed_point(plan_id, fixed_point_id, user_id, data)


@router.delete(
    "/{fixed_point_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a fixed point",
)
async def delete_fixed_point(
    plan_id: UUID,
    fixed_point_id: UUID,
    service: FixedPointService = Depends(get_fixed_point_service),
    user_id: UUID = Depends(get_current_user_id),
) -> None:
    """Delete a fixed point."""
    await service.delete_fixed_point(plan_id, fixed_point_id, user_id)
