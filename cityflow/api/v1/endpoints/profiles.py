"""Profile endpoints for the current user."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cityflow.core.deps import get_current_user_id, get_db_session_dep
from cityflow.domains.profile.schemas import ProfileResponse, ProfileUpdate
from cityflow.domains.profile.services import ProfileService

router = APIRouter()


def get_profile_service(
    session: AsyncSession = Depends(get_db_session_dep),
) -> ProfileService:
    """Dependency for getting ProfileService."""
    return ProfileService(session)


@router.get(
    "/me",
    response_model=ProfileResponse,
    summary="Get your profile",
)
async def get_my_profile(
    service: ProfileService = Depends(get_profile_service),
    user_id: UUID = Depends(get_current_user_id),
) -> ProfileResponse:
    """Get the profile, creating a default one on first access."""
    return await service.get_or_create_profile(user_id)


@router.patch(
    "/me",
    response_model=ProfileResponse,
    summary="Update your travel preferences",
)
async def update_my_profile(
    data: ProfileUpdate,
    service: ProfileService = Depends(get_profile_service),
    user_id: UUID = Depends(get_current_user_id),
) -> ProfileResponse:
    """Partially update preferences, travel pace or onboarding state."""
    return await service.update_profile(user_id, data)
