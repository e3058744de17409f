"""Services for the Profile domain - Business logic layer."""

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cityflow.core.config import settings
from cityflow.core.exceptions import DatabaseError, ForbiddenError, NotFoundError, ValidationError
from cityflow.domains.profile.models import Profile
from cityflow.domains.profile.repository import ProfileRepository
from cityflow.domains.profile.schemas import ProfileResponse, ProfileUpdate

logger = logging.getLogger(__name__)

NON_NULLABLE_FIELDS = ("onboarding_completed",)


class ProfileService:
    """Service for user profiles and generation credits."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repository = ProfileRepository(session)

    async def get_profile_model(self, user_id: UUID) -> Profile:
        """Load the profile row, raising NotFoundError when absent."""
        try:
            profile = await self.repository.get_by_id(user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch profile for user {user_id}: {e}")
            raise DatabaseError("Failed to fetch profile", e) from e

        if profile is None:
            raise NotFoundError("Profile not found.")
        return profile

    async def get_profile(self, user_id: UUID) -> ProfileResponse:
        """Get the profile of the given user."""
        profile = await self.get_profile_model(user_id)
        return ProfileResponse.model_validate(profile)

    async def get_or_create_profile(self, user_id: UUID) -> ProfileResponse:
        """Get the profile, creating a default one on first access."""
        try:
            profile = await self.repository.get_by_id(user_id)
            if profile is None:
                profile = await self.repository.create(
                    {
                        "id": user_id,
                        "generations_remaining": settings.DEFAULT_GENERATIONS_LIMIT,
                        "onboarding_completed": False,
                    }
                )
                await self.session.commit()
                logger.info(f"Created default profile for user {user_id}")
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to load or create profile for user {user_id}: {e}")
            raise DatabaseError("Failed to fetch profile", e) from e

        return ProfileResponse.model_validate(profile)

    async def update_profile(self, user_id: UUID, data: ProfileUpdate) -> ProfileResponse:
        """Apply a partial update to the user's profile."""
        profile = await self.get_profile_model(user_id)
        changes = data.model_dump(exclude_unset=True)
        for field in NON_NULLABLE_FIELDS:
            if field in changes and changes[field] is None:
                raise ValidationError(f"Field '{field}' cannot be null.")

        try:
            profile = await self.repository.update_obj(profile, data)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to update profile for user {user_id}: {e}")
            raise DatabaseError("Failed to update profile", e) from e

        logger.info(f"Updated profile for user {user_id}")
        return ProfileResponse.model_validate(profile)

    async def decrement_generations(self, user_id: UUID) -> int:
        """Take one generation credit without committing.

        Returns:
            Credits left after the decrement

        Raises:
            ForbiddenError: If the user has no credits left
        """
        remaining = await self.repository.decrement_generations(user_id)
        if remaining is None:
            raise ForbiddenError("You have no plan generations remaining.")
        return remaining
