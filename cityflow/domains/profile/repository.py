"""Repository for the Profile domain."""

from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from cityflow.domains.profile.models import Profile
from cityflow.domains.profile.schemas import ProfileUpdate
from cityflow.domains.shared.repository import GenericRepository


class ProfileRepository(GenericRepository[Profile, ProfileUpdate, ProfileUpdate]):
    """Repository for Profile records."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Profile, session)

    async def decrement_generations(self, user_id: UUID) -> int | None:
        """Atomically take one generation credit.

        The conditional UPDATE never lets the counter go below zero.

        Returns:
            The remaining credits, or None when no credit could be taken
        """
        stmt = (
            update(Profile)
            .where(Profile.id == user_id, Profile.generations_remaining > 0)
            .values(generations_remaining=Profile.generations_remaining - 1)
            .returning(Profile.generations_remaining)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()
