"""Profile domain services."""

from cityflow.domains.profile.services.profile_service import ProfileService

__all__ = ["ProfileService"]
