"""FastAPI dependencies for request identity and database sessions."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from cityflow.core.auth import TokenPayload, token_service
from cityflow.core.exceptions import UnauthorizedError

# Bearer scheme; missing headers are reported by get_token_payload
bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session_dep() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency with lazy import."""
    from cityflow.infra.database import get_db

    async for session in get_db():
        yield session


async def get_token_payload(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> TokenPayload:
    """Extract and validate the JWT payload from the Authorization header.

    Raises:
        UnauthorizedError: If the header is missing or the token is invalid
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Missing bearer token")

    payload = token_service.decode_access_token(credentials.credentials)
    if payload is None:
        raise UnauthorizedError("Invalid or expired token")
    return payload


async def get_current_user_id(
    token_payload: Annotated[TokenPayload, Depends(get_token_payload)],
) -> UUID:
    """Get the current authenticated user ID from the JWT subject."""
    try:
        return UUID(token_payload.sub)
    except ValueError:
        raise UnauthorizedError("Invalid user ID in token")
