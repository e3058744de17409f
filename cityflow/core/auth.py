"""Bearer token verification.

Users sign in with the external identity provider (Supabase Auth); this
service only verifies the JWTs it issues and extracts the user id. Token
creation exists for tooling and tests.
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import JWTError, jwt
from pydantic import BaseModel

from cityflow.core.config import settings

DEFAULT_TOKEN_TTL = timedelta(hours=1)


class TokenPayload(BaseModel):
    """Schema for JWT token payload."""

    sub: str  # Subject (user_id)
    exp: datetime
    aud: str | None = None
    role: str | None = None
    email: str | None = None


class TokenService:
    """Service for JWT token operations.

    Example:
        token_service = TokenService()
        token = token_service.create_access_token(user_id)
        payload = token_service.decode_access_token(token)
    """

    def __init__(
        self,
        secret_key: str = settings.SECRET_KEY,
        algorithm: str = settings.JWT_ALGORITHM,
        audience: str | None = settings.JWT_AUDIENCE,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._audience = audience

    def create_access_token(
        self,
        user_id: UUID | str,
        expires_delta: timedelta | None = None,
        email: str | None = None,
    ) -> str:
        """Create a signed access token for the given user.

        Args:
            user_id: The user's unique identifier
            expires_delta: Optional custom expiration time
            email: Optional email claim

        Returns:
            Encoded JWT access token string
        """
        if expires_delta is None:
            expires_delta = DEFAULT_TOKEN_TTL

        now = datetime.now(timezone.utc)
        payload: dict = {
            "sub": str(user_id),
            "exp": now + expires_delta,
            "iat": now,
            "role": "authenticated",
        }
        if self._audience:
            payload["aud"] = self._audience
        if email:
            payload["email"] = email

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def decode_access_token(self, token: str) -> TokenPayload | None:
        """Decode and validate an access token.

        Args:
            token: The JWT token string

        Returns:
            TokenPayload if valid, None otherwise
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                audience=self._audience,
                options={"verify_aud": self._audience is not None},
            )
            aud = payload.get("aud")
            return TokenPayload(
                sub=payload["sub"],
                exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
                aud=aud if isinstance(aud, str) or aud is None else ",".join(aud),
                role=payload.get("role"),
                email=payload.get("email"),
            )
        except (JWTError, KeyError):
            return None


# Global token service instance
token_service = TokenService()
