"""Application configuration using Pydantic Settings.

Loads configuration from environment variables and .env file.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, PostgresDsn, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ============ Application Settings ============
    APP_NAME: str = "CityFlow"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"
    API_PREFIX: str = "/api"

    # ============ Server Settings ============
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 1

    # ============ Security Settings ============
    SECRET_KEY: str = Field(
        default="your-super-secret-key-change-in-production",
        description="Shared secret used to verify bearer JWTs (Supabase JWT secret)",
    )
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str | None = Field(
        default=None,
        description="Expected 'aud' claim, e.g. 'authenticated'. Not checked when unset.",
    )

    # ============ CORS Settings ============
    CORS_ORIGINS: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:4321"],
        description="Allowed CORS origins",
    )

    # ============ Database Settings ============
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "cityflow"
    POSTGRES_PASSWORD: str = "cityflow_password"
    POSTGRES_DB: str = "cityflow_db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    @computed_field  # type: ignore[misc]
    @property
    def DATABASE_URL(self) -> PostgresDsn:
        """Construct PostgreSQL async connection URL."""
        return PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        )

    @property
    def database_url(self) -> str:
        """Get database URL as string for Alembic."""
        return str(self.DATABASE_URL)

    # ============ Redis / Celery Settings ============
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: str | None = None
    CELERY_BROKER_DB: int = 1
    CELERY_RESULT_DB: int = 2

    @computed_field  # type: ignore[misc]
    @property
    def CELERY_BROKER_URL(self) -> str:
        """Construct Celery broker URL (Redis)."""
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.CELERY_BROKER_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.CELERY_BROKER_DB}"

    @computed_field  # type: ignore[misc]
    @property
    def CELERY_RESULT_BACKEND(self) -> str:
        """Construct Celery result backend URL (Redis)."""
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.CELERY_RESULT_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.CELERY_RESULT_DB}"

    # ============ OpenRouter Settings (AI plan generation) ============
    OPENROUTER_API_KEY: str = Field(
        default="",
        description="OpenRouter API key",
    )
    OPENROUTER_BASE_URL: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenRouter OpenAI-compatible endpoint",
    )
    OPENROUTER_MODEL: str = Field(
        default="openai/gpt-4o-mini",
        description="Model used for itinerary generation",
    )
    OPENROUTER_MAX_TOKENS: int = 4096
    OPENROUTER_TEMPERATURE: float = 0.7
    OPENROUTER_TIMEOUT: float = 60.0

    # ============ Plan Generation Settings ============
    GENERATION_LANGUAGE: str = "Polish"
    DEFAULT_GENERATIONS_LIMIT: int = 5

    # ============ PDF Export Settings ============
    PDF_FONT_PATH: str | None = Field(
        default=None,
        description="TTF font for PDF export; defaults to the bundled Lato face",
    )
    PDF_FONT_BOLD_PATH: str | None = Field(
        default=None,
        description="Bold TTF font; without one bold text is stroked from the regular face",
    )

    # ============ Archiving Settings ============
    ARCHIVE_SCHEDULE_HOURS: int = 1

    # ============ Logging Settings ============
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
