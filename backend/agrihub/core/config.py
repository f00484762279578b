"""
Application configuration using Pydantic Settings.
"""

from typing import List
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="allow"
    )

    # Environment
    ENVIRONMENT: str = "development"
    SECRET_KEY: str
    API_V1_PREFIX: str = "/api/v1"

    # Database
    DATABASE_URL: str
    DATABASE_POOL_SIZE: int = 20
    DATABASE_POOL_TIMEOUT: int = 5  # seconds

    # Redis (optional)
    REDIS_URL: str = ""

    # Rate limiting
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    RATE_LIMIT_DEFAULT: str = "100/minute"
    LOGIN_RATE_LIMIT: str = "10/minute"

    # Authentication
    SESSION_TTL_DAYS: int = 7
    BCRYPT_ROUNDS: int = 10
    AUTH_COOKIE_NAME: str = "auth_token"
    AUTH_COOKIE_SECURE: bool | None = None
    SESSION_CLEANUP_INTERVAL_SECONDS: int = 3600

    # Bulk import
    IMPORT_ERROR_DISPLAY_LIMIT: int = 100

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    # Observability
    LOG_LEVEL: str = "INFO"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):
        if isinstance(v, str):
            return [i.strip() for i in v.split(",")]
        return v

    @field_validator("DATABASE_URL")
    @classmethod
    def use_async_driver(cls, v: str) -> str:
        # Convert postgresql:// to postgresql+asyncpg:// only if not already async
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    @property
    def cookie_secure(self) -> bool:
        if self.AUTH_COOKIE_SECURE is not None:
            return self.AUTH_COOKIE_SECURE
        return self.ENVIRONMENT == "production"


settings = Settings()
