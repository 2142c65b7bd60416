"""
Application Configuration
Pydantic Settings for the claims portal
Source: https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""

import json
from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Settings that accept either a JSON array or a comma-separated string
LIST_SETTINGS = ("CORS_ORIGINS", "CORS_METHODS", "CORS_HEADERS", "UPLOAD_ALLOWED_MIME_TYPES")

DEFAULT_UPLOAD_MIME_TYPES = [
    "application/pdf",
    "image/jpeg",
    "image/png",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
]


def split_list_setting(raw: Any) -> Any:
    """
    Turn an env string into a list.

    Example:
        >>> split_list_setting("a, b")
        ['a', 'b']
        >>> split_list_setting('["a", "b"]')
        ['a', 'b']
    """
    if not isinstance(raw, str):
        return raw

    text = raw.strip()
    if text.startswith("["):
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError:
            decoded = None
        if isinstance(decoded, list):
            return decoded
        text = text.strip("[]")

    return [part.strip() for part in text.split(",") if part.strip()]


class Settings(BaseSettings):
    """
    Portal settings.

    Read from the process environment, then from `.env`. Secrets have no
    defaults and must be provided.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ============================================================================
    # Application
    # ============================================================================
    APP_NAME: str = Field(default="Claims Portal API")
    ENVIRONMENT: Literal["development", "staging", "production", "testing"] = "development"
    DEBUG: bool = Field(default=False, description="Echo SQL; never in production")
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = Field(default=None, description="Rotating log file path")

    # ============================================================================
    # Tokens
    # ============================================================================
    SECRET_KEY: str = Field(..., min_length=32)
    JWT_SECRET_KEY: str = Field(..., min_length=32)
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=30, gt=0)
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(default=7, gt=0)

    # ============================================================================
    # PostgreSQL
    # ============================================================================
    DATABASE_URL: str | None = Field(
        default=None, description="Overrides the POSTGRES_* settings when set"
    )
    POSTGRES_HOST: str = "db"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "claims_portal"
    POSTGRES_USER: str = "claims_portal"
    POSTGRES_PASSWORD: str = Field(...)

    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = Field(default=30, description="Seconds to wait for a connection")

    # ============================================================================
    # MinIO
    # ============================================================================
    MINIO_ENDPOINT: str = "minio:9000"
    MINIO_ACCESS_KEY: str = "minioadmin"
    MINIO_SECRET_KEY: str = Field(...)
    MINIO_SECURE: bool = False
    MINIO_REGION: str = "us-east-1"
    MINIO_BUCKET_DOCUMENTS: str = "documents"
    MINIO_PUBLIC_URL: str | None = Field(
        default=None, description="Base URL recorded on documents instead of the endpoint"
    )

    PRESIGNED_UPLOAD_EXPIRE_SECONDS: int = Field(default=300, gt=0)

    # ============================================================================
    # HTTP
    # ============================================================================
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]
    CORS_CREDENTIALS: bool = True
    CORS_METHODS: list[str] = ["*"]
    CORS_HEADERS: list[str] = ["*"]

    UPLOAD_MAX_SIZE_MB: int = Field(default=10, gt=0, description="Per file")
    UPLOAD_ALLOWED_MIME_TYPES: list[str] = Field(default_factory=lambda: list(DEFAULT_UPLOAD_MIME_TYPES))

    DEFAULT_PAGE_SIZE: int = Field(default=10, gt=0)
    MAX_PAGE_SIZE: int = Field(default=100, gt=0)

    @field_validator(*LIST_SETTINGS, mode="before")
    @classmethod
    def parse_list_settings(cls, v: Any) -> Any:
        return split_list_setting(v)

    # ============================================================================
    # Derived values
    # ============================================================================
    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def storage_base_url(self) -> str:
        """Prefix of the URL stored on each Document row"""
        if self.MINIO_PUBLIC_URL:
            return self.MINIO_PUBLIC_URL.rstrip("/")
        scheme = "https" if self.MINIO_SECURE else "http"
        return f"{scheme}://{self.MINIO_ENDPOINT}/{self.MINIO_BUCKET_DOCUMENTS}"

    @property
    def upload_max_size_bytes(self) -> int:
        return self.UPLOAD_MAX_SIZE_MB * 1024 * 1024

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_testing(self) -> bool:
        return self.ENVIRONMENT == "testing"


@lru_cache
def get_settings() -> Settings:
    """
    Settings are parsed once per process.
    Source: https://fastapi.tiangolo.com/advanced/settings/
    """
    return Settings()


settings = get_settings()
