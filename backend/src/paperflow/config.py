"""Application configuration via environment variables.

Provides type-safe settings loading using pydantic-settings.
Environment variables can be loaded from a .env file.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings have sensible defaults for development.
    Production deployments MUST set security-critical values.

    Environment Variables:
        DATABASE_URL: SQLAlchemy connection string (PostgreSQL or SQLite)
        JWT_SECRET: Bearer token signing key (MUST be set in production)
        JWT_EXPIRY_MINUTES: Access token lifetime
        STORAGE_BACKEND: "local" (filesystem) or "s3" (S3/MinIO)
        UPLOAD_DIR: Root directory for the local attachment store
        UPLOAD_URL_PREFIX: URL path under which local attachments are served
        MAX_UPLOAD_SIZE_BYTES: Upper bound for a single PDF upload
        S3_*: Object storage settings (only used when STORAGE_BACKEND=s3)
        LOG_LEVEL: Logging level (default INFO)
        LOG_JSON: Emit JSON log lines (default true)
        CORS_ORIGINS: Comma separated list of allowed origins
    """

    # Database
    DATABASE_URL: str = "sqlite:///./paperflow.db"

    # Security
    JWT_SECRET: str = "dev-jwt-secret-CHANGE-IN-PRODUCTION"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_MINUTES: int = 60

    # Attachment storage
    STORAGE_BACKEND: str = "local"
    UPLOAD_DIR: str = "uploads/papers"
    UPLOAD_URL_PREFIX: str = "/uploads/papers"
    MAX_UPLOAD_SIZE_BYTES: int = 20 * 1024 * 1024  # 20 MB

    # Object Storage (S3/MinIO)
    S3_ENDPOINT_URL: Optional[str] = None
    S3_ACCESS_KEY_ID: str = "minioadmin"
    S3_SECRET_ACCESS_KEY: str = "minioadmin"
    S3_BUCKET_NAME: str = "paperflow-attachments"
    S3_REGION: str = "us-east-1"
    S3_PRESIGNED_URL_TTL: int = 3600

    # Application
    ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache for singleton behavior.
    Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
