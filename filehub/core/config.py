"""Application configuration with validation."""

from enum import Enum
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import List


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class ConfigurationError(Exception):
    """Raised when application configuration is invalid for the environment."""
    pass


_DEFAULT_JWT_SECRET = "dev-insecure-key-change-me"

_DEFAULT_UPLOAD_TYPES = (
    "image/jpeg,image/jpg,image/png,image/gif,image/svg+xml,"
    "video/mp4,video/mov,video/avi,video/webm,"
    "application/pdf,text/plain"
)


class Settings(BaseSettings):
    """
    Application settings with validation.

    Read from environment variables (case-insensitive) and ``.env``.
    """

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment (development/production)"
    )

    # CORS Configuration
    cors_allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./filehub.db",
        description="Database connection URL"
    )
    # Connection pool tuning (PostgreSQL only; ignored for SQLite).
    db_pool_size: int = Field(default=5, description="Number of persistent database connections")
    db_max_overflow: int = Field(default=10, description="Extra connections allowed during traffic bursts")
    db_pool_timeout: int = Field(default=30, description="Seconds to wait for a pooled connection")
    db_pool_recycle: int = Field(default=1800, description="Seconds before a connection is recycled")

    # Authentication
    jwt_secret_key: str = Field(
        default=_DEFAULT_JWT_SECRET,
        description="JWT signing secret (override in production)"
    )
    jwt_algorithm: str = Field(default="HS256")
    jwt_expires_hours: int = Field(default=24, description="Lifetime of issued session tokens")

    # Rate Limiting
    rate_limit_per_minute: int = Field(
        default=120,
        description="Maximum requests per client per minute (0 = unlimited)"
    )

    # Blob store (S3 / MinIO compatible)
    # An empty bucket means uploads are disabled and the upload endpoint returns 503.
    blob_bucket: str = Field(default="", description="Bucket holding uploaded file bodies")
    blob_endpoint_url: str = Field(default="", description="Custom S3 endpoint (MinIO); empty = AWS")
    blob_region: str = Field(default="us-east-1")
    blob_access_key: str = Field(default="", description="Access key id (empty = boto3 default chain)")
    blob_secret_key: str = Field(default="", description="Secret access key")
    blob_public_base_url: str = Field(
        default="",
        description="Public URL prefix for stored objects; derived from endpoint and bucket when empty"
    )
    blob_key_prefix: str = Field(default="filehub-uploads", description="Top-level key prefix")
    blob_delete_workers: int = Field(
        default=4,
        description="Worker threads used for blob deletion during bulk deletes"
    )

    # Upload limits
    max_upload_size: int = Field(default=500 * 1024 * 1024, description="Max bytes for video uploads")
    max_image_size: int = Field(default=50 * 1024 * 1024, description="Max bytes for images and other files")
    allowed_upload_types: str = Field(
        default=_DEFAULT_UPLOAD_TYPES,
        description="Comma-separated MIME types accepted by the upload endpoint"
    )

    # Search
    search_history_enabled: bool = Field(default=True, description="Record queries in search history")

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    def get_cors_origins(self) -> List[str]:
        """
        Get CORS origins as a list.

        Parses comma-separated string and validates no wildcards.
        """
        origins = [origin.strip() for origin in self.cors_allowed_origins.split(',') if origin.strip()]

        # SECURITY: Prevent wildcard CORS
        if "*" in origins:
            raise ValueError(
                "Wildcard CORS (*) not allowed. "
                "Specify explicit origins in CORS_ALLOWED_ORIGINS"
            )

        return origins

    def get_allowed_upload_types(self) -> List[str]:
        return [t.strip() for t in self.allowed_upload_types.split(',') if t.strip()]

    @property
    def blob_store_configured(self) -> bool:
        return bool(self.blob_bucket)

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    @field_validator('blob_delete_workers')
    @classmethod
    def validate_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError("blob_delete_workers must be at least 1")
        return v

    def validate_production_config(self) -> None:
        """Validate configuration for production environment.

        In production, fails startup if security-critical settings use insecure defaults.
        In development, returns silently; main.py logs warnings instead.

        Raises:
            ConfigurationError: If production config is insecure.
        """
        errors: list[str] = []

        if self.jwt_secret_key == _DEFAULT_JWT_SECRET:
            errors.append(
                "JWT_SECRET_KEY is using the default insecure value. "
                "Generate a secure key: openssl rand -hex 32"
            )

        origins = self.get_cors_origins()
        localhost_origins = [o for o in origins if "localhost" in o or "127.0.0.1" in o]
        if localhost_origins:
            errors.append(
                f"CORS allows localhost origins: {localhost_origins}. "
                "Remove localhost origins for production."
            )

        if errors and self.environment == Environment.PRODUCTION:
            raise ConfigurationError(
                "Production configuration is insecure:\n  - " + "\n  - ".join(errors)
            )

    @property
    def uses_default_jwt_secret(self) -> bool:
        return self.jwt_secret_key == _DEFAULT_JWT_SECRET

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()
