"""Application settings and configuration.

This module defines all configuration options for the Ripple Stage application.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Ripple Stage", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        alias="LOG_FORMAT",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./ripple.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")

    # JWT authentication settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 30,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Content rules
    max_comment_depth: int = Field(default=2, ge=1, le=2, alias="MAX_COMMENT_DEPTH")
    max_content_length: int = Field(default=5000, alias="MAX_CONTENT_LENGTH")
    feed_page_size: int = Field(default=10, alias="FEED_PAGE_SIZE")
    feed_max_page_size: int = Field(default=50, alias="FEED_MAX_PAGE_SIZE")

    # Account rules
    username_max_length: int = Field(default=24, alias="USERNAME_MAX_LENGTH")
    password_min_length: int = Field(default=8, alias="PASSWORD_MIN_LENGTH")

    # Object storage for post media and avatars
    media_bucket: str | None = Field(default=None, alias="MEDIA_BUCKET")
    media_region: str = Field(default="us-east-1", alias="MEDIA_REGION")
    media_endpoint_url: str | None = Field(default=None, alias="MEDIA_ENDPOINT_URL")
    media_upload_expire_seconds: int = Field(default=3600, alias="MEDIA_UPLOAD_EXPIRE_SECONDS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def media_enabled(self) -> bool:
        """Return True when an object storage bucket is configured."""
        return bool(self.media_bucket)


settings = Settings()  # type: ignore[call-arg]
