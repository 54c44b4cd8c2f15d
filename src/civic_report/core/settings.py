"""Application settings and configuration.

This module defines all configuration options for the Civic Report application.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_SYNC_DRIVERS = {
    "postgresql+asyncpg": "postgresql+psycopg",
    "sqlite+aiosqlite": "sqlite",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    This class defines all configuration options for the Civic Report application.
    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Civic Report", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Bearer tokens are minted by the identity provider; we only verify them.
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./civic_report.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Moderation policy
    auto_hide_flag_threshold: int = Field(default=5, ge=1, alias="AUTO_HIDE_FLAG_THRESHOLD")
    allow_flag_rereview: bool = Field(default=True, alias="ALLOW_FLAG_REREVIEW")

    # Issue lifecycle
    status_transition_policy: Literal["permissive", "forward_only"] = Field(
        default="permissive",
        alias="STATUS_TRANSITION_POLICY",
    )
    max_issue_images: int = Field(default=5, ge=0, alias="MAX_ISSUE_IMAGES")

    # Listing
    default_search_radius_km: float = Field(default=5.0, gt=0, alias="DEFAULT_SEARCH_RADIUS_KM")
    max_page_size: int = Field(default=100, ge=1, alias="MAX_PAGE_SIZE")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
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
        """Database URL with async drivers swapped for their sync counterparts.

        The engine and Alembic both run synchronously.
        """
        url = self.effective_database_url
        for async_prefix, sync_prefix in _SYNC_DRIVERS.items():
            if url.startswith(async_prefix):
                return sync_prefix + url[len(async_prefix):]
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def moderation_thresholds(self) -> dict[str, float]:
        """Return moderation thresholds as a convenience dictionary."""
        return {
            "auto_hide_flag_count": float(self.auto_hide_flag_threshold),
        }


settings = Settings()  # type: ignore[call-arg]
