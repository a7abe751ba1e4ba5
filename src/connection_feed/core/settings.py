"""Application settings and configuration.

This module defines all configuration options for the Connection feed service.
Settings are loaded from environment variables with sensible defaults.
"""

from datetime import UTC, datetime

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Connection Feed", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(default="dev-secret-change-me", alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./connection.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Feed assembly
    feed_use_primary: bool = Field(default=True, alias="FEED_USE_PRIMARY")
    feed_default_limit: int = Field(default=25, ge=1, alias="FEED_DEFAULT_LIMIT")
    feed_max_limit: int = Field(default=50, ge=1, alias="FEED_MAX_LIMIT")
    # Unconfirmed product constant; see DESIGN.md.
    feed_max_fallback_window: int = Field(default=500, ge=1, alias="FEED_MAX_FALLBACK_WINDOW")
    # Seconds between snapshot reloads; 0 loads once at startup only.
    feed_snapshot_refresh_seconds: float = Field(
        default=60.0,
        ge=0,
        alias="FEED_SNAPSHOT_REFRESH_SECONDS",
    )

    # Hot score ranking for advice posts
    hot_score_epoch: datetime = Field(
        default=datetime(2024, 1, 1, tzinfo=UTC),
        alias="HOT_SCORE_EPOCH",
    )
    hot_score_decay_seconds: float = Field(default=45_000.0, gt=0, alias="HOT_SCORE_DECAY_SECONDS")
    # Unconfirmed product constant; see DESIGN.md.
    hot_score_confidence_threshold: int = Field(
        default=5,
        ge=1,
        alias="HOT_SCORE_CONFIDENCE_THRESHOLD",
    )

    # Prayer recommendations
    prayer_recommendation_limit: int = Field(
        default=10,
        ge=1,
        alias="PRAYER_RECOMMENDATION_LIMIT",
    )
    prayer_recent_days: int = Field(default=30, ge=1, alias="PRAYER_RECENT_DAYS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "OPTIONS"],
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
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def feed_limits(self) -> dict[str, int]:
        """Return the feed pagination constants as a convenience dictionary."""
        return {
            "default": self.feed_default_limit,
            "max": self.feed_max_limit,
            "fallback_window": self.feed_max_fallback_window,
        }


settings = Settings()
