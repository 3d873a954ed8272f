"""Application settings and configuration.

This module defines all configuration options for the Quorum application.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Quorum", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Caller identity tokens are issued elsewhere; we only verify them.
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")

    # Database configuration
    database_url: str = Field(default="sqlite:///./quorum.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Authorization: curators of these entities may edit associated content
    permission_entity_refs: list[str] = Field(
        default_factory=list,
        alias="PERMISSION_ENTITY_REFS",
    )

    # Notification delivery
    notifications_enabled: bool = Field(default=False, alias="NOTIFICATIONS_ENABLED")
    notifications_url: str | None = Field(default=None, alias="NOTIFICATIONS_URL")
    notifications_timeout_seconds: float = Field(
        default=5.0,
        alias="NOTIFICATIONS_TIMEOUT_SECONDS",
    )
    notification_description_length: int = Field(
        default=150,
        alias="NOTIFICATION_DESCRIPTION_LENGTH",
    )
    notification_link_prefix: str = Field(default="/qa", alias="NOTIFICATION_LINK_PREFIX")

    # Statistics rollup
    stats_enabled: bool = Field(default=False, alias="STATS_ENABLED")
    stats_interval_seconds: float = Field(default=3600.0, alias="STATS_INTERVAL_SECONDS")
    stats_retention_days: int = Field(default=365, alias="STATS_RETENTION_DAYS")

    # Trend score decay exponent applied to post age in days
    trend_gravity: float = Field(default=1.5, alias="TREND_GRAVITY")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

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
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
