"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from functools import lru_cache

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database connection settings.

    Environment variables:
        GROUPS_DB_HOST: Database host (default: localhost)
        GROUPS_DB_PORT: Database port (default: 5432)
        GROUPS_DB_DATABASE: Database name (default: groups)
        GROUPS_DB_USERNAME: Database user (default: groups)
        GROUPS_DB_PASSWORD: Database password (required in production)
        GROUPS_DB_POOL_MIN_CONNECTIONS: Minimum connections in pool (default: 2)
        GROUPS_DB_POOL_MAX_CONNECTIONS: Maximum connections in pool (default: 10)
    """

    model_config = SettingsConfigDict(
        env_prefix="GROUPS_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(default="groups", description="Database name")
    username: str = Field(default="groups", description="Database username")
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password",
    )
    pool_min_connections: int = Field(
        default=2,
        description="Minimum connections in pool",
        ge=1,
        le=100,
    )
    pool_max_connections: int = Field(
        default=10,
        description="Maximum connections in pool",
        ge=1,
        le=100,
    )

    @model_validator(mode="after")
    def validate_pool_settings(self) -> "DatabaseSettings":
        """Validate pool max >= min."""
        if self.pool_max_connections < self.pool_min_connections:
            raise ValueError(
                f"pool_max_connections ({self.pool_max_connections}) must be >= "
                f"pool_min_connections ({self.pool_min_connections})"
            )
        return self

    @property
    def connection_string(self) -> str:
        """Generate a connection string (without password for logging)."""
        return f"postgresql://{self.username}@{self.host}:{self.port}/{self.database}"


class AuthmanSettings(BaseSettings):
    """Directory (Authman) client settings.

    Environment variables:
        GROUPS_AUTHMAN_BASE_URL: Base URL of the directory web services
        GROUPS_AUTHMAN_USERNAME: Basic auth user
        GROUPS_AUTHMAN_PASSWORD: Basic auth password
        GROUPS_AUTHMAN_SUBJECT_SOURCE_ID: Subject source kept from member
            lists (default: uofinetid)
        GROUPS_AUTHMAN_REQUEST_TIMEOUT_SECONDS: HTTP timeout (default: 30)
        GROUPS_AUTHMAN_ADMIN_UINS: Comma separated external ids forced as
            admins on every mirrored group
    """

    model_config = SettingsConfigDict(
        env_prefix="GROUPS_AUTHMAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = Field(
        default="http://localhost:8090/grouper-ws/servicesRest/json/v2_5_000",
        description="Directory web services base URL",
    )
    username: str = Field(default="", description="Basic auth user")
    password: SecretStr = Field(default=SecretStr(""), description="Basic auth password")
    subject_source_id: str = Field(
        default="uofinetid",
        description="Subject source of member ids to keep",
    )
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    admin_uins: str = Field(
        default="",
        description="Comma separated tenant-wide admin external ids",
    )

    @property
    def admin_external_ids(self) -> list[str]:
        """Tenant-wide admin external ids, blanks removed."""
        return [uin.strip() for uin in self.admin_uins.split(",") if uin.strip()]


class CoreSettings(BaseSettings):
    """Core identity service settings.

    Environment variables:
        GROUPS_CORE_BASE_URL: Base URL of the Core building block
        GROUPS_CORE_API_KEY: Internal API key
        GROUPS_CORE_REQUEST_TIMEOUT_SECONDS: HTTP timeout (default: 30)
        GROUPS_CORE_PAGE_SIZE: Accounts per lookup page (default: 100)
    """

    model_config = SettingsConfigDict(
        env_prefix="GROUPS_CORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = Field(default="http://localhost:8081/core", description="Core base URL")
    api_key: SecretStr = Field(default=SecretStr(""), description="Internal API key")
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    page_size: int = Field(default=100, ge=1, le=1000)


class NotificationsSettings(BaseSettings):
    """Notifications building block settings.

    Environment variables:
        GROUPS_NOTIFICATIONS_BASE_URL: Base URL of the Notifications service
        GROUPS_NOTIFICATIONS_API_KEY: Internal API key
        GROUPS_NOTIFICATIONS_APP_ID: Application id stamped on messages
            (default: all)
    """

    model_config = SettingsConfigDict(
        env_prefix="GROUPS_NOTIFICATIONS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = Field(
        default="http://localhost:8082/notifications",
        description="Notifications base URL",
    )
    api_key: SecretStr = Field(default=SecretStr(""), description="Internal API key")
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    app_id: str = Field(default="all", description="Application id of messages")


class SyncSettings(BaseSettings):
    """Directory sync engine settings.

    Environment variables:
        GROUPS_SYNC_DEFAULT_TIMEOUT_MINUTES: Guard timeout when a tenant
            configures none (default: 60)
        GROUPS_SYNC_MEMBERSHIP_BATCH_SIZE: External ids per upsert batch
            (default: 1000)
        GROUPS_SYNC_SCHEDULER_ENABLED: Run cron-scheduled passes (default: false)
        GROUPS_SYNC_OUTBOX_POLL_INTERVAL_SECONDS: Outbox poll interval (default: 30)
        GROUPS_SYNC_OUTBOX_MAX_RETRIES: Attempts before an effect is
            dead-lettered (default: 5)
    """

    model_config = SettingsConfigDict(
        env_prefix="GROUPS_SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_timeout_minutes: int = Field(default=60, ge=1)
    membership_batch_size: int = Field(default=1000, ge=1, le=10000)
    scheduler_enabled: bool = Field(default=False)
    outbox_poll_interval_seconds: int = Field(default=30, ge=1)
    outbox_batch_size: int = Field(default=100, ge=1)
    outbox_max_retries: int = Field(default=5, ge=1)


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="Groups API", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Minimum log level")

    @property
    def database(self) -> DatabaseSettings:
        """Get database settings."""
        return get_database_settings()

    @property
    def sync(self) -> "SyncSettings":
        """Get sync engine settings."""
        return get_sync_settings()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """Get cached database settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return DatabaseSettings()


@lru_cache
def get_authman_settings() -> AuthmanSettings:
    """Get cached directory client settings."""
    return AuthmanSettings()


@lru_cache
def get_core_settings() -> CoreSettings:
    """Get cached Core identity service settings."""
    return CoreSettings()


@lru_cache
def get_notifications_settings() -> NotificationsSettings:
    """Get cached Notifications settings."""
    return NotificationsSettings()


@lru_cache
def get_sync_settings() -> SyncSettings:
    """Get cached sync engine settings."""
    return SyncSettings()
