# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the course
hierarchy sync service. Settings are loaded from environment variables with
sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from course_sync.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.content_service.base_url)
    'http://localhost:3000/api'
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational store configuration.

    The store holds the raw import rows and one course record per
    (course title, language) pair.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "course_sync"
    password: SecretStr = SecretStr("course_sync_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "migrated_content"
    pool_size: int = 5
    max_overflow: int = 10

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"

    @property
    def sync_url(self) -> str:
        """Build the sync database URL for migrations."""
        pwd = self.password.get_secret_value()
        return f"postgresql://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class ContentServiceSettings(BaseSettings):
    """Remote content service configuration.

    The content service owns the published course hierarchies. Every call
    carries the bearer token, the tenant id and the channel id.

    Attributes:
        base_url: Base URL of the content service middleware.
        access_token: Bearer token used for every request.
        tenant_id: Tenant identifier header value.
        channel_id: Channel identifier header value.
        created_by: User id recorded as creator, updater and publisher.
        created_for: Channel the courses are created for.
        target_framework: Framework code used for taxonomy resolution.
        asset_framework: Framework code set on uploaded icon assets.
        course_framework: Framework code set on created courses.
        search_channel: Channel filter used when searching for a course.
        timeout: Request timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="CONTENT_SERVICE_",
        extra="ignore",
    )

    base_url: str = "http://localhost:3000/api"
    access_token: SecretStr = SecretStr("")
    tenant_id: str = ""
    channel_id: str = ""
    created_by: str = ""
    created_for: str = ""
    target_framework: str = ""
    asset_framework: str = "scp-framework"
    course_framework: str = "level1-framework"
    search_channel: str = "pos-channel"
    timeout: float = 60.0

    @property
    def auth_headers(self) -> dict[str, str]:
        """Build authentication headers for API requests."""
        return {
            "Authorization": f"Bearer {self.access_token.get_secret_value()}",
            "tenantId": self.tenant_id,
            "X-Channel-Id": self.channel_id or self.created_for,
            "Content-Type": "application/json",
        }


class SyncSettings(BaseSettings):
    """Synchronization run configuration.

    Retry budgets are per remote call. Attempts count the first call, so an
    attempt budget of 1 disables retrying.

    Attributes:
        batch_limit: Maximum records selected per sync run.
        max_levels: Number of set level columns in an import row.
        lookup_existing_courses: Search the service for a course with the
            same title before creating a new one.
        review_and_publish: Send review and publish calls after a sync.
        default_author: Author used when the metadata has none.
        default_copyright: Copyright holder used when the metadata has none.
        default_copyright_year: Copyright year used when the metadata has none.
    """

    model_config = SettingsConfigDict(
        env_prefix="SYNC_",
        extra="ignore",
    )

    batch_limit: int = 1
    max_levels: int = 10
    lookup_existing_courses: bool = False
    review_and_publish: bool = True
    default_author: str = "SCP Channel"
    default_copyright: str = "SCP Channel"
    default_copyright_year: int = 2025

    create_attempts: int = 10
    create_delay_seconds: float = 1.0
    hierarchy_attempts: int = 10
    hierarchy_delay_seconds: float = 1.0
    fetch_attempts: int = 3
    fetch_delay_seconds: float = 2.0
    associate_attempts: int = 5
    associate_delay_seconds: float = 5.0
    publish_attempts: int = 3
    publish_delay_seconds: float = 2.0
    retire_attempts: int = 3
    retire_delay_seconds: float = 1.0


class RedisSettings(BaseSettings):
    """Redis configuration for the background task broker.

    Attributes:
        host: Redis server host.
        port: Redis server port.
        password: Redis password.
        database: Redis database number.
    """

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        extra="ignore",
    )

    host: str = "localhost"
    port: int = 6379
    password: SecretStr = SecretStr("")
    database: int = 0

    @property
    def url(self) -> str:
        """Build the Redis connection URL."""
        pwd = self.password.get_secret_value()
        if pwd:
            return f"redis://:{pwd}@{self.host}:{self.port}/{self.database}"
        return f"redis://{self.host}:{self.port}/{self.database}"


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        database: Relational store settings.
        content_service: Remote content service settings.
        sync: Synchronization run settings.
        redis: Task broker settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    content_service: ContentServiceSettings = Field(default_factory=ContentServiceSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
