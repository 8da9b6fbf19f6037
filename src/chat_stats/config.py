"""Configuration management for chat_stats.

This module provides typed configuration classes using pydantic-settings.
Configuration is loaded from environment variables with optional .env file support.
"""

from urllib.parse import urlsplit

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from chat_stats.logging import get_logger

__all__ = [
    "MongoSettings",
    "RedisSettings",
    "LoggingSettings",
    "ChatStatsConfig",
    "extract_db_name_from_uri",
]

logger = get_logger(__name__)


def extract_db_name_from_uri(uri: str) -> str | None:
    """Extract the database name from a MongoDB connection string.

    Handles ``mongodb://`` and ``mongodb+srv://`` URIs, with or without
    credentials, multiple hosts or query options.

    Args:
        uri: MongoDB connection string

    Returns:
        Database name, or None if the URI carries none
    """
    path = urlsplit(uri).path
    name = path.lstrip("/").split("?")[0]
    return name or None


class MongoSettings(BaseSettings):
    """MongoDB connection settings (read-only access)."""

    model_config = SettingsConfigDict(
        env_prefix="MONGODB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    uri: SecretStr = SecretStr("mongodb://localhost:27017/LibreChat")
    db_name: str | None = None
    fallback_db_name: str = "LibreChat"

    # Pool settings tuned for short-lived dashboard requests
    max_pool_size: int = 10
    min_pool_size: int = 2
    max_idle_time_ms: int = 120_000
    connect_timeout_ms: int = 10_000
    socket_timeout_ms: int = 45_000
    server_selection_timeout_ms: int = 10_000
    retry_writes: bool = False  # Cosmos DB compatibility

    def resolve_database_name(self) -> str:
        """Resolve the target database name.

        Precedence: explicit ``db_name`` override, then the name embedded in
        the connection string, then ``fallback_db_name``.
        """
        from_uri = extract_db_name_from_uri(self.uri.get_secret_value())

        if self.db_name:
            if from_uri and from_uri != self.db_name:
                logger.warning(
                    "mongo_db_name_override_differs",
                    override=self.db_name,
                    uri_database=from_uri,
                )
            return self.db_name

        if from_uri:
            return from_uri

        logger.warning("mongo_db_name_fallback", database=self.fallback_db_name)
        return self.fallback_db_name

    def client_options(self) -> dict[str, object]:
        """Keyword options for the Motor client constructor."""
        return {
            "maxPoolSize": self.max_pool_size,
            "minPoolSize": self.min_pool_size,
            "maxIdleTimeMS": self.max_idle_time_ms,
            "connectTimeoutMS": self.connect_timeout_ms,
            "socketTimeoutMS": self.socket_timeout_ms,
            "serverSelectionTimeoutMS": self.server_selection_timeout_ms,
            "retryWrites": self.retry_writes,
        }


class RedisSettings(BaseSettings):
    """Redis response cache settings (optional).

    If url is not configured or connection fails, caching will be disabled.
    """

    model_config = SettingsConfigDict(
        env_prefix="CHAT_STATS_REDIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str | None = None
    enabled: bool = True  # Can be explicitly disabled
    ttl_seconds: int = 60


class LoggingSettings(BaseSettings):
    """Logging output settings."""

    model_config = SettingsConfigDict(
        env_prefix="CHAT_STATS_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: str = "INFO"
    json_output: bool = False


class ChatStatsConfig(BaseSettings):
    """Main configuration aggregating all settings.

    Example usage:
        config = ChatStatsConfig()
        database = config.mongo.resolve_database_name()
    """

    model_config = SettingsConfigDict(
        env_prefix="CHAT_STATS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Component settings (nested)
    mongo: MongoSettings = MongoSettings()
    redis: RedisSettings = RedisSettings()
    logging: LoggingSettings = LoggingSettings()

    default_timezone: str = "UTC"

    @property
    def redis_enabled(self) -> bool:
        """Check if Redis caching is enabled and configured."""
        return self.redis.enabled and self.redis.url is not None
