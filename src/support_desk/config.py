"""Configuration management for support_desk.

This module provides typed configuration classes using pydantic-settings.
Configuration is loaded from environment variables with optional .env file support.
"""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "MongoSettings",
    "RedisSettings",
    "LLMSettings",
    "SupportDeskConfig",
]


class MongoSettings(BaseSettings):
    """MongoDB connection settings.

    The same database backs conversations, contact sessions, message threads,
    uploaded blobs (GridFS) and the knowledge base index.
    """

    model_config = SettingsConfigDict(
        env_prefix="SUPPORT_DESK_MONGO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    uri: SecretStr = SecretStr("mongodb://localhost:27017")
    database: str = "support_desk"
    collection_prefix: str = ""
    blob_bucket: str = "uploads"
    # Blob URLs are served by whatever HTTP layer fronts GridFS
    public_blob_base_url: str = "http://localhost:8000/files"


class RedisSettings(BaseSettings):
    """Redis connection settings (optional).

    If url is not configured or connection fails, caching will be disabled.
    """

    model_config = SettingsConfigDict(
        env_prefix="SUPPORT_DESK_REDIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str | None = None
    enabled: bool = True


class LLMSettings(BaseSettings):
    """LLM provider settings."""

    model_config = SettingsConfigDict(
        env_prefix="SUPPORT_DESK_LLM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: str = "openai"  # "openai" or "anthropic"
    api_key: SecretStr | None = None
    model: str = "gpt-4o"
    fast_model: str = "gpt-4o-mini"
    document_model: str = "gpt-4o"
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536
    temperature: float = 0.3


class SupportDeskConfig(BaseSettings):
    """Main configuration aggregating all settings.

    Example usage:
        config = SupportDeskConfig()
        ttl = config.session_ttl_hours
    """

    model_config = SettingsConfigDict(
        env_prefix="SUPPORT_DESK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    mongo: MongoSettings = MongoSettings()
    redis: RedisSettings = RedisSettings()
    llm: LLMSettings = LLMSettings()

    # Contact sessions
    session_ttl_hours: int = 24

    # Conversations
    welcome_message: str = "Hello, how can I help you today?"
    default_page_size: int = 10

    # Support agent
    agent_max_steps: int = 5
    search_limit: int = 5

    # Knowledge base indexing
    index_chunk_size: int = 1200
    index_chunk_overlap: int = 200

    @property
    def redis_enabled(self) -> bool:
        """Check if Redis caching is enabled and configured."""
        return self.redis.enabled and self.redis.url is not None

    @property
    def session_ttl_ms(self) -> int:
        """Contact session lifetime in milliseconds."""
        return self.session_ttl_hours * 60 * 60 * 1000
