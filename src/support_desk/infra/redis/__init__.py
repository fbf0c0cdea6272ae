"""Redis infrastructure for support_desk (optional)."""

from support_desk.infra.redis.cache import BlobSizeCache, CachedEmbeddingService, EmbeddingCache
from support_desk.infra.redis.client import RedisClient

__all__ = ["BlobSizeCache", "CachedEmbeddingService", "EmbeddingCache", "RedisClient"]
