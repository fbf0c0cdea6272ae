"""Redis cache implementations for support_desk.

This module provides caches for text embeddings and blob sizes. Every
cache falls back to a miss when Redis is unavailable.
"""

import json

from support_desk.infra.redis.client import RedisClient
from support_desk.interfaces.embedding import EmbeddingServiceInterface
from support_desk.logging import get_logger
from support_desk.utils.hashing import stable_hash

__all__ = [
    "BlobSizeCache",
    "CachedEmbeddingService",
    "EmbeddingCache",
]

logger = get_logger(__name__)


class EmbeddingCache:
    """Redis cache for text embeddings.

    Keys include the embedding model so switching models never serves
    vectors of the wrong space.
    """

    def __init__(
        self,
        redis_client: RedisClient,
        model: str,
        ttl: int = 86400,  # 24 hours
        prefix: str = "emb:",
    ) -> None:
        """Initialize embedding cache.

        Args:
            redis_client: Redis client instance
            model: Embedding model name, part of every key
            ttl: Cache TTL in seconds (default: 24 hours)
            prefix: Key prefix for embedding cache
        """
        self._redis = redis_client
        self._model = model
        self._ttl = ttl
        self._prefix = prefix

    def _make_key(self, text: str) -> str:
        return f"{self._prefix}{stable_hash(self._model, text)}"

    async def get(self, text: str) -> list[float] | None:
        if not self._redis.is_connected:
            return None

        cached = await self._redis.get(self._make_key(text))
        if not cached:
            return None
        try:
            return json.loads(cached)
        except json.JSONDecodeError:
            return None

    async def set(self, text: str, embedding: list[float]) -> bool:
        if not self._redis.is_connected:
            return False
        return await self._redis.set(self._make_key(text), json.dumps(embedding), ttl=self._ttl)


class CachedEmbeddingService(EmbeddingServiceInterface):
    """Embedding service that consults an EmbeddingCache first.

    Batch requests only send the cache misses to the wrapped service and
    return vectors in input order.
    """

    def __init__(self, inner: EmbeddingServiceInterface, cache: EmbeddingCache) -> None:
        self._inner = inner
        self._cache = cache

    async def embed(self, text: str) -> list[float]:
        cached = await self._cache.get(text)
        if cached is not None:
            return cached
        embedding = await self._inner.embed(text)
        await self._cache.set(text, embedding)
        return embedding

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        results: list[list[float] | None] = [await self._cache.get(t) for t in texts]
        missing = [i for i, vec in enumerate(results) if vec is None]
        if missing:
            computed = await self._inner.embed_batch([texts[i] for i in missing])
            for i, vec in zip(missing, computed, strict=True):
                results[i] = vec
                await self._cache.set(texts[i], vec)

        logger.debug("embedding_cache_batch", total=len(texts), misses=len(missing))
        return [vec for vec in results if vec is not None]


class BlobSizeCache:
    """Redis cache for blob sizes shown in file listings."""

    def __init__(
        self,
        redis_client: RedisClient,
        ttl: int = 3600,  # 1 hour
        prefix: str = "blob_size:",
    ) -> None:
        self._redis = redis_client
        self._ttl = ttl
        self._prefix = prefix

    def _make_key(self, storage_id: str) -> str:
        return f"{self._prefix}{storage_id}"

    async def get(self, storage_id: str) -> int | None:
        if not self._redis.is_connected:
            return None
        cached = await self._redis.get(self._make_key(storage_id))
        if cached is None:
            return None
        try:
            return int(cached)
        except ValueError:
            return None

    async def set(self, storage_id: str, size: int) -> bool:
        if not self._redis.is_connected:
            return False
        return await self._redis.set(self._make_key(storage_id), str(size), ttl=self._ttl)

    async def invalidate(self, storage_id: str) -> bool:
        if not self._redis.is_connected:
            return False
        return await self._redis.delete(self._make_key(storage_id))
