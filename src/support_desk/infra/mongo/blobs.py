"""GridFS blob store for support_desk.

Uploaded file bytes live in a GridFS bucket next to the other collections.
Retrieval URLs point at the HTTP layer that serves the bucket.
"""

from typing import TYPE_CHECKING, Any, Self

from support_desk.config import MongoSettings
from support_desk.infra.mongo.client import MongoClient
from support_desk.interfaces.blob import BlobStoreInterface
from support_desk.logging import get_logger
from support_desk.utils.lazy_import import lazy_import

if TYPE_CHECKING:
    from support_desk.infra.redis.cache import BlobSizeCache

__all__ = [
    "MongoBlobStore",
]

logger = get_logger(__name__)

get_object_id = lazy_import("bson", "ObjectId")
get_no_file = lazy_import("gridfs.errors", "NoFile")


class MongoBlobStore(BlobStoreInterface):
    """GridFS implementation of BlobStoreInterface."""

    config_class = MongoSettings

    def __init__(
        self,
        client: MongoClient,
        public_base_url: str,
        size_cache: "BlobSizeCache | None" = None,
    ) -> None:
        """Initialize store.

        Args:
            client: Connected MongoClient instance
            public_base_url: Base URL under which blobs are served by id
            size_cache: Optional cache for blob sizes
        """
        self._client = client
        self._public_base_url = public_base_url.rstrip("/")
        self._size_cache = size_cache
        self._owns_client = False

    @classmethod
    async def from_config(
        cls,
        config: MongoSettings,
        size_cache: "BlobSizeCache | None" = None,
    ) -> Self:
        """Factory method for SupportDesk instantiation."""
        client = MongoClient(config)
        await client.connect()

        instance = cls(client, config.public_blob_base_url, size_cache=size_cache)
        instance._owns_client = True
        return instance

    @classmethod
    async def from_dict(
        cls,
        config: dict[str, Any],
        size_cache: "BlobSizeCache | None" = None,
    ) -> Self:
        """Factory method for custom config dict."""
        return await cls.from_config(MongoSettings(**config), size_cache=size_cache)

    async def close(self) -> None:
        """Close owned resources."""
        if self._owns_client and self._client:
            await self._client.disconnect()

    async def store(self, data: bytes, mime_type: str) -> str:
        file_id = await self._client.bucket.upload_from_stream(
            "upload",
            data,
            metadata={"content_type": mime_type},
        )
        storage_id = str(file_id)
        logger.debug("blob_stored", storage_id=storage_id, size=len(data))
        return storage_id

    async def get(self, storage_id: str) -> bytes | None:
        file_id = self._object_id(storage_id)
        if file_id is None:
            return None
        NoFile = get_no_file()  # noqa: N806
        try:
            stream = await self._client.bucket.open_download_stream(file_id)
        except NoFile:
            return None
        return await stream.read()

    async def get_url(self, storage_id: str) -> str | None:
        if await self._file_doc(storage_id) is None:
            return None
        return f"{self._public_base_url}/{storage_id}"

    async def delete(self, storage_id: str) -> None:
        file_id = self._object_id(storage_id)
        if file_id is None:
            return
        NoFile = get_no_file()  # noqa: N806
        try:
            await self._client.bucket.delete(file_id)
        except NoFile:
            logger.debug("blob_already_deleted", storage_id=storage_id)
        if self._size_cache is not None:
            await self._size_cache.invalidate(storage_id)

    async def stat_size(self, storage_id: str) -> int | None:
        if self._size_cache is not None:
            cached = await self._size_cache.get(storage_id)
            if cached is not None:
                return cached

        doc = await self._file_doc(storage_id)
        if doc is None:
            return None
        size = int(doc["length"])
        if self._size_cache is not None:
            await self._size_cache.set(storage_id, size)
        return size

    async def _file_doc(self, storage_id: str) -> dict[str, Any] | None:
        file_id = self._object_id(storage_id)
        if file_id is None:
            return None
        files = self._client.db[f"{self._client.bucket_name}.files"]
        return await files.find_one({"_id": file_id})

    @staticmethod
    def _object_id(storage_id: str) -> Any:
        ObjectId = get_object_id()  # noqa: N806
        if not ObjectId.is_valid(storage_id):
            return None
        return ObjectId(storage_id)
