"""MongoDB client for support_desk.

This module provides an async MongoDB client wrapper using Motor.
"""

from typing import TYPE_CHECKING, Any

from support_desk.config import MongoSettings
from support_desk.logging import get_logger
from support_desk.utils.lazy_import import lazy_import

if TYPE_CHECKING:
    from motor.motor_asyncio import (
        AsyncIOMotorCollection,
        AsyncIOMotorDatabase,
        AsyncIOMotorGridFSBucket,
    )

__all__ = [
    "MongoClient",
]

logger = get_logger(__name__)

get_async_motor = lazy_import("motor.motor_asyncio", "AsyncIOMotorClient")
get_gridfs_bucket = lazy_import("motor.motor_asyncio", "AsyncIOMotorGridFSBucket")


class MongoClient:
    """Async MongoDB client wrapper.

    Provides a connection manager and collection accessors for the
    support_desk database. One client can be shared by every Mongo adapter.

    Example:
        client = MongoClient(settings)
        await client.connect()

        # Access collections
        await client.conversations.insert_one(doc)

        await client.disconnect()
    """

    def __init__(self, settings: MongoSettings) -> None:
        """Initialize client with settings.

        Args:
            settings: MongoDB connection settings
        """
        self._settings = settings
        self._client = None
        self._db = None
        self._bucket = None

    @property
    def settings(self) -> MongoSettings:
        return self._settings

    async def connect(self) -> None:
        """Initialize connection to MongoDB."""
        if self._client is not None:
            return
        AsyncIOMotorClient = get_async_motor()  # noqa: N806

        uri = self._settings.uri.get_secret_value()
        self._client = AsyncIOMotorClient(uri)
        self._db = self._client[self._settings.database]

        # Verify connection
        await self._client.admin.command("ping")
        logger.info(
            "connected_to_mongodb",
            database=self._settings.database,
        )

    async def disconnect(self) -> None:
        """Close connection to MongoDB."""
        if self._client:
            self._client.close()
            self._client = None
            self._db = None
            self._bucket = None
            logger.info("disconnected_from_mongodb")

    @property
    def db(self) -> "AsyncIOMotorDatabase[dict[str, Any]]":
        """Get database instance.

        Raises:
            RuntimeError: If not connected
        """
        if self._db is None:
            raise RuntimeError("MongoClient not connected. Call connect() first.")
        return self._db

    @property
    def bucket_name(self) -> str:
        return f"{self._settings.collection_prefix}{self._settings.blob_bucket}"

    @property
    def bucket(self) -> "AsyncIOMotorGridFSBucket":
        """GridFS bucket holding uploaded file bytes."""
        if self._bucket is None:
            AsyncIOMotorGridFSBucket = get_gridfs_bucket()  # noqa: N806
            self._bucket = AsyncIOMotorGridFSBucket(self.db, bucket_name=self.bucket_name)
        return self._bucket

    def _collection(self, name: str) -> "AsyncIOMotorCollection[dict[str, Any]]":
        """Get collection with optional prefix."""
        full_name = f"{self._settings.collection_prefix}{name}"
        return self.db[full_name]

    @property
    def contact_sessions(self) -> "AsyncIOMotorCollection[dict[str, Any]]":
        """Get contact_sessions collection."""
        return self._collection("contact_sessions")

    @property
    def conversations(self) -> "AsyncIOMotorCollection[dict[str, Any]]":
        """Get conversations collection."""
        return self._collection("conversations")

    @property
    def threads(self) -> "AsyncIOMotorCollection[dict[str, Any]]":
        """Get threads collection."""
        return self._collection("threads")

    @property
    def messages(self) -> "AsyncIOMotorCollection[dict[str, Any]]":
        """Get messages collection."""
        return self._collection("messages")

    @property
    def knowledge_entries(self) -> "AsyncIOMotorCollection[dict[str, Any]]":
        """Get knowledge_entries collection."""
        return self._collection("knowledge_entries")

    @property
    def knowledge_chunks(self) -> "AsyncIOMotorCollection[dict[str, Any]]":
        """Get knowledge_chunks collection."""
        return self._collection("knowledge_chunks")

    async def create_indexes(self) -> None:
        """Create indexes for all collections."""
        # Contact sessions
        await self.contact_sessions.create_index("id", unique=True)
        await self.contact_sessions.create_index("expires_at")

        # Conversations: by organization, (organization, status), thread and session
        await self.conversations.create_index("id", unique=True)
        await self.conversations.create_index(
            [("organization_id", 1), ("created_at", -1), ("id", -1)]
        )
        await self.conversations.create_index(
            [("organization_id", 1), ("status", 1), ("created_at", -1), ("id", -1)]
        )
        await self.conversations.create_index("thread_id", unique=True)
        await self.conversations.create_index(
            [("contact_session_id", 1), ("created_at", -1), ("id", -1)]
        )

        # Threads and messages
        await self.threads.create_index("id", unique=True)
        await self.messages.create_index("id", unique=True)
        await self.messages.create_index([("thread_id", 1), ("order", 1)], unique=True)

        # Knowledge base
        await self.knowledge_entries.create_index("entry_id", unique=True)
        await self.knowledge_entries.create_index([("namespace", 1), ("key", 1)])
        await self.knowledge_entries.create_index([("namespace", 1), ("content_hash", 1)])
        await self.knowledge_entries.create_index(
            [("namespace", 1), ("metadata.category", 1), ("created_at", -1)]
        )
        await self.knowledge_chunks.create_index("entry_id")
        await self.knowledge_chunks.create_index("namespace")

        logger.info("created_mongodb_indexes")

    async def __aenter__(self) -> "MongoClient":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.disconnect()
