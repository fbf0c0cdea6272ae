"""MongoDB thread store for support_desk.

Messages carry a per-thread ``order`` assigned from an atomic counter on
the thread document, so appends from concurrent requests never collide.
"""

from typing import Any, Literal, Self

from support_desk.config import MongoSettings
from support_desk.errors import NotFoundError
from support_desk.infra.mongo.client import MongoClient
from support_desk.infra.mongo.cursors import after_filter, decode_cursor, encode_cursor
from support_desk.interfaces.threads import ThreadStoreInterface
from support_desk.logging import get_logger
from support_desk.models.message import MessageDTO, MessageRole, NewMessage
from support_desk.models.pagination import PaginationOpts, PaginationResult
from support_desk.utils.clock import Clock, now_ms
from support_desk.utils.hashing import generate_id
from support_desk.utils.lazy_import import lazy_import

__all__ = [
    "MongoThreadStore",
]

logger = get_logger(__name__)

get_return_document = lazy_import("pymongo", "ReturnDocument")


class MongoThreadStore(ThreadStoreInterface):
    """MongoDB implementation of ThreadStoreInterface."""

    config_class = MongoSettings

    def __init__(self, client: MongoClient, clock: Clock = now_ms) -> None:
        """Initialize store with MongoDB client.

        Args:
            client: Connected MongoClient instance
            clock: Source of the current epoch-millisecond time
        """
        self._client = client
        self._clock = clock
        self._owns_client = False

    @classmethod
    async def from_config(cls, config: MongoSettings) -> Self:
        """Factory method for SupportDesk instantiation."""
        client = MongoClient(config)
        await client.connect()
        await client.create_indexes()

        instance = cls(client)
        instance._owns_client = True
        return instance

    @classmethod
    async def from_dict(cls, config: dict[str, Any]) -> Self:
        """Factory method for custom config dict."""
        return await cls.from_config(MongoSettings(**config))

    async def close(self) -> None:
        """Close owned resources."""
        if self._owns_client and self._client:
            await self._client.disconnect()

    async def create_thread(self, owner_key: str) -> str:
        thread_id = generate_id()
        await self._client.threads.insert_one(
            {
                "id": thread_id,
                "owner_key": owner_key,
                "message_count": 0,
                "created_at": self._clock(),
            }
        )
        logger.debug("thread_created", thread_id=thread_id)
        return thread_id

    async def save_message(self, thread_id: str, message: NewMessage) -> MessageDTO:
        """Append a message after the thread's current last message.

        Raises:
            NotFoundError: If the thread does not exist
        """
        ReturnDocument = get_return_document()  # noqa: N806
        thread = await self._client.threads.find_one_and_update(
            {"id": thread_id},
            {"$inc": {"message_count": 1}},
            return_document=ReturnDocument.AFTER,
        )
        if thread is None:
            raise NotFoundError("Thread not found")

        stored = MessageDTO(
            id=generate_id(),
            thread_id=thread_id,
            order=thread["message_count"],
            role=message.role,
            content=message.content,
            agent_name=message.agent_name,
            created_at=self._clock(),
        )
        await self._client.messages.insert_one(self._message_to_doc(stored))
        return stored

    async def list_messages(
        self,
        thread_id: str,
        opts: PaginationOpts,
        order: Literal["asc", "desc"] = "desc",
    ) -> PaginationResult[MessageDTO]:
        descending = order == "desc"
        filter_: dict[str, Any] = {"thread_id": thread_id}
        if opts.cursor:
            filter_.update(after_filter(decode_cursor(opts.cursor), ["order"], descending))

        cursor = (
            self._client.messages.find(filter_)
            .sort([("order", -1 if descending else 1)])
            .limit(opts.num_items + 1)
        )
        docs = [doc async for doc in cursor]

        has_more = len(docs) > opts.num_items
        docs = docs[: opts.num_items]
        continue_cursor = opts.cursor
        if docs:
            continue_cursor = encode_cursor({"order": docs[-1]["order"]})

        return PaginationResult[MessageDTO](
            page=[self._doc_to_message(doc) for doc in docs],
            continue_cursor=continue_cursor,
            is_done=not has_more,
        )

    # Document conversion helpers
    @staticmethod
    def _message_to_doc(message: MessageDTO) -> dict[str, Any]:
        return {
            "id": message.id,
            "thread_id": message.thread_id,
            "order": message.order,
            "role": message.role.value,
            "content": message.content,
            "agent_name": message.agent_name,
            "created_at": message.created_at,
            "schema_version": message.schema_version,
        }

    @staticmethod
    def _doc_to_message(doc: dict[str, Any]) -> MessageDTO:
        return MessageDTO(
            id=doc["id"],
            thread_id=doc["thread_id"],
            order=doc["order"],
            role=MessageRole(doc["role"]),
            content=doc.get("content", ""),
            agent_name=doc.get("agent_name"),
            created_at=doc["created_at"],
            schema_version=doc.get("schema_version", 1),
        )
