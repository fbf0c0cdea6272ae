"""MongoDB repositories for support_desk.

This module provides the MongoDB implementation of conversation and
contact session storage.
"""

from typing import Any, Self

from support_desk.config import MongoSettings
from support_desk.infra.mongo.client import MongoClient
from support_desk.infra.mongo.cursors import after_filter, decode_cursor, encode_cursor
from support_desk.interfaces.storage import StorageInterface
from support_desk.logging import get_logger
from support_desk.models.conversation import ConversationDTO, ConversationStatus
from support_desk.models.pagination import PaginationOpts, PaginationResult
from support_desk.models.session import ContactSessionDTO, ContactSessionMetadata

__all__ = [
    "MongoStorageRepository",
]

logger = get_logger(__name__)

# Newest first; id breaks ties between conversations created in the same millisecond
_CONVERSATION_SORT = [("created_at", -1), ("id", -1)]
_CONVERSATION_KEYS = ["created_at", "id"]


class MongoStorageRepository(StorageInterface):
    """MongoDB implementation of StorageInterface.

    Provides persistence for contact sessions and conversations with
    keyset-paginated listings.
    """

    config_class = MongoSettings

    def __init__(self, client: MongoClient) -> None:
        """Initialize repository with MongoDB client.

        Args:
            client: Connected MongoClient instance
        """
        self._client = client
        self._owns_client = False

    @classmethod
    async def from_config(cls, config: MongoSettings) -> Self:
        """Factory method for SupportDesk instantiation.

        Creates a MongoClient, connects, creates indexes, and returns repository.

        Args:
            config: MongoDB settings

        Returns:
            Connected MongoStorageRepository instance
        """
        client = MongoClient(config)
        await client.connect()
        await client.create_indexes()

        instance = cls(client)
        instance._owns_client = True
        return instance

    @classmethod
    async def from_dict(cls, config: dict[str, Any]) -> Self:
        """Factory method for custom config dict.

        Args:
            config: Dictionary with MongoDB settings

        Returns:
            Connected MongoStorageRepository instance
        """
        settings = MongoSettings(**config)
        return await cls.from_config(settings)

    async def close(self) -> None:
        """Close owned resources."""
        if self._owns_client and self._client:
            await self._client.disconnect()

    # Contact session operations
    async def save_contact_session(self, session: ContactSessionDTO) -> str:
        """Save or update a contact session."""
        await self._client.contact_sessions.replace_one(
            {"id": session.id},
            self._session_to_doc(session),
            upsert=True,
        )
        return session.id

    async def get_contact_session(self, contact_session_id: str) -> ContactSessionDTO | None:
        """Get a contact session by ID."""
        doc = await self._client.contact_sessions.find_one({"id": contact_session_id})
        return self._doc_to_session(doc) if doc else None

    # Conversation operations
    async def save_conversation(self, conversation: ConversationDTO) -> str:
        """Insert a conversation."""
        await self._client.conversations.insert_one(self._conversation_to_doc(conversation))
        return conversation.id

    async def get_conversation(self, conversation_id: str) -> ConversationDTO | None:
        """Get a conversation by ID."""
        doc = await self._client.conversations.find_one({"id": conversation_id})
        return self._doc_to_conversation(doc) if doc else None

    async def get_conversation_by_thread_id(self, thread_id: str) -> ConversationDTO | None:
        """Get the conversation backed by a thread."""
        doc = await self._client.conversations.find_one({"thread_id": thread_id})
        return self._doc_to_conversation(doc) if doc else None

    async def update_conversation_status(
        self,
        conversation_id: str,
        status: ConversationStatus,
    ) -> None:
        """Point-write the status field."""
        await self._client.conversations.update_one(
            {"id": conversation_id},
            {"$set": {"status": ConversationStatus(status).value}},
        )

    async def list_conversations(
        self,
        organization_id: str,
        opts: PaginationOpts,
        status: ConversationStatus | None = None,
    ) -> PaginationResult[ConversationDTO]:
        """List an organization's conversations, newest first."""
        query: dict[str, Any] = {"organization_id": organization_id}
        if status is not None:
            query["status"] = ConversationStatus(status).value
        return await self._page_conversations(query, opts)

    async def list_conversations_for_session(
        self,
        contact_session_id: str,
        opts: PaginationOpts,
    ) -> PaginationResult[ConversationDTO]:
        """List a contact session's conversations, newest first."""
        return await self._page_conversations({"contact_session_id": contact_session_id}, opts)

    async def _page_conversations(
        self,
        query: dict[str, Any],
        opts: PaginationOpts,
    ) -> PaginationResult[ConversationDTO]:
        """Fetch one keyset page; one extra document tells whether more exist."""
        filter_ = dict(query)
        if opts.cursor:
            position = decode_cursor(opts.cursor)
            filter_.update(after_filter(position, _CONVERSATION_KEYS, descending=True))

        cursor = (
            self._client.conversations.find(filter_)
            .sort(_CONVERSATION_SORT)
            .limit(opts.num_items + 1)
        )
        docs = [doc async for doc in cursor]

        has_more = len(docs) > opts.num_items
        docs = docs[: opts.num_items]
        continue_cursor = opts.cursor
        if docs:
            last = docs[-1]
            continue_cursor = encode_cursor({"created_at": last["created_at"], "id": last["id"]})

        return PaginationResult[ConversationDTO](
            page=[self._doc_to_conversation(doc) for doc in docs],
            continue_cursor=continue_cursor,
            is_done=not has_more,
        )

    # Document conversion helpers
    @staticmethod
    def _session_to_doc(session: ContactSessionDTO) -> dict[str, Any]:
        return {
            "id": session.id,
            "organization_id": session.organization_id,
            "name": session.name,
            "email": session.email,
            "expires_at": session.expires_at,
            "metadata": session.metadata.model_dump(exclude_none=True),
            "created_at": session.created_at,
            "schema_version": session.schema_version,
        }

    @staticmethod
    def _doc_to_session(doc: dict[str, Any]) -> ContactSessionDTO:
        return ContactSessionDTO(
            id=doc["id"],
            organization_id=doc["organization_id"],
            name=doc["name"],
            email=doc["email"],
            expires_at=doc["expires_at"],
            metadata=ContactSessionMetadata(**doc.get("metadata", {})),
            created_at=doc["created_at"],
            schema_version=doc.get("schema_version", 1),
        )

    @staticmethod
    def _conversation_to_doc(conversation: ConversationDTO) -> dict[str, Any]:
        return {
            "id": conversation.id,
            "organization_id": conversation.organization_id,
            "contact_session_id": conversation.contact_session_id,
            "status": conversation.status.value,
            "thread_id": conversation.thread_id,
            "created_at": conversation.created_at,
            "schema_version": conversation.schema_version,
        }

    @staticmethod
    def _doc_to_conversation(doc: dict[str, Any]) -> ConversationDTO:
        return ConversationDTO(
            id=doc["id"],
            organization_id=doc["organization_id"],
            contact_session_id=doc["contact_session_id"],
            status=ConversationStatus(doc["status"]),
            thread_id=doc["thread_id"],
            created_at=doc["created_at"],
            schema_version=doc.get("schema_version", 1),
        )
