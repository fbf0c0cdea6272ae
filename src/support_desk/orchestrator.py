"""SupportDesk orchestrator for the support chat core.

This module provides the main entry point for the support_desk package,
wiring storage, threads, blobs, the retrieval index and the language model
into the conversation, message and knowledge services.
"""

from typing import Any

from support_desk.config import LLMSettings, MongoSettings, RedisSettings, SupportDeskConfig
from support_desk.infra.redis import BlobSizeCache, CachedEmbeddingService, EmbeddingCache
from support_desk.infra.redis.client import RedisClient
from support_desk.interfaces.blob import BlobStoreInterface
from support_desk.interfaces.embedding import EmbeddingServiceInterface
from support_desk.interfaces.identity import IdentityProviderInterface
from support_desk.interfaces.index import RetrievalIndexInterface
from support_desk.interfaces.llm import LLMInterface
from support_desk.interfaces.storage import StorageInterface
from support_desk.interfaces.threads import ThreadStoreInterface
from support_desk.logging import get_logger
from support_desk.models.conversation import (
    ConversationDTO,
    ConversationStatus,
    ConversationWithSession,
    EnrichedConversation,
)
from support_desk.models.identity import Identity, OrganizationValidation
from support_desk.models.knowledge import AddFileResult, PublicFile
from support_desk.models.message import MessageDTO
from support_desk.models.pagination import PaginationOpts, PaginationResult
from support_desk.models.session import (
    ContactSessionDTO,
    ContactSessionMetadata,
    SessionValidation,
)
from support_desk.services.contact_sessions import ContactSessionService
from support_desk.services.conversations import ConversationService
from support_desk.services.identity import IdentityResolver
from support_desk.services.knowledge import KnowledgeService
from support_desk.services.messages import MessageService
from support_desk.services.support_agent import ConversationTools, SupportAgent
from support_desk.services.widget import WidgetController

__all__ = ["SupportDesk"]

logger = get_logger(__name__)


class SupportDesk:
    """Main orchestrator for the support chat core.

    Accepts implementation classes. Config is loaded from .env automatically.
    For custom implementations, set config_class = None and pass custom_config dict.

    Operations come in three groups: public ones authorized by a contact
    session id, private ones authorized by an operator identity, and system
    ones used by the support agent.

    Example:
        async with SupportDesk(
            storage_class=MongoStorageRepository,
            threads_class=MongoThreadStore,
            blob_class=MongoBlobStore,
            index_class=MongoRetrievalIndex,
            llm_class=OpenAIProvider,
            identity_provider=provider,
        ) as desk:
            session = await desk.create_contact_session(org_id, "Ada", "ada@example.com")
            conversation_id = await desk.create_conversation(org_id, session.id)
    """

    def __init__(
        self,
        storage_class: type[StorageInterface],
        threads_class: type[ThreadStoreInterface],
        blob_class: type[BlobStoreInterface],
        index_class: type[RetrievalIndexInterface],
        llm_class: type[LLMInterface],
        embedding_class: type[EmbeddingServiceInterface] | None = None,
        identity_provider: IdentityProviderInterface | None = None,
        *,
        config: SupportDeskConfig | None = None,
        storage_custom_config: dict[str, Any] | None = None,
        threads_custom_config: dict[str, Any] | None = None,
        blob_custom_config: dict[str, Any] | None = None,
        index_custom_config: dict[str, Any] | None = None,
        llm_custom_config: dict[str, Any] | None = None,
        embedding_custom_config: dict[str, Any] | None = None,
    ) -> None:
        """Initialize SupportDesk with implementation classes.

        Args:
            storage_class: Conversation and contact session storage class
            threads_class: Thread/message store class
            blob_class: Blob store class for uploaded files
            index_class: Retrieval index class for the knowledge base
            llm_class: LLM implementation class
            embedding_class: Embedding implementation class (defaults to llm_class)
            identity_provider: External authentication provider
            config: Settings; loaded from .env when omitted
            storage_custom_config: Custom config dict if storage_class.config_class is None
            threads_custom_config: Custom config dict if threads_class.config_class is None
            blob_custom_config: Custom config dict if blob_class.config_class is None
            index_custom_config: Custom config dict if index_class.config_class is None
            llm_custom_config: Custom config dict if llm_class.config_class is None
            embedding_custom_config: Custom config dict if embedding_class.config_class is None
        """
        self._config = config or SupportDeskConfig()  # Loads from .env
        self._settings: dict[type, Any] = {
            MongoSettings: self._config.mongo,
            RedisSettings: self._config.redis,
            LLMSettings: self._config.llm,
        }

        self._storage_class = storage_class
        self._threads_class = threads_class
        self._blob_class = blob_class
        self._index_class = index_class
        self._llm_class = llm_class
        self._embedding_class = embedding_class or llm_class

        self._storage_custom_config = storage_custom_config
        self._threads_custom_config = threads_custom_config
        self._blob_custom_config = blob_custom_config
        self._index_custom_config = index_custom_config
        self._llm_custom_config = llm_custom_config
        self._embedding_custom_config = embedding_custom_config

        # Instances (created on connect)
        self._storage: StorageInterface | None = None
        self._threads: ThreadStoreInterface | None = None
        self._blobs: BlobStoreInterface | None = None
        self._index: RetrievalIndexInterface | None = None
        self._llm: LLMInterface | None = None
        self._embedding: EmbeddingServiceInterface | None = None
        self._redis: RedisClient | None = None

        # Services (wired on connect)
        self._identities = IdentityResolver(identity_provider)
        self._sessions: ContactSessionService | None = None
        self._conversations: ConversationService | None = None
        self._knowledge: KnowledgeService | None = None
        self._messages: MessageService | None = None
        self._widget: WidgetController | None = None

        self._connected = False

    async def _instantiate_class(
        self,
        cls: type,
        custom_config: dict[str, Any] | None,
        **dependencies: Any,
    ) -> Any:
        """Instantiate an implementation class.

        If cls.config_class is set, instantiate config (loads from .env).
        If cls.config_class is None, use custom_config dict.
        Dependencies are forwarded to the factory method unchanged.
        """
        config_class = getattr(cls, "config_class", None)

        if config_class is None:
            # Custom implementation - use dict
            if custom_config is None:
                raise ValueError(
                    f"{cls.__name__} has config_class=None but no custom_config provided"
                )
            return await cls.from_dict(custom_config, **dependencies)
        else:
            # Standard implementation - reuse loaded settings or instantiate (loads from .env)
            config = self._settings.get(config_class) or config_class()
            return await cls.from_config(config, **dependencies)

    async def _connect(self) -> None:
        """Initialize connections and services."""
        if self._connected:
            return

        # Optional cache layer
        size_cache: BlobSizeCache | None = None
        if self._config.redis_enabled:
            self._redis = RedisClient(self._config.redis)
            if await self._redis.connect():
                size_cache = BlobSizeCache(self._redis)

        # Instantiate implementations
        self._llm = await self._instantiate_class(self._llm_class, self._llm_custom_config)

        if self._embedding_class is self._llm_class:
            if not isinstance(self._llm, EmbeddingServiceInterface):
                raise ValueError(
                    f"{self._llm_class.__name__} does not provide embeddings; "
                    "pass embedding_class"
                )
            self._embedding = self._llm
        else:
            self._embedding = await self._instantiate_class(
                self._embedding_class, self._embedding_custom_config
            )

        embedding = self._embedding
        if self._redis is not None and self._redis.is_connected:
            cache = EmbeddingCache(self._redis, model=self._config.llm.embedding_model)
            embedding = CachedEmbeddingService(self._embedding, cache)

        self._storage = await self._instantiate_class(
            self._storage_class, self._storage_custom_config
        )
        self._threads = await self._instantiate_class(
            self._threads_class, self._threads_custom_config
        )
        self._blobs = await self._instantiate_class(
            self._blob_class, self._blob_custom_config, size_cache=size_cache
        )
        self._index = await self._instantiate_class(
            self._index_class,
            self._index_custom_config,
            embedding=embedding,
            chunk_size=self._config.index_chunk_size,
            chunk_overlap=self._config.index_chunk_overlap,
        )

        # Wire services
        self._sessions = ContactSessionService(self._storage, self._config.session_ttl_ms)
        self._conversations = ConversationService(
            self._storage,
            self._threads,
            self._sessions,
            self._identities,
            welcome_message=self._config.welcome_message,
        )
        self._knowledge = KnowledgeService(
            self._blobs,
            self._index,
            self._llm,
            self._identities,
            search_limit=self._config.search_limit,
        )
        tools = ConversationTools(self._conversations, self._knowledge, self._threads)
        agent = SupportAgent(
            self._llm,
            self._threads,
            tools,
            max_steps=self._config.agent_max_steps,
        )
        self._messages = MessageService(
            self._threads,
            self._conversations,
            self._identities,
            agent,
            self._llm,
        )
        self._widget = WidgetController(self._identities, self._sessions, self._conversations)

        self._connected = True
        logger.info("support_desk_connected", cache_enabled=size_cache is not None)

    async def _disconnect(self) -> None:
        """Close all connections."""
        for resource in (self._storage, self._threads, self._blobs, self._index, self._llm):
            if resource and hasattr(resource, "close"):
                await resource.close()
        if (
            self._embedding
            and self._embedding is not self._llm
            and hasattr(self._embedding, "close")
        ):
            await self._embedding.close()
        if self._redis is not None:
            await self._redis.disconnect()

        self._connected = False
        logger.info("support_desk_disconnected")

    async def __aenter__(self) -> "SupportDesk":
        """Async context manager entry - connects automatically."""
        await self._connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit - disconnects automatically."""
        await self._disconnect()

    def _ensure_connected(self) -> None:
        if not self._connected:
            raise RuntimeError(
                "SupportDesk not connected. Use 'async with SupportDesk(...) as desk:'"
            )

    def _page(self, opts: PaginationOpts | None) -> PaginationOpts:
        return opts or PaginationOpts(num_items=self._config.default_page_size)

    @property
    def widget(self) -> WidgetController:
        """Screen state controller for the embeddable widget."""
        self._ensure_connected()
        assert self._widget is not None
        return self._widget

    async def resolve_identity(self, credentials: str) -> Identity | None:
        """Ask the identity provider who the credentials belong to."""
        return await self._identities.resolve(credentials)

    # === PUBLIC (WIDGET) OPERATIONS ===

    async def validate_organization(self, organization_id: str) -> OrganizationValidation:
        return await self._identities.validate_organization(organization_id)

    async def create_contact_session(
        self,
        organization_id: str,
        name: str,
        email: str,
        metadata: ContactSessionMetadata | None = None,
    ) -> ContactSessionDTO:
        self._ensure_connected()
        assert self._sessions is not None
        return await self._sessions.create(organization_id, name, email, metadata)

    async def validate_contact_session(self, contact_session_id: str) -> SessionValidation:
        self._ensure_connected()
        assert self._sessions is not None
        return await self._sessions.validate(contact_session_id)

    async def create_conversation(self, organization_id: str, contact_session_id: str) -> str:
        """Open a conversation for a contact; returns its id."""
        self._ensure_connected()
        assert self._conversations is not None
        return await self._conversations.create(organization_id, contact_session_id)

    async def get_contact_conversation(
        self,
        conversation_id: str,
        contact_session_id: str,
    ) -> ConversationDTO:
        self._ensure_connected()
        assert self._conversations is not None
        return await self._conversations.get_one_for_contact(conversation_id, contact_session_id)

    async def list_contact_conversations(
        self,
        contact_session_id: str,
        opts: PaginationOpts | None = None,
    ) -> PaginationResult[EnrichedConversation]:
        self._ensure_connected()
        assert self._conversations is not None
        return await self._conversations.get_many_for_contact(
            contact_session_id, self._page(opts)
        )

    async def send_contact_message(
        self,
        thread_id: str,
        prompt: str,
        contact_session_id: str,
    ) -> str | None:
        """Record a contact's message and run the support agent on it."""
        self._ensure_connected()
        assert self._messages is not None
        return await self._messages.create_as_contact(thread_id, prompt, contact_session_id)

    async def list_contact_messages(
        self,
        thread_id: str,
        contact_session_id: str,
        opts: PaginationOpts | None = None,
    ) -> PaginationResult[MessageDTO]:
        self._ensure_connected()
        assert self._messages is not None
        return await self._messages.list_for_contact(
            thread_id, contact_session_id, self._page(opts)
        )

    # === PRIVATE (DASHBOARD) OPERATIONS ===

    async def list_conversations(
        self,
        identity: Identity | None,
        opts: PaginationOpts | None = None,
        status: ConversationStatus | None = None,
    ) -> PaginationResult[EnrichedConversation]:
        self._ensure_connected()
        assert self._conversations is not None
        return await self._conversations.get_many_for_operator(
            identity, self._page(opts), status
        )

    async def get_conversation(
        self,
        identity: Identity | None,
        conversation_id: str,
    ) -> ConversationWithSession:
        self._ensure_connected()
        assert self._conversations is not None
        return await self._conversations.get_one_for_operator(identity, conversation_id)

    async def update_conversation_status(
        self,
        identity: Identity | None,
        conversation_id: str,
        status: ConversationStatus,
    ) -> None:
        self._ensure_connected()
        assert self._conversations is not None
        await self._conversations.update_status(identity, conversation_id, status)

    async def toggle_conversation_status(
        self,
        identity: Identity | None,
        conversation_id: str,
    ) -> ConversationStatus:
        """Advance a conversation along the dashboard's status cycle."""
        self._ensure_connected()
        assert self._conversations is not None
        return await self._conversations.toggle_status(identity, conversation_id)

    async def send_operator_message(
        self,
        identity: Identity | None,
        conversation_id: str,
        prompt: str,
    ) -> MessageDTO:
        self._ensure_connected()
        assert self._messages is not None
        return await self._messages.create_as_operator(identity, conversation_id, prompt)

    async def list_messages(
        self,
        identity: Identity | None,
        thread_id: str,
        opts: PaginationOpts | None = None,
    ) -> PaginationResult[MessageDTO]:
        self._ensure_connected()
        assert self._messages is not None
        return await self._messages.list_for_operator(identity, thread_id, self._page(opts))

    async def enhance_message(self, identity: Identity | None, draft: str) -> str:
        """Rewrite an operator's draft reply."""
        self._ensure_connected()
        assert self._messages is not None
        return await self._messages.enhance(identity, draft)

    async def add_file(
        self,
        identity: Identity | None,
        filename: str,
        data: bytes,
        mime_type: str | None = None,
        category: str | None = None,
    ) -> AddFileResult:
        self._ensure_connected()
        assert self._knowledge is not None
        return await self._knowledge.add_file(identity, filename, mime_type, data, category)

    async def delete_file(self, identity: Identity | None, entry_id: str) -> None:
        self._ensure_connected()
        assert self._knowledge is not None
        await self._knowledge.delete_file(identity, entry_id)

    async def list_files(
        self,
        identity: Identity | None,
        opts: PaginationOpts | None = None,
        category: str | None = None,
    ) -> PaginationResult[PublicFile]:
        self._ensure_connected()
        assert self._knowledge is not None
        return await self._knowledge.list_files(identity, self._page(opts), category)

    # === SYSTEM OPERATIONS ===

    async def get_conversation_by_thread_id(self, thread_id: str) -> ConversationDTO | None:
        self._ensure_connected()
        assert self._conversations is not None
        return await self._conversations.get_by_thread_id(thread_id)

    async def escalate_conversation(self, thread_id: str) -> None:
        self._ensure_connected()
        assert self._conversations is not None
        await self._conversations.escalate(thread_id)

    async def resolve_conversation(self, thread_id: str) -> None:
        self._ensure_connected()
        assert self._conversations is not None
        await self._conversations.resolve(thread_id)

    async def unresolve_conversation(self, thread_id: str) -> None:
        self._ensure_connected()
        assert self._conversations is not None
        await self._conversations.unresolve(thread_id)

    async def search_knowledge(self, organization_id: str, query: str) -> str:
        """Answer a question from the organization's knowledge base."""
        self._ensure_connected()
        assert self._knowledge is not None
        return await self._knowledge.search_answer(organization_id, query)
