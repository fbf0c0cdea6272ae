"""support_desk - Multi-tenant customer support chat core.

This package provides tools for:
- Anonymous contact sessions for an embeddable chat widget
- Conversations with an unresolved/escalated/resolved status cycle
- Operator and AI agent replies on external message threads
- Cursor pagination and an infinite-scroll load controller
- A per-organization knowledge base built from uploaded files

Example usage:
    from support_desk import (
        SupportDesk,
        MongoStorageRepository,
        MongoThreadStore,
        MongoBlobStore,
        MongoRetrievalIndex,
        OpenAIProvider,
    )

    # Simple usage - config loaded from .env automatically
    async with SupportDesk(
        storage_class=MongoStorageRepository,
        threads_class=MongoThreadStore,
        blob_class=MongoBlobStore,
        index_class=MongoRetrievalIndex,
        llm_class=OpenAIProvider,
        identity_provider=provider,
    ) as desk:
        page = await desk.list_conversations(identity)
"""

__version__ = "0.1.0"

from support_desk.errors import (
    BadRequestError,
    ErrorCode,
    InternalError,
    NotFoundError,
    SupportDeskError,
    UnauthorizedError,
)
from support_desk.infra.llm.anthropic_provider import AnthropicProvider
from support_desk.infra.llm.openai_provider import OpenAIProvider

# Implementations
from support_desk.infra.mongo.blobs import MongoBlobStore
from support_desk.infra.mongo.index import MongoRetrievalIndex
from support_desk.infra.mongo.repositories import MongoStorageRepository
from support_desk.infra.mongo.threads import MongoThreadStore

# Interfaces
from support_desk.interfaces.blob import BlobStoreInterface
from support_desk.interfaces.embedding import EmbeddingServiceInterface
from support_desk.interfaces.identity import IdentityProviderInterface
from support_desk.interfaces.index import RetrievalIndexInterface
from support_desk.interfaces.llm import LLMInterface
from support_desk.interfaces.storage import StorageInterface
from support_desk.interfaces.threads import ThreadStoreInterface

# Orchestrator
from support_desk.orchestrator import SupportDesk

__all__ = [  # noqa: RUF022
    # Orchestrator
    "SupportDesk",
    # Implementations
    "MongoStorageRepository",
    "MongoThreadStore",
    "MongoBlobStore",
    "MongoRetrievalIndex",
    "OpenAIProvider",
    "AnthropicProvider",
    # Interfaces
    "BlobStoreInterface",
    "EmbeddingServiceInterface",
    "IdentityProviderInterface",
    "LLMInterface",
    "RetrievalIndexInterface",
    "StorageInterface",
    "ThreadStoreInterface",
    # Errors
    "BadRequestError",
    "ErrorCode",
    "InternalError",
    "NotFoundError",
    "SupportDeskError",
    "UnauthorizedError",
]
