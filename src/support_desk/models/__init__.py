"""Public DTO models for support_desk.

This module exports all public data transfer objects.
"""

from support_desk.models.conversation import (
    ConversationDTO,
    ConversationStatus,
    ConversationWithSession,
    EnrichedConversation,
)
from support_desk.models.identity import Identity, OrganizationValidation
from support_desk.models.knowledge import (
    AddFileResult,
    EntryMetadata,
    EntryStatus,
    IndexAddResult,
    KnowledgeEntryDTO,
    PublicFile,
    SearchEntry,
    SearchResult,
)
from support_desk.models.llm import (
    ModelTier,
    ModelTurn,
    PromptMessage,
    PromptPart,
    ToolCall,
    ToolSpec,
)
from support_desk.models.message import MessageDTO, MessageRole, NewMessage
from support_desk.models.pagination import PaginationOpts, PaginationResult
from support_desk.models.session import (
    ContactSessionDTO,
    ContactSessionMetadata,
    SessionValidation,
)

__all__ = [
    "AddFileResult",
    "ContactSessionDTO",
    "ContactSessionMetadata",
    "ConversationDTO",
    "ConversationStatus",
    "ConversationWithSession",
    "EnrichedConversation",
    "EntryMetadata",
    "EntryStatus",
    "Identity",
    "IndexAddResult",
    "KnowledgeEntryDTO",
    "MessageDTO",
    "MessageRole",
    "ModelTier",
    "ModelTurn",
    "NewMessage",
    "OrganizationValidation",
    "PaginationOpts",
    "PaginationResult",
    "PromptMessage",
    "PromptPart",
    "SearchEntry",
    "SearchResult",
    "SessionValidation",
    "ToolCall",
    "ToolSpec",
]
