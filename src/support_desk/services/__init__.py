"""Service layer for support_desk.

This module exports the main service entry points.
"""

from support_desk.services.contact_sessions import ContactSessionService
from support_desk.services.conversations import ConversationService
from support_desk.services.enrichment import ConversationEnricher
from support_desk.services.identity import IdentityResolver, OrganizationMember
from support_desk.services.infinite_scroll import (
    InfiniteScroll,
    LoadMoreSource,
    LoadStatus,
    PaginatedQuery,
)
from support_desk.services.knowledge import KnowledgeService, build_search_context
from support_desk.services.messages import MessageService
from support_desk.services.support_agent import ConversationTools, SupportAgent
from support_desk.services.text_extraction import SUPPORTED_IMAGE_TYPES, TextExtractor
from support_desk.services.widget import WidgetController

__all__ = [
    "SUPPORTED_IMAGE_TYPES",
    "ContactSessionService",
    "ConversationEnricher",
    "ConversationService",
    "ConversationTools",
    "IdentityResolver",
    "InfiniteScroll",
    "KnowledgeService",
    "LoadMoreSource",
    "LoadStatus",
    "MessageService",
    "OrganizationMember",
    "PaginatedQuery",
    "SupportAgent",
    "TextExtractor",
    "WidgetController",
    "build_search_context",
]
