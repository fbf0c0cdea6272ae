"""Conversation models for support_desk.

These models represent support threads between a contact session and
an organization.
"""

from enum import StrEnum

from pydantic import BaseModel, Field

from support_desk.models.message import MessageDTO
from support_desk.models.session import ContactSessionDTO

__all__ = [
    "ConversationDTO",
    "ConversationStatus",
    "ConversationWithSession",
    "EnrichedConversation",
]


class ConversationStatus(StrEnum):
    """Lifecycle states of a conversation."""

    UNRESOLVED = "unresolved"
    ESCALATED = "escalated"
    RESOLVED = "resolved"


class ConversationDTO(BaseModel, frozen=True):
    """Public Conversation data transfer object.

    Attributes:
        id: Conversation identifier
        organization_id: Owning tenant, immutable after creation
        contact_session_id: Owning contact session
        status: Current lifecycle state
        thread_id: Opaque reference to the externally-owned message thread
        created_at: Creation time in epoch milliseconds
    """

    id: str
    organization_id: str
    contact_session_id: str
    status: ConversationStatus = Field(default=ConversationStatus.UNRESOLVED)
    thread_id: str
    created_at: int = Field(description="Epoch milliseconds")
    schema_version: int = Field(default=1)


class ConversationWithSession(BaseModel, frozen=True):
    """Operator view of a single conversation with its contact session joined in."""

    conversation: ConversationDTO
    contact_session: ContactSessionDTO


class EnrichedConversation(BaseModel, frozen=True):
    """One row of a paginated conversation list.

    ``contact_session`` is only joined for operator listings; contact
    listings already know who the session is.
    """

    conversation: ConversationDTO
    last_message: MessageDTO | None = None
    contact_session: ContactSessionDTO | None = None
