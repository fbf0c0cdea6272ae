"""Storage interface for support_desk.

This module defines the Protocol for conversation and contact session persistence.
"""

from typing import ClassVar, Protocol, runtime_checkable

from support_desk.models.conversation import ConversationDTO, ConversationStatus
from support_desk.models.pagination import PaginationOpts, PaginationResult
from support_desk.models.session import ContactSessionDTO

__all__ = [
    "StorageInterface",
]


@runtime_checkable
class StorageInterface(Protocol):
    """Contract for conversation and contact session persistence.

    Implementations must index conversations by organization, by
    (organization, status), by thread id and by contact session.
    """

    config_class: ClassVar[type | None] = None

    # Contact session operations
    async def save_contact_session(self, session: ContactSessionDTO) -> str:
        """Save a contact session.

        Args:
            session: Session to save

        Returns:
            Session ID
        """
        ...

    async def get_contact_session(self, contact_session_id: str) -> ContactSessionDTO | None:
        """Get a contact session by ID.

        Args:
            contact_session_id: Session ID to retrieve

        Returns:
            ContactSessionDTO if found, None otherwise
        """
        ...

    # Conversation operations
    async def save_conversation(self, conversation: ConversationDTO) -> str:
        """Insert a conversation.

        Args:
            conversation: Conversation to save

        Returns:
            Conversation ID
        """
        ...

    async def get_conversation(self, conversation_id: str) -> ConversationDTO | None:
        """Get a conversation by ID."""
        ...

    async def get_conversation_by_thread_id(self, thread_id: str) -> ConversationDTO | None:
        """Get the unique conversation backed by a thread."""
        ...

    async def update_conversation_status(
        self,
        conversation_id: str,
        status: ConversationStatus,
    ) -> None:
        """Point-write the status field (last write wins).

        Args:
            conversation_id: Conversation to update
            status: New status
        """
        ...

    async def list_conversations(
        self,
        organization_id: str,
        opts: PaginationOpts,
        status: ConversationStatus | None = None,
    ) -> PaginationResult[ConversationDTO]:
        """List an organization's conversations, newest first.

        Args:
            organization_id: Tenant to list
            opts: Page request
            status: Optional status filter

        Returns:
            One page of conversations
        """
        ...

    async def list_conversations_for_session(
        self,
        contact_session_id: str,
        opts: PaginationOpts,
    ) -> PaginationResult[ConversationDTO]:
        """List a contact session's conversations, newest first."""
        ...
