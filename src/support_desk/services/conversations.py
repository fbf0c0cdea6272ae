"""Conversation store service for support_desk.

This module owns conversation records and their status machine. Operator
(dashboard) operations are authorized by the identity's organization;
contact (widget) operations by the owning contact session. Thread-level
operations serve the support agent's tools.
"""

from datetime import UTC, datetime

from support_desk.domain.conversation import Conversation
from support_desk.errors import NotFoundError, UnauthorizedError
from support_desk.interfaces.storage import StorageInterface
from support_desk.interfaces.threads import ThreadStoreInterface
from support_desk.logging import get_logger
from support_desk.models.conversation import (
    ConversationDTO,
    ConversationStatus,
    ConversationWithSession,
    EnrichedConversation,
)
from support_desk.models.identity import Identity
from support_desk.models.message import MessageRole, NewMessage
from support_desk.models.pagination import PaginationOpts, PaginationResult
from support_desk.services.contact_sessions import ContactSessionService
from support_desk.services.enrichment import ConversationEnricher
from support_desk.services.identity import IdentityResolver, OrganizationMember
from support_desk.utils.clock import Clock, now_ms
from support_desk.utils.hashing import generate_id

__all__ = [
    "ConversationService",
]

logger = get_logger(__name__)


class ConversationService:
    """Service for conversation lifecycle and access control.

    Example:
        service = ConversationService(storage, threads, sessions, identities)
        conversation_id = await service.create(org_id, contact_session_id)
        await service.toggle_status(identity, conversation_id)
    """

    def __init__(
        self,
        storage: StorageInterface,
        threads: ThreadStoreInterface,
        sessions: ContactSessionService,
        identities: IdentityResolver,
        welcome_message: str = "Hello, how can I help you today?",
        clock: Clock = now_ms,
    ) -> None:
        """Initialize service with dependencies.

        Args:
            storage: Conversation and contact session storage
            threads: Message thread store
            sessions: Contact session validator
            identities: Operator identity resolver
            welcome_message: First message of every thread; ``{date}`` is
                replaced with the current UTC date
            clock: Source of the current epoch-millisecond time
        """
        self._storage = storage
        self._threads = threads
        self._sessions = sessions
        self._identities = identities
        self._welcome_message = welcome_message
        self._clock = clock
        self._enricher = ConversationEnricher(storage, threads)

    # === CONTACT (WIDGET) OPERATIONS ===

    async def create(self, organization_id: str, contact_session_id: str) -> str:
        """Open a conversation for a contact session.

        The session must be valid and belong to ``organization_id``. A new
        thread is opened and seeded with the welcome message before the
        conversation row is written with status ``unresolved``.

        Returns:
            New conversation ID
        """
        session = await self._sessions.require(contact_session_id)
        if session.organization_id != organization_id:
            logger.warning(
                "conversation_create_rejected",
                contact_session_id=contact_session_id,
                organization_id=organization_id,
                reason="organization_mismatch",
            )
            raise UnauthorizedError("Invalid Organization ID")

        now = self._clock()
        thread_id = await self._threads.create_thread(owner_key=session.id)
        await self._threads.save_message(
            thread_id,
            NewMessage(role=MessageRole.ASSISTANT, content=self._render_welcome(now)),
        )

        conversation = Conversation(
            id=generate_id(),
            organization_id=organization_id,
            contact_session_id=session.id,
            thread_id=thread_id,
            created_at=now,
        )
        await self._storage.save_conversation(conversation.to_dto())

        logger.info(
            "conversation_created",
            conversation_id=conversation.id,
            organization_id=organization_id,
            thread_id=thread_id,
        )
        return conversation.id

    async def get_one_for_contact(
        self,
        conversation_id: str,
        contact_session_id: str,
    ) -> ConversationDTO:
        """Contact view of one conversation.

        Raises:
            UnauthorizedError: Session missing or expired
            NotFoundError: Conversation absent or owned by another session
        """
        session = await self._sessions.require(contact_session_id)
        conversation = await self._storage.get_conversation(conversation_id)
        if conversation is None or conversation.contact_session_id != session.id:
            raise NotFoundError("Conversation not found")
        return conversation

    async def get_many_for_contact(
        self,
        contact_session_id: str,
        opts: PaginationOpts,
    ) -> PaginationResult[EnrichedConversation]:
        """A contact's own conversations, newest first, each with its last message."""
        session = await self._sessions.require(contact_session_id)
        result = await self._storage.list_conversations_for_session(session.id, opts)
        return await self._enricher.enrich_page(result, with_contact_session=False)

    async def require_for_contact_thread(
        self,
        thread_id: str,
        contact_session_id: str,
    ) -> Conversation:
        """Conversation behind a thread, if the calling session owns it.

        Ownership mismatch reuses NotFoundError so non-owners learn nothing
        about the thread.
        """
        session = await self._sessions.require(contact_session_id)
        dto = await self._storage.get_conversation_by_thread_id(thread_id)
        if dto is None or dto.contact_session_id != session.id:
            raise NotFoundError("Conversation not found")
        return Conversation.from_dto(dto)

    # === OPERATOR (DASHBOARD) OPERATIONS ===

    async def get_one_for_operator(
        self,
        identity: Identity | None,
        conversation_id: str,
    ) -> ConversationWithSession:
        """Operator view of one conversation with its contact session.

        Raises:
            UnauthorizedError: No identity, no organization, or another tenant's conversation
            NotFoundError: Conversation or its contact session is missing
        """
        member = self._identities.require_member(identity)
        conversation = await self.require_for_member(member, conversation_id)

        contact_session = await self._storage.get_contact_session(
            conversation.contact_session_id
        )
        if contact_session is None:
            logger.error(
                "contact_session_missing",
                conversation_id=conversation.id,
                contact_session_id=conversation.contact_session_id,
            )
            raise NotFoundError("Contact Session not found")

        return ConversationWithSession(
            conversation=conversation.to_dto(),
            contact_session=contact_session,
        )

    async def get_many_for_operator(
        self,
        identity: Identity | None,
        opts: PaginationOpts,
        status: ConversationStatus | None = None,
    ) -> PaginationResult[EnrichedConversation]:
        """The organization's conversations, newest first, optionally filtered by status.

        Rows whose contact session no longer exists are dropped from the page.
        """
        member = self._identities.require_member(identity)
        result = await self._storage.list_conversations(member.org_id, opts, status=status)
        return await self._enricher.enrich_page(result, with_contact_session=True)

    async def update_status(
        self,
        identity: Identity | None,
        conversation_id: str,
        status: ConversationStatus,
    ) -> None:
        """Manual override to any status; last write wins."""
        member = self._identities.require_member(identity)
        conversation = await self.require_for_member(member, conversation_id)
        await self._write_status(conversation, ConversationStatus(status), source="operator")

    async def toggle_status(
        self,
        identity: Identity | None,
        conversation_id: str,
    ) -> ConversationStatus:
        """Advance along unresolved -> escalated -> resolved -> unresolved.

        Returns:
            The status written
        """
        member = self._identities.require_member(identity)
        conversation = await self.require_for_member(member, conversation_id)
        target = conversation.toggled_status()
        await self._write_status(conversation, target, source="operator_toggle")
        return target

    async def require_for_member(
        self,
        member: OrganizationMember,
        conversation_id: str,
    ) -> Conversation:
        """Load a conversation and check it belongs to the member's organization."""
        dto = await self._storage.get_conversation(conversation_id)
        if dto is None:
            raise NotFoundError("Conversation not found")
        conversation = Conversation.from_dto(dto)
        self._check_tenant(member, conversation)
        return conversation

    async def require_for_member_thread(
        self,
        member: OrganizationMember,
        thread_id: str,
    ) -> Conversation:
        """Thread-keyed variant of :meth:`require_for_member`."""
        dto = await self._storage.get_conversation_by_thread_id(thread_id)
        if dto is None:
            raise NotFoundError("Conversation not found")
        conversation = Conversation.from_dto(dto)
        self._check_tenant(member, conversation)
        return conversation

    async def escalate_for_operator_reply(self, conversation: Conversation) -> None:
        """Flip an unresolved conversation to escalated ahead of an operator reply.

        Concurrent replies may both write ``escalated``; the write is idempotent.
        """
        if conversation.escalates_on_operator_reply:
            await self._write_status(
                conversation, ConversationStatus.ESCALATED, source="operator_reply"
            )

    # === THREAD-LEVEL OPERATIONS (support agent tools) ===

    async def get_by_thread_id(self, thread_id: str) -> ConversationDTO | None:
        return await self._storage.get_conversation_by_thread_id(thread_id)

    async def escalate(self, thread_id: str) -> None:
        """Force ``escalated`` regardless of the current status."""
        await self._set_thread_status(thread_id, ConversationStatus.ESCALATED)

    async def resolve(self, thread_id: str) -> None:
        """Force ``resolved`` regardless of the current status."""
        await self._set_thread_status(thread_id, ConversationStatus.RESOLVED)

    async def unresolve(self, thread_id: str) -> None:
        """Force ``unresolved`` regardless of the current status."""
        await self._set_thread_status(thread_id, ConversationStatus.UNRESOLVED)

    # === HELPERS ===

    def _check_tenant(self, member: OrganizationMember, conversation: Conversation) -> None:
        if not conversation.belongs_to(member.org_id):
            logger.warning(
                "conversation_access_rejected",
                conversation_id=conversation.id,
                organization_id=member.org_id,
                reason="organization_mismatch",
            )
            raise UnauthorizedError("Invalid Organization ID")

    async def _set_thread_status(self, thread_id: str, status: ConversationStatus) -> None:
        dto = await self._storage.get_conversation_by_thread_id(thread_id)
        if dto is None:
            raise NotFoundError("Conversation not found")
        await self._write_status(Conversation.from_dto(dto), status, source="agent")

    async def _write_status(
        self,
        conversation: Conversation,
        status: ConversationStatus,
        source: str,
    ) -> None:
        previous = conversation.status
        await self._storage.update_conversation_status(conversation.id, status)
        conversation.status = status
        logger.info(
            "conversation_status_updated",
            conversation_id=conversation.id,
            previous_status=previous.value,
            status=status.value,
            source=source,
        )

    def _render_welcome(self, now: int) -> str:
        if "{date}" not in self._welcome_message:
            return self._welcome_message
        today = datetime.fromtimestamp(now / 1000, tz=UTC).date().isoformat()
        return self._welcome_message.replace("{date}", today)
