"""Message gateway for support_desk.

Operators write into a conversation directly; contact messages are
handed to the support agent, which records both the prompt and the reply.
Every write is refused once a conversation is resolved.
"""

from support_desk.domain.conversation import Conversation
from support_desk.errors import BadRequestError
from support_desk.interfaces.llm import LLMInterface
from support_desk.interfaces.threads import ThreadStoreInterface
from support_desk.logging import get_logger
from support_desk.models.identity import Identity
from support_desk.models.llm import ModelTier, PromptMessage
from support_desk.models.message import MessageDTO, MessageRole, NewMessage
from support_desk.models.pagination import PaginationOpts, PaginationResult
from support_desk.services.conversations import ConversationService
from support_desk.services.identity import IdentityResolver
from support_desk.services.prompts import ENHANCE_PROMPT
from support_desk.services.support_agent import SupportAgent

__all__ = [
    "MessageService",
]

logger = get_logger(__name__)


def _ensure_open(conversation: Conversation) -> None:
    if not conversation.accepts_messages:
        logger.info("message_rejected", conversation_id=conversation.id, reason="resolved")
        raise BadRequestError("Conversation resolved")


class MessageService:
    """Service for reading and writing conversation messages.

    Listing returns raw stored roles; placement for a given viewer is
    applied by :func:`support_desk.domain.message.for_display`.

    Example:
        service = MessageService(threads, conversations, identities, agent, llm)
        await service.create_as_operator(identity, conversation_id, "On it!")
    """

    def __init__(
        self,
        threads: ThreadStoreInterface,
        conversations: ConversationService,
        identities: IdentityResolver,
        agent: SupportAgent,
        llm: LLMInterface,
    ) -> None:
        self._threads = threads
        self._conversations = conversations
        self._identities = identities
        self._agent = agent
        self._llm = llm

    async def create_as_operator(
        self,
        identity: Identity | None,
        conversation_id: str,
        prompt: str,
    ) -> MessageDTO:
        """Append an operator reply.

        An ``unresolved`` conversation is flipped to ``escalated`` before
        the message is written.

        Raises:
            UnauthorizedError: Identity or tenant check failed
            NotFoundError: Conversation does not exist
            BadRequestError: Conversation is resolved
        """
        member = self._identities.require_member(identity)
        conversation = await self._conversations.require_for_member(member, conversation_id)
        _ensure_open(conversation)

        await self._conversations.escalate_for_operator_reply(conversation)
        message = await self._threads.save_message(
            conversation.thread_id,
            NewMessage(
                role=MessageRole.ASSISTANT,
                content=prompt,
                agent_name=member.agent_name,
            ),
        )
        logger.info(
            "operator_message_saved",
            conversation_id=conversation.id,
            message_id=message.id,
        )
        return message

    async def create_as_contact(
        self,
        thread_id: str,
        prompt: str,
        contact_session_id: str,
    ) -> str | None:
        """Hand a contact message to the support agent.

        Returns:
            The agent's reply text, None if it produced none

        Raises:
            UnauthorizedError: Session missing or expired
            NotFoundError: Thread's conversation absent or owned by another session
            BadRequestError: Conversation is resolved
        """
        conversation = await self._conversations.require_for_contact_thread(
            thread_id, contact_session_id
        )
        _ensure_open(conversation)

        logger.info("contact_message_received", conversation_id=conversation.id)
        return await self._agent.generate_reply(conversation.thread_id, prompt)

    async def list_for_operator(
        self,
        identity: Identity | None,
        thread_id: str,
        opts: PaginationOpts,
    ) -> PaginationResult[MessageDTO]:
        """Page through a thread of the operator's organization, newest first."""
        member = self._identities.require_member(identity)
        conversation = await self._conversations.require_for_member_thread(member, thread_id)
        return await self._threads.list_messages(conversation.thread_id, opts, order="desc")

    async def list_for_contact(
        self,
        thread_id: str,
        contact_session_id: str,
        opts: PaginationOpts,
    ) -> PaginationResult[MessageDTO]:
        """Page through the contact's own thread, newest first."""
        conversation = await self._conversations.require_for_contact_thread(
            thread_id, contact_session_id
        )
        return await self._threads.list_messages(conversation.thread_id, opts, order="desc")

    async def enhance(self, identity: Identity | None, draft: str) -> str:
        """Rewrite an operator's draft reply. Nothing is persisted."""
        self._identities.require_member(identity)
        return await self._llm.generate(
            ENHANCE_PROMPT,
            [PromptMessage.user(draft)],
            tier=ModelTier.FAST,
        )
