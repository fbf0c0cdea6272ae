"""Row enrichment for paginated conversation listings.

Each listed conversation is joined with its most recent message and,
for operator listings, its contact session. Rows of one page are joined
concurrently; a row whose contact session is gone is dropped.
"""

import asyncio

from support_desk.interfaces.storage import StorageInterface
from support_desk.interfaces.threads import ThreadStoreInterface
from support_desk.logging import get_logger
from support_desk.models.conversation import ConversationDTO, EnrichedConversation
from support_desk.models.message import MessageDTO
from support_desk.models.pagination import PaginationOpts, PaginationResult

__all__ = [
    "ConversationEnricher",
]

logger = get_logger(__name__)

_LAST_MESSAGE = PaginationOpts(num_items=1)


class ConversationEnricher:
    """Joins listing rows with their last message and contact session.

    Example:
        enricher = ConversationEnricher(storage, threads)
        page = await enricher.enrich_page(result, with_contact_session=True)
    """

    def __init__(self, storage: StorageInterface, threads: ThreadStoreInterface) -> None:
        self._storage = storage
        self._threads = threads

    async def last_message(self, thread_id: str) -> MessageDTO | None:
        """Newest message of a thread, fetched as a one-item page."""
        result = await self._threads.list_messages(thread_id, _LAST_MESSAGE, order="desc")
        return result.page[0] if result.page else None

    async def join(
        self,
        conversation: ConversationDTO,
        with_contact_session: bool,
    ) -> EnrichedConversation | None:
        """Build one enriched row, or None when a required join target is missing."""
        contact_session = None
        if with_contact_session:
            contact_session = await self._storage.get_contact_session(
                conversation.contact_session_id
            )
            if contact_session is None:
                logger.warning(
                    "conversation_row_dropped",
                    conversation_id=conversation.id,
                    reason="contact_session_missing",
                )
                return None

        return EnrichedConversation(
            conversation=conversation,
            last_message=await self.last_message(conversation.thread_id),
            contact_session=contact_session,
        )

    async def enrich_page(
        self,
        result: PaginationResult[ConversationDTO],
        with_contact_session: bool,
    ) -> PaginationResult[EnrichedConversation]:
        """Join every row of a page concurrently, preserving order.

        Pagination fields are carried over unchanged, so dropped rows never
        shift the cursor.
        """
        rows = result.page
        if not rows:
            return PaginationResult[EnrichedConversation](
                page=[],
                continue_cursor=result.continue_cursor,
                is_done=result.is_done,
            )

        # Fan-out width is the page size; num_items caps it
        joined = await asyncio.gather(*(self.join(row, with_contact_session) for row in rows))
        return PaginationResult[EnrichedConversation](
            page=[row for row in joined if row is not None],
            continue_cursor=result.continue_cursor,
            is_done=result.is_done,
        )
