"""Thread store interface for support_desk.

Threads are ordered message logs owned outside the conversation store;
a conversation only keeps the thread id.
"""

from typing import ClassVar, Literal, Protocol, runtime_checkable

from support_desk.models.message import MessageDTO, NewMessage
from support_desk.models.pagination import PaginationOpts, PaginationResult

__all__ = [
    "ThreadStoreInterface",
]


@runtime_checkable
class ThreadStoreInterface(Protocol):
    """Contract for message thread persistence."""

    config_class: ClassVar[type | None] = None

    async def create_thread(self, owner_key: str) -> str:
        """Open a new empty thread.

        Args:
            owner_key: Free-form owner reference (the contact session id)

        Returns:
            Thread ID
        """
        ...

    async def save_message(self, thread_id: str, message: NewMessage) -> MessageDTO:
        """Append a message to the end of a thread.

        Args:
            thread_id: Target thread
            message: Message to append

        Returns:
            The stored message with its id and order assigned
        """
        ...

    async def list_messages(
        self,
        thread_id: str,
        opts: PaginationOpts,
        order: Literal["asc", "desc"] = "desc",
    ) -> PaginationResult[MessageDTO]:
        """Page through a thread's messages.

        Args:
            thread_id: Thread to read
            opts: Page request
            order: "desc" for newest first, "asc" for oldest first

        Returns:
            One page of messages
        """
        ...
