"""Message models for support_desk.

Messages live in externally-owned threads; roles are stored in absolute
terms (contact is ``user``, operator or AI is ``assistant``).
"""

from enum import StrEnum

from pydantic import BaseModel, Field

__all__ = [
    "MessageDTO",
    "MessageRole",
    "NewMessage",
]


class MessageRole(StrEnum):
    """Absolute author role of a stored message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class NewMessage(BaseModel, frozen=True):
    """Message to append to a thread."""

    role: MessageRole
    content: str
    agent_name: str | None = Field(default=None, description="Operator or agent display name")


class MessageDTO(BaseModel, frozen=True):
    """Stored thread message.

    Attributes:
        id: Message identifier
        thread_id: Parent thread
        order: Position within the thread, strictly increasing
        role: Absolute author role
        content: Message text
        agent_name: Operator or agent that authored an assistant message
        created_at: Creation time in epoch milliseconds
    """

    id: str
    thread_id: str
    order: int
    role: MessageRole
    content: str
    agent_name: str | None = None
    created_at: int = Field(description="Epoch milliseconds")
    schema_version: int = Field(default=1)
