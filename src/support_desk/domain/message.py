"""Presentation rules for thread messages.

Stored roles are absolute. Which side of the chat a message renders on
depends on who is looking, and that flip never touches the stored value.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from support_desk.models.message import MessageDTO, MessageRole

__all__ = [
    "DisplayMessage",
    "Viewer",
    "display_role",
    "for_display",
]


class Viewer(StrEnum):
    """Who is rendering the thread."""

    OPERATOR = "operator"
    CONTACT = "contact"


def display_role(role: MessageRole, viewer: Viewer) -> MessageRole:
    """Role used for visual placement.

    Operators see contact messages on the opposite side from their own, so
    ``user`` and ``assistant`` swap. Contacts see stored roles unchanged.
    """
    if viewer == Viewer.CONTACT:
        return role
    if role == MessageRole.USER:
        return MessageRole.ASSISTANT
    if role == MessageRole.ASSISTANT:
        return MessageRole.USER
    return role


@dataclass(frozen=True)
class DisplayMessage:
    """A stored message paired with its placement for one viewer."""

    message: MessageDTO
    placement: MessageRole

    @property
    def from_contact(self) -> bool:
        return self.message.role == MessageRole.USER


def for_display(messages: Iterable[MessageDTO], viewer: Viewer) -> list[DisplayMessage]:
    """Pair each message with its placement, keeping the input order."""
    return [DisplayMessage(message=m, placement=display_role(m.role, viewer)) for m in messages]
