"""Internal Conversation entity for support_desk.

This module contains the Conversation domain model and its status machine.
"""

from dataclasses import dataclass

from support_desk.models.conversation import ConversationDTO, ConversationStatus

__all__ = [
    "MANUAL_STATUS_CYCLE",
    "Conversation",
    "next_manual_status",
]

# The dashboard's status button walks this cycle; any other write is an override.
MANUAL_STATUS_CYCLE: dict[ConversationStatus, ConversationStatus] = {
    ConversationStatus.UNRESOLVED: ConversationStatus.ESCALATED,
    ConversationStatus.ESCALATED: ConversationStatus.RESOLVED,
    ConversationStatus.RESOLVED: ConversationStatus.UNRESOLVED,
}


def next_manual_status(status: ConversationStatus) -> ConversationStatus:
    """Status the manual toggle moves to from ``status``."""
    return MANUAL_STATUS_CYCLE[status]


@dataclass
class Conversation:
    """Internal Conversation entity with business rules.

    This is a mutable internal representation used by the services.
    Convert to ConversationDTO for persistence and external use.
    """

    id: str
    organization_id: str
    contact_session_id: str
    thread_id: str
    created_at: int
    status: ConversationStatus = ConversationStatus.UNRESOLVED

    @property
    def accepts_messages(self) -> bool:
        """Resolved conversations are closed to new messages."""
        return self.status != ConversationStatus.RESOLVED

    @property
    def escalates_on_operator_reply(self) -> bool:
        """The first operator reply on an unresolved conversation escalates it."""
        return self.status == ConversationStatus.UNRESOLVED

    def belongs_to(self, organization_id: str) -> bool:
        return self.organization_id == organization_id

    def is_owned_by(self, contact_session_id: str) -> bool:
        return self.contact_session_id == contact_session_id

    def toggled_status(self) -> ConversationStatus:
        return next_manual_status(self.status)

    def to_dto(self) -> ConversationDTO:
        """Convert to immutable DTO for persistence."""
        return ConversationDTO(
            id=self.id,
            organization_id=self.organization_id,
            contact_session_id=self.contact_session_id,
            status=self.status,
            thread_id=self.thread_id,
            created_at=self.created_at,
        )

    @classmethod
    def from_dto(cls, dto: ConversationDTO) -> "Conversation":
        """Create from DTO."""
        return cls(
            id=dto.id,
            organization_id=dto.organization_id,
            contact_session_id=dto.contact_session_id,
            thread_id=dto.thread_id,
            created_at=dto.created_at,
            status=dto.status,
        )
