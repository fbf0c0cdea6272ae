"""Internal domain entities and state machines for support_desk."""

from support_desk.domain.conversation import (
    MANUAL_STATUS_CYCLE,
    Conversation,
    next_manual_status,
)
from support_desk.domain.message import DisplayMessage, Viewer, display_role, for_display
from support_desk.domain.widget import (
    InvalidTransitionError,
    WidgetEvent,
    WidgetScreen,
    WidgetState,
)

__all__ = [
    "MANUAL_STATUS_CYCLE",
    "Conversation",
    "DisplayMessage",
    "InvalidTransitionError",
    "Viewer",
    "WidgetEvent",
    "WidgetScreen",
    "WidgetState",
    "display_role",
    "for_display",
    "next_manual_status",
]
