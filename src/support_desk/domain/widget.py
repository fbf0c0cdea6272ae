"""Widget screen state machine for support_desk.

The embeddable widget renders exactly one screen at a time. Which one is
decided by validation outcomes (organization, contact session) and by the
visitor's navigation. The full transition table lives here so the widget
client and its tests share one definition.
"""

from dataclasses import dataclass, replace
from enum import StrEnum

__all__ = [
    "TRANSITIONS",
    "InvalidTransitionError",
    "WidgetEvent",
    "WidgetScreen",
    "WidgetState",
]


class WidgetScreen(StrEnum):
    """Screens the widget can render."""

    LOADING = "loading"
    ERROR = "error"
    AUTH = "auth"
    SELECTION = "selection"
    CHAT = "chat"
    INBOX = "inbox"
    VOICE = "voice"
    CONTACT = "contact"


class WidgetEvent(StrEnum):
    """Inputs that drive screen changes."""

    ORGANIZATION_MISSING = "organization_missing"
    ORGANIZATION_INVALID = "organization_invalid"
    SESSION_VALID = "session_valid"
    SESSION_INVALID = "session_invalid"
    SESSION_CREATED = "session_created"
    SESSION_REQUIRED = "session_required"
    CONVERSATION_STARTED = "conversation_started"
    CONVERSATION_FAILED = "conversation_failed"
    CONVERSATION_OPENED = "conversation_opened"
    OPEN_INBOX = "open_inbox"
    OPEN_VOICE = "open_voice"
    OPEN_CONTACT = "open_contact"
    BACK = "back"
    FAILED = "failed"


_S = WidgetScreen
_E = WidgetEvent

TRANSITIONS: dict[tuple[WidgetScreen, WidgetEvent], WidgetScreen] = {
    # Bootstrap
    (_S.LOADING, _E.ORGANIZATION_MISSING): _S.ERROR,
    (_S.LOADING, _E.ORGANIZATION_INVALID): _S.ERROR,
    (_S.LOADING, _E.SESSION_VALID): _S.SELECTION,
    (_S.LOADING, _E.SESSION_INVALID): _S.AUTH,
    # Sign in
    (_S.AUTH, _E.SESSION_CREATED): _S.SELECTION,
    # Selection
    (_S.SELECTION, _E.CONVERSATION_STARTED): _S.CHAT,
    (_S.SELECTION, _E.CONVERSATION_FAILED): _S.AUTH,
    (_S.SELECTION, _E.SESSION_REQUIRED): _S.AUTH,
    (_S.SELECTION, _E.ORGANIZATION_MISSING): _S.ERROR,
    (_S.SELECTION, _E.OPEN_INBOX): _S.INBOX,
    (_S.SELECTION, _E.OPEN_VOICE): _S.VOICE,
    (_S.SELECTION, _E.OPEN_CONTACT): _S.CONTACT,
    # Inbox
    (_S.INBOX, _E.CONVERSATION_OPENED): _S.CHAT,
    (_S.INBOX, _E.BACK): _S.SELECTION,
    # Leaf screens
    (_S.CHAT, _E.BACK): _S.SELECTION,
    (_S.VOICE, _E.BACK): _S.SELECTION,
    (_S.CONTACT, _E.BACK): _S.SELECTION,
}

# Any screen can fall into the error screen.
for _screen in WidgetScreen:
    TRANSITIONS.setdefault((_screen, _E.FAILED), _S.ERROR)


class InvalidTransitionError(ValueError):
    """Raised when an event is not accepted on the current screen."""

    def __init__(self, screen: WidgetScreen, event: WidgetEvent) -> None:
        self.screen = screen
        self.event = event
        super().__init__(f"Event {event.value!r} not accepted on screen {screen.value!r}")


@dataclass(frozen=True)
class WidgetState:
    """Widget context: current screen plus the ids the screens share.

    The state is immutable; ``dispatch`` returns the next state.
    """

    screen: WidgetScreen = WidgetScreen.LOADING
    organization_id: str | None = None
    contact_session_id: str | None = None
    conversation_id: str | None = None
    error_message: str | None = None
    loading_message: str | None = None

    def can(self, event: WidgetEvent) -> bool:
        return (self.screen, event) in TRANSITIONS

    def dispatch(
        self,
        event: WidgetEvent,
        *,
        organization_id: str | None = None,
        contact_session_id: str | None = None,
        conversation_id: str | None = None,
        error_message: str | None = None,
    ) -> "WidgetState":
        """Apply ``event`` and return the resulting state.

        Raises:
            InvalidTransitionError: If the event is not valid on the current screen
        """
        target = TRANSITIONS.get((self.screen, event))
        if target is None:
            raise InvalidTransitionError(self.screen, event)

        changes: dict[str, object] = {"screen": target, "loading_message": None}
        if organization_id is not None:
            changes["organization_id"] = organization_id
        if contact_session_id is not None:
            changes["contact_session_id"] = contact_session_id
        if conversation_id is not None:
            changes["conversation_id"] = conversation_id
        if target == WidgetScreen.ERROR:
            changes["error_message"] = error_message or "Something went wrong"
        if event == WidgetEvent.BACK and self.screen == WidgetScreen.CHAT:
            changes["conversation_id"] = None
        if event in (WidgetEvent.SESSION_INVALID, WidgetEvent.SESSION_REQUIRED):
            changes["contact_session_id"] = None
        return replace(self, **changes)  # type: ignore[arg-type]

    def with_loading_message(self, message: str) -> "WidgetState":
        return replace(self, loading_message=message)
