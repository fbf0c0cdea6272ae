"""Widget bootstrap and navigation driver.

Runs the validation steps the embeddable widget performs on load
(organization, then stored contact session) and the actions that move it
between screens, feeding each outcome into the ``WidgetState`` machine.
"""

from dataclasses import replace

from support_desk.domain.widget import WidgetEvent, WidgetState
from support_desk.errors import SupportDeskError
from support_desk.logging import get_logger
from support_desk.models.session import ContactSessionMetadata
from support_desk.services.contact_sessions import ContactSessionService
from support_desk.services.conversations import ConversationService
from support_desk.services.identity import IdentityResolver

__all__ = [
    "WidgetController",
]

logger = get_logger(__name__)


class WidgetController:
    """Drives a widget through bootstrap, sign-in and conversation start.

    Every method takes the current state and returns the next one.

    Example:
        controller = WidgetController(identities, sessions, conversations)
        state = await controller.bootstrap(WidgetState(), org_id, stored_session_id)
    """

    def __init__(
        self,
        identities: IdentityResolver,
        sessions: ContactSessionService,
        conversations: ConversationService,
    ) -> None:
        self._identities = identities
        self._sessions = sessions
        self._conversations = conversations

    async def bootstrap(
        self,
        state: WidgetState,
        organization_id: str | None,
        contact_session_id: str | None = None,
    ) -> WidgetState:
        """Validate the organization, then the stored session.

        Args:
            state: Current state, normally on the loading screen
            organization_id: Organization from the embed configuration
            contact_session_id: Session id remembered by the browser for this organization

        Returns:
            State on the error, auth or selection screen
        """
        state = state.with_loading_message("Finding organization ID...")
        if not organization_id:
            return state.dispatch(
                WidgetEvent.ORGANIZATION_MISSING,
                error_message="Organization ID is required",
            )

        state = state.with_loading_message("Validating organization...")
        try:
            validation = await self._identities.validate_organization(organization_id)
        except Exception as e:
            logger.warning("widget_organization_check_failed", error=str(e))
            return state.dispatch(
                WidgetEvent.ORGANIZATION_INVALID,
                error_message="Unable to validate organization",
            )

        if not validation.valid:
            return state.dispatch(
                WidgetEvent.ORGANIZATION_INVALID,
                error_message=validation.reason or "Invalid configuration",
            )
        state = replace(
            state,
            organization_id=organization_id,
            loading_message="Finding contact session ID...",
        )

        if not contact_session_id:
            return state.dispatch(WidgetEvent.SESSION_INVALID)

        state = state.with_loading_message("Validating session...")
        session_valid = await self._session_is_valid(organization_id, contact_session_id)
        if not session_valid:
            return state.dispatch(WidgetEvent.SESSION_INVALID)
        return state.dispatch(WidgetEvent.SESSION_VALID, contact_session_id=contact_session_id)

    async def sign_in(
        self,
        state: WidgetState,
        name: str,
        email: str,
        metadata: ContactSessionMetadata | None = None,
    ) -> WidgetState:
        """Create a contact session from the auth form and move to selection."""
        if not state.organization_id:
            return state.dispatch(WidgetEvent.FAILED, error_message="Organization ID is required")

        session = await self._sessions.create(state.organization_id, name, email, metadata)
        return state.dispatch(WidgetEvent.SESSION_CREATED, contact_session_id=session.id)

    async def start_conversation(self, state: WidgetState) -> WidgetState:
        """Open a conversation from the selection screen.

        Without a session the visitor is sent back to the auth screen; a
        rejected creation does the same.
        """
        if not state.organization_id:
            return state.dispatch(
                WidgetEvent.ORGANIZATION_MISSING,
                error_message="Organization ID is required",
            )
        if not state.contact_session_id:
            return state.dispatch(WidgetEvent.SESSION_REQUIRED)

        try:
            conversation_id = await self._conversations.create(
                state.organization_id, state.contact_session_id
            )
        except SupportDeskError as e:
            logger.info("widget_conversation_start_failed", code=e.code.value)
            return state.dispatch(WidgetEvent.CONVERSATION_FAILED)

        return state.dispatch(WidgetEvent.CONVERSATION_STARTED, conversation_id=conversation_id)

    async def _session_is_valid(self, organization_id: str, contact_session_id: str) -> bool:
        try:
            session = await self._sessions.require(contact_session_id)
        except SupportDeskError:
            return False
        # A session remembered for another organization does not carry over
        return session.organization_id == organization_id
