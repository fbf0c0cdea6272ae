"""Contact session service for support_desk.

This module validates and creates the anonymous credentials used by the
widget. Every public operation re-fetches and re-checks its session here.
"""

from support_desk.errors import UnauthorizedError
from support_desk.interfaces.storage import StorageInterface
from support_desk.logging import get_logger
from support_desk.models.session import (
    ContactSessionDTO,
    ContactSessionMetadata,
    SessionValidation,
)
from support_desk.utils.clock import Clock, now_ms
from support_desk.utils.hashing import generate_id

__all__ = [
    "ContactSessionService",
]

logger = get_logger(__name__)

INVALID_SESSION_MESSAGE = "Invalid session"


class ContactSessionService:
    """Creates and validates contact sessions.

    A session is valid iff it exists and ``expires_at`` is strictly in the
    future. Nothing is cached between calls: expiry is checked against the
    clock every time.

    Example:
        service = ContactSessionService(storage, ttl_ms=24 * 3600 * 1000)
        session = await service.require(contact_session_id)
    """

    def __init__(
        self,
        storage: StorageInterface,
        ttl_ms: int,
        clock: Clock = now_ms,
    ) -> None:
        """Initialize service with dependencies.

        Args:
            storage: Storage interface holding contact sessions
            ttl_ms: Lifetime of new sessions in milliseconds
            clock: Source of the current epoch-millisecond time
        """
        self._storage = storage
        self._ttl_ms = ttl_ms
        self._clock = clock

    async def create(
        self,
        organization_id: str,
        name: str,
        email: str,
        metadata: ContactSessionMetadata | None = None,
    ) -> ContactSessionDTO:
        """Open a session for a visitor who submitted the widget's auth form."""
        now = self._clock()
        session = ContactSessionDTO(
            id=generate_id(),
            organization_id=organization_id,
            name=name,
            email=email,
            expires_at=now + self._ttl_ms,
            metadata=metadata or ContactSessionMetadata(),
            created_at=now,
        )
        await self._storage.save_contact_session(session)
        logger.info(
            "contact_session_created",
            contact_session_id=session.id,
            organization_id=organization_id,
            email=email,
        )
        return session

    async def get_session(self, contact_session_id: str) -> ContactSessionDTO | None:
        return await self._storage.get_contact_session(contact_session_id)

    async def validate(self, contact_session_id: str) -> SessionValidation:
        """Check a stored session id without raising."""
        session = await self.get_session(contact_session_id)
        if session is None:
            return SessionValidation(valid=False, reason="Contact session not found")
        if not session.is_valid_at(self._clock()):
            return SessionValidation(valid=False, reason="Contact session expired")
        return SessionValidation(valid=True)

    async def require(self, contact_session_id: str) -> ContactSessionDTO:
        """Return the session or fail with UnauthorizedError.

        Missing and expired sessions are told apart in the log only; the
        caller always gets the same error.
        """
        session = await self.get_session(contact_session_id)
        if session is None:
            logger.warning(
                "contact_session_rejected",
                contact_session_id=contact_session_id,
                reason="missing",
            )
            raise UnauthorizedError(INVALID_SESSION_MESSAGE)

        if not session.is_valid_at(self._clock()):
            logger.warning(
                "contact_session_rejected",
                contact_session_id=contact_session_id,
                reason="expired",
                expires_at=session.expires_at,
            )
            raise UnauthorizedError(INVALID_SESSION_MESSAGE)

        return session
