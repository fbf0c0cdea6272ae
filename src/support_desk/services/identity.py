"""Identity resolution for dashboard operations.

Private operations trust only the organization carried by the operator's
identity; a client-supplied organization id is never used to authorize.
"""

from support_desk.errors import UnauthorizedError
from support_desk.interfaces.identity import IdentityProviderInterface
from support_desk.logging import get_logger
from support_desk.models.identity import Identity, OrganizationValidation

__all__ = [
    "IdentityResolver",
    "OrganizationMember",
]

logger = get_logger(__name__)


class OrganizationMember:
    """An identity that passed the organization check."""

    __slots__ = ("identity", "org_id")

    def __init__(self, identity: Identity, org_id: str) -> None:
        self.identity = identity
        self.org_id = org_id

    @property
    def agent_name(self) -> str | None:
        """Name recorded on messages this operator writes."""
        return self.identity.family_name or self.identity.name


class IdentityResolver:
    """Turns a resolved identity into an authorized organization member.

    Example:
        resolver = IdentityResolver(provider)
        member = resolver.require_member(identity)
        conversations = await storage.list_conversations(member.org_id, opts)
    """

    def __init__(self, provider: IdentityProviderInterface | None = None) -> None:
        self._provider = provider

    async def resolve(self, credentials: str) -> Identity | None:
        """Ask the provider who the credentials belong to."""
        if self._provider is None:
            raise RuntimeError("No identity provider configured")
        return await self._provider.get_user_identity(credentials)

    def require_member(self, identity: Identity | None) -> OrganizationMember:
        """Fail with UnauthorizedError unless the identity belongs to an organization."""
        if identity is None:
            logger.warning("identity_rejected", reason="missing_identity")
            raise UnauthorizedError("Identity not found")

        if not identity.org_id:
            logger.warning(
                "identity_rejected",
                reason="missing_organization",
                user_id=identity.user_id,
            )
            raise UnauthorizedError("Organization not found")

        return OrganizationMember(identity, identity.org_id)

    async def validate_organization(self, organization_id: str) -> OrganizationValidation:
        """Check a widget's organization id against the provider's directory."""
        if self._provider is None:
            raise RuntimeError("No identity provider configured")
        try:
            exists = await self._provider.organization_exists(organization_id)
        except Exception as e:
            logger.warning(
                "organization_lookup_failed",
                organization_id=organization_id,
                error=str(e),
            )
            exists = False

        if not exists:
            return OrganizationValidation(valid=False, reason="Organization not found")
        return OrganizationValidation(valid=True)
