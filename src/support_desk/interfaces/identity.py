"""Identity provider interface for support_desk.

The core never issues tokens. An external authentication provider turns
request credentials into an operator identity and answers whether an
organization exists.
"""

from typing import Protocol, runtime_checkable

from support_desk.models.identity import Identity

__all__ = [
    "IdentityProviderInterface",
]


@runtime_checkable
class IdentityProviderInterface(Protocol):
    """Contract for the authentication provider."""

    async def get_user_identity(self, credentials: str) -> Identity | None:
        """Resolve request credentials to an identity.

        Args:
            credentials: Opaque token taken from the request

        Returns:
            Identity if the credentials are valid, None otherwise
        """
        ...

    async def organization_exists(self, organization_id: str) -> bool:
        """Check that an organization is registered with the provider."""
        ...
