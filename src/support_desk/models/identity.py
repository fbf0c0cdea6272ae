"""Operator identity as produced by the authentication provider."""

from pydantic import BaseModel, Field

__all__ = [
    "Identity",
    "OrganizationValidation",
]


class Identity(BaseModel, frozen=True):
    """Authenticated operator identity.

    Attributes:
        user_id: Opaque subject identifier
        org_id: Active organization, None when the user belongs to no tenant
        family_name: Used as the author name of operator messages
    """

    user_id: str
    org_id: str | None = Field(default=None)
    name: str | None = None
    family_name: str | None = None
    email: str | None = None


class OrganizationValidation(BaseModel, frozen=True):
    """Result of checking a widget's organization id."""

    valid: bool
    reason: str | None = None
