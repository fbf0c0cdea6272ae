"""Contact session models for support_desk.

A contact session is the anonymous, expiring credential that identifies one
widget visitor within one organization.
"""

from pydantic import BaseModel, Field

__all__ = [
    "ContactSessionDTO",
    "ContactSessionMetadata",
    "SessionValidation",
]


class ContactSessionMetadata(BaseModel, frozen=True):
    """Browser details captured by the widget when the visitor signs in.

    All fields are optional; the widget sends whatever the browser exposes.
    """

    user_agent: str | None = None
    language: str | None = None
    languages: str | None = None
    platform: str | None = None
    vendor: str | None = None
    screen_resolution: str | None = None
    viewport_size: str | None = None
    timezone: str | None = None
    timezone_offset: int | None = None
    cookie_enabled: bool | None = None
    referrer: str | None = None
    current_url: str | None = None


class ContactSessionDTO(BaseModel, frozen=True):
    """Public contact session data transfer object.

    Attributes:
        id: Session identifier handed to the widget
        organization_id: Tenant the session was opened for
        name: Visitor name captured by the auth form
        email: Visitor email captured by the auth form
        expires_at: Expiry in epoch milliseconds
        metadata: Browser details
        created_at: Creation time in epoch milliseconds
    """

    id: str
    organization_id: str
    name: str
    email: str
    expires_at: int = Field(description="Epoch milliseconds")
    metadata: ContactSessionMetadata = Field(default_factory=ContactSessionMetadata)
    created_at: int = Field(description="Epoch milliseconds")
    schema_version: int = Field(default=1)

    def is_valid_at(self, now: int) -> bool:
        """A session is valid iff its expiry is strictly in the future."""
        return self.expires_at > now


class SessionValidation(BaseModel, frozen=True):
    """Result of validating a contact session id."""

    valid: bool
    reason: str | None = None
