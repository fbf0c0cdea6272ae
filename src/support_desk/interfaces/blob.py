"""Blob store interface for support_desk."""

from typing import ClassVar, Protocol, runtime_checkable

__all__ = [
    "BlobStoreInterface",
]


@runtime_checkable
class BlobStoreInterface(Protocol):
    """Contract for raw upload storage."""

    config_class: ClassVar[type | None] = None

    async def store(self, data: bytes, mime_type: str) -> str:
        """Store bytes and return their storage id."""
        ...

    async def get(self, storage_id: str) -> bytes | None:
        """Read stored bytes, None if the blob does not exist."""
        ...

    async def get_url(self, storage_id: str) -> str | None:
        """Retrieval URL for a blob, None if the blob does not exist."""
        ...

    async def delete(self, storage_id: str) -> None:
        """Delete a blob. Deleting a missing blob is not an error."""
        ...

    async def stat_size(self, storage_id: str) -> int | None:
        """Size of a blob in bytes, None if the blob does not exist."""
        ...
