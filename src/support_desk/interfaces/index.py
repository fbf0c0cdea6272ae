"""Retrieval index interface for support_desk.

The index stores extracted document text per namespace (organization id)
and answers ranked similarity searches inside one namespace.
"""

from typing import ClassVar, Protocol, runtime_checkable

from support_desk.models.knowledge import (
    EntryMetadata,
    IndexAddResult,
    KnowledgeEntryDTO,
    SearchResult,
)
from support_desk.models.pagination import PaginationOpts, PaginationResult

__all__ = [
    "RetrievalIndexInterface",
]


@runtime_checkable
class RetrievalIndexInterface(Protocol):
    """Contract for the knowledge base index."""

    config_class: ClassVar[type | None] = None

    async def add(
        self,
        namespace: str,
        text: str,
        key: str,
        metadata: EntryMetadata,
        content_hash: str,
        title: str | None = None,
    ) -> IndexAddResult:
        """Index text under ``key`` in ``namespace``.

        If an entry with the same content hash already exists in the
        namespace, whatever its key, nothing is indexed and ``created`` is
        False. New content under an existing key replaces that entry.

        Returns:
            Entry id, whether a new entry was created, and the storage id
            of a replaced entry
        """
        ...

    async def search(self, namespace: str, query: str, limit: int) -> SearchResult:
        """Return up to ``limit`` ranked entries from one namespace."""
        ...

    async def get_entry(self, entry_id: str) -> KnowledgeEntryDTO | None:
        """Get an entry by ID."""
        ...

    async def delete(self, entry_id: str) -> None:
        """Delete an entry and its indexed chunks."""
        ...

    async def list_entries(
        self,
        namespace: str,
        opts: PaginationOpts,
        category: str | None = None,
    ) -> PaginationResult[KnowledgeEntryDTO]:
        """Page through a namespace's entries, optionally restricted to a category.

        The category filter is part of the query, so pages are never
        shortened by it.
        """
        ...
