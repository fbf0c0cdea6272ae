"""Knowledge base models for support_desk.

Uploaded documents are converted to text and indexed per organization;
the organization id doubles as the index namespace.
"""

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field

__all__ = [
    "AddFileResult",
    "EntryMetadata",
    "EntryStatus",
    "IndexAddResult",
    "KnowledgeEntryDTO",
    "PublicFile",
    "SearchEntry",
    "SearchResult",
]


class EntryStatus(StrEnum):
    """Indexing status reported by the retrieval index."""

    PENDING = "pending"
    READY = "ready"
    REPLACED = "replaced"


class EntryMetadata(BaseModel, frozen=True):
    """Metadata stored alongside each indexed document.

    Attributes:
        storage_id: Blob holding the original bytes, used to delete it later
        uploaded_by: Organization id of the uploader
        filename: Display filename
        category: Optional grouping chosen at upload time
    """

    storage_id: str
    uploaded_by: str
    filename: str
    category: str | None = None


class KnowledgeEntryDTO(BaseModel, frozen=True):
    """One indexed document in a namespace."""

    entry_id: str
    namespace: str
    key: str
    title: str | None = None
    status: EntryStatus = EntryStatus.PENDING
    content_hash: str
    metadata: EntryMetadata
    created_at: int = Field(description="Epoch milliseconds")
    schema_version: int = Field(default=1)


class IndexAddResult(BaseModel, frozen=True):
    """Outcome of adding text to the index.

    ``created`` is False when an entry with the same content hash already
    exists in the namespace, under any key. ``replaced_storage_id`` names
    the blob of an entry this add superseded under the same key; nothing
    references it any more.
    """

    entry_id: str
    created: bool
    replaced_storage_id: str | None = None


class SearchEntry(BaseModel, frozen=True):
    """One ranked hit returned by the index."""

    entry_id: str
    title: str | None = None
    text: str
    score: float


class SearchResult(BaseModel, frozen=True):
    """Ranked entries plus their concatenated text."""

    entries: list[SearchEntry] = Field(default_factory=list)
    text: str = ""


class PublicFile(BaseModel, frozen=True):
    """File record shown in the dashboard's knowledge base table."""

    id: str
    name: str
    type: str
    size: str
    status: Literal["ready", "processing", "error"]
    url: str | None = None
    category: str | None = None


class AddFileResult(BaseModel, frozen=True):
    """Result of uploading a file."""

    entry_id: str
    url: str | None = None
    created: bool = True
