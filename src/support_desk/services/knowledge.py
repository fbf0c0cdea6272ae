"""Knowledge ingestion service for support_desk.

This module handles the upload pipeline (store, extract, index, dedup),
file deletion and listing for the dashboard, and the search-and-synthesize
step behind the support agent's search tool.
"""

import asyncio

from support_desk.errors import InternalError, NotFoundError, UnauthorizedError
from support_desk.interfaces.blob import BlobStoreInterface
from support_desk.interfaces.index import RetrievalIndexInterface
from support_desk.interfaces.llm import LLMInterface
from support_desk.logging import get_logger
from support_desk.models.identity import Identity
from support_desk.models.knowledge import (
    AddFileResult,
    EntryMetadata,
    EntryStatus,
    KnowledgeEntryDTO,
    PublicFile,
    SearchResult,
)
from support_desk.models.llm import ModelTier, PromptMessage
from support_desk.models.pagination import PaginationOpts, PaginationResult
from support_desk.services.identity import IdentityResolver
from support_desk.services.prompts import SEARCH_INTERPRETER_PROMPT
from support_desk.services.text_extraction import TextExtractor
from support_desk.utils.files import file_type_label, format_size, guess_mime_type
from support_desk.utils.hashing import content_hash

__all__ = [
    "KnowledgeService",
    "build_search_context",
]

logger = get_logger(__name__)

_STATUS_DISPLAY = {
    EntryStatus.READY: "ready",
    EntryStatus.PENDING: "processing",
}


def build_search_context(result: SearchResult) -> str:
    """Context block handed to the answer model: entry titles, then the matched text."""
    titles = ", ".join(entry.title for entry in result.entries if entry.title)
    return f"Found results in {titles}. Here is the context:\n\n{result.text}"


class KnowledgeService:
    """Service for the organization-scoped knowledge base.

    The organization id is the index namespace, so every operation is
    confined to the caller's tenant.

    Example:
        service = KnowledgeService(blobs, index, llm, identities)
        result = await service.add_file(identity, "faq.txt", None, data)
        page = await service.list_files(identity, PaginationOpts())
    """

    def __init__(
        self,
        blobs: BlobStoreInterface,
        index: RetrievalIndexInterface,
        llm: LLMInterface,
        identities: IdentityResolver,
        search_limit: int = 5,
    ) -> None:
        """Initialize service with dependencies.

        Args:
            blobs: Raw upload storage
            index: Retrieval index partitioned by namespace
            llm: Model used for extraction and answer synthesis
            identities: Operator identity resolver
            search_limit: Entries retrieved per search
        """
        self._blobs = blobs
        self._index = index
        self._llm = llm
        self._identities = identities
        self._search_limit = search_limit
        self._extractor = TextExtractor(llm)

    async def add_file(
        self,
        identity: Identity | None,
        filename: str,
        mime_type: str | None,
        data: bytes,
        category: str | None = None,
    ) -> AddFileResult:
        """Store, extract and index an uploaded file.

        When the organization already has the same bytes under any filename,
        the blob stored by this call is deleted again and the existing
        entry id is returned. A new upload under an existing filename
        replaces that entry and deletes its blob. Unsupported types are
        rejected before anything is stored, and the new blob is deleted
        again when extraction or indexing fails.

        Args:
            identity: Caller identity
            filename: Original filename, used as index key and title
            mime_type: Caller-declared MIME type, guessed when empty
            data: Raw file bytes
            category: Optional grouping for listing

        Returns:
            Entry id, retrieval URL and whether a new entry was created

        Raises:
            InternalError: If the MIME type is not supported
        """
        member = self._identities.require_member(identity)
        resolved_type = guess_mime_type(filename, data, declared=mime_type)

        if not self._extractor.supports(resolved_type):
            logger.warning(
                "file_type_unsupported",
                organization_id=member.org_id,
                filename=filename,
                mime_type=resolved_type,
            )
            raise InternalError("Unsupported MIME type")

        storage_id = await self._blobs.store(data, resolved_type)
        try:
            url = await self._blobs.get_url(storage_id)
            text = await self._extractor.extract(data, resolved_type, filename, url=url)
            result = await self._index.add(
                namespace=member.org_id,
                text=text,
                key=filename,
                title=filename,
                metadata=EntryMetadata(
                    storage_id=storage_id,
                    uploaded_by=member.org_id,
                    filename=filename,
                    category=category,
                ),
                content_hash=content_hash(data),
            )
        except Exception:
            logger.warning(
                "file_add_failed_blob_deleted",
                organization_id=member.org_id,
                filename=filename,
                storage_id=storage_id,
            )
            await self._blobs.delete(storage_id)
            raise

        if not result.created:
            logger.info(
                "file_duplicate_skipped",
                organization_id=member.org_id,
                filename=filename,
                entry_id=result.entry_id,
            )
            await self._blobs.delete(storage_id)
            url = await self._existing_url(result.entry_id)
        else:
            logger.info(
                "file_added",
                organization_id=member.org_id,
                filename=filename,
                entry_id=result.entry_id,
                mime_type=resolved_type,
            )
            if result.replaced_storage_id:
                await self._blobs.delete(result.replaced_storage_id)
                logger.info(
                    "file_replaced_blob_deleted",
                    organization_id=member.org_id,
                    filename=filename,
                    storage_id=result.replaced_storage_id,
                )

        return AddFileResult(entry_id=result.entry_id, url=url, created=result.created)

    async def delete_file(self, identity: Identity | None, entry_id: str) -> None:
        """Delete an entry and its blob.

        The blob goes first so a failed index deletion does not strand storage.

        Raises:
            NotFoundError: Entry does not exist
            UnauthorizedError: Entry was uploaded by another organization
        """
        member = self._identities.require_member(identity)
        entry = await self._index.get_entry(entry_id)
        if entry is None:
            raise NotFoundError("Entry not found")

        if entry.metadata.uploaded_by != member.org_id:
            logger.warning(
                "file_delete_rejected",
                entry_id=entry_id,
                organization_id=member.org_id,
                reason="organization_mismatch",
            )
            raise UnauthorizedError("Invalid Organization ID")

        if entry.metadata.storage_id:
            await self._blobs.delete(entry.metadata.storage_id)
        await self._index.delete(entry_id)
        logger.info("file_deleted", entry_id=entry_id, organization_id=member.org_id)

    async def list_files(
        self,
        identity: Identity | None,
        opts: PaginationOpts,
        category: str | None = None,
    ) -> PaginationResult[PublicFile]:
        """Page through the caller's files as display records."""
        member = self._identities.require_member(identity)
        result = await self._index.list_entries(member.org_id, opts, category=category)
        files = await asyncio.gather(*(self._to_public_file(e) for e in result.page))
        return PaginationResult[PublicFile](
            page=list(files),
            continue_cursor=result.continue_cursor,
            is_done=result.is_done,
        )

    async def search(self, namespace: str, query: str) -> SearchResult:
        return await self._index.search(namespace, query, self._search_limit)

    async def search_answer(self, namespace: str, query: str) -> str:
        """Answer a question from the namespace's knowledge base.

        Retrieves the top entries and asks the fast model to phrase a
        conversational answer grounded in them.
        """
        result = await self.search(namespace, query)
        context = build_search_context(result)
        logger.debug(
            "knowledge_search",
            namespace=namespace,
            hits=len(result.entries),
        )
        return await self._llm.generate(
            SEARCH_INTERPRETER_PROMPT,
            [PromptMessage.user(f'User asked: "{query}"\n\nSearch results: {context}')],
            tier=ModelTier.FAST,
        )

    async def _to_public_file(self, entry: KnowledgeEntryDTO) -> PublicFile:
        storage_id = entry.metadata.storage_id
        size, url = await asyncio.gather(
            self._blobs.stat_size(storage_id),
            self._blobs.get_url(storage_id),
        )
        name = entry.metadata.filename or entry.key
        return PublicFile(
            id=entry.entry_id,
            name=name,
            type=file_type_label(name),
            size=format_size(size),
            status=_STATUS_DISPLAY.get(entry.status, "error"),
            url=url,
            category=entry.metadata.category,
        )

    async def _existing_url(self, entry_id: str) -> str | None:
        entry = await self._index.get_entry(entry_id)
        if entry is None:
            return None
        return await self._blobs.get_url(entry.metadata.storage_id)
