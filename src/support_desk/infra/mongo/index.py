"""MongoDB retrieval index for support_desk.

Entries are split into overlapping chunks, embedded, and stored next to
their entry document. Search embeds the query and ranks the namespace's
chunks by in-memory cosine similarity.
"""

from typing import Any, Self

import numpy as np
from langchain_text_splitters import RecursiveCharacterTextSplitter

from support_desk.config import MongoSettings
from support_desk.infra.mongo.client import MongoClient
from support_desk.infra.mongo.cursors import after_filter, decode_cursor, encode_cursor
from support_desk.interfaces.embedding import EmbeddingServiceInterface
from support_desk.interfaces.index import RetrievalIndexInterface
from support_desk.logging import get_logger
from support_desk.models.knowledge import (
    EntryMetadata,
    EntryStatus,
    IndexAddResult,
    KnowledgeEntryDTO,
    SearchEntry,
    SearchResult,
)
from support_desk.models.pagination import PaginationOpts, PaginationResult
from support_desk.utils.clock import Clock, now_ms
from support_desk.utils.hashing import generate_id

__all__ = [
    "MongoRetrievalIndex",
    "chunk_text",
]

logger = get_logger(__name__)

_ENTRY_SORT = [("created_at", -1), ("entry_id", -1)]
_ENTRY_KEYS = ["created_at", "entry_id"]

ENTRY_SEPARATOR = "\n\n---\n\n"


def chunk_text(text: str, size: int, overlap: int) -> list[str]:
    """Split text into chunks of at most ``size`` characters.

    Splits fall on paragraph, line and word boundaries before characters,
    and consecutive chunks share up to ``overlap`` characters.
    """
    text = text.strip()
    if not text:
        return []
    splitter = RecursiveCharacterTextSplitter(
        chunk_size=size,
        chunk_overlap=min(overlap, size // 2),
        length_function=len,
    )
    return splitter.split_text(text)


class MongoRetrievalIndex(RetrievalIndexInterface):
    """MongoDB implementation of RetrievalIndexInterface.

    Content is deduplicated by hash within a namespace, whatever the key.
    New content under an existing ``(namespace, key)`` replaces that entry.
    """

    config_class = MongoSettings

    def __init__(
        self,
        client: MongoClient,
        embedding: EmbeddingServiceInterface,
        chunk_size: int = 1200,
        chunk_overlap: int = 200,
        clock: Clock = now_ms,
    ) -> None:
        """Initialize index.

        Args:
            client: Connected MongoClient instance
            embedding: Embedding service for chunks and queries
            chunk_size: Maximum characters per chunk
            chunk_overlap: Characters shared by consecutive chunks
            clock: Source of the current epoch-millisecond time
        """
        self._client = client
        self._embedding = embedding
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap
        self._clock = clock
        self._owns_client = False

    @classmethod
    async def from_config(
        cls,
        config: MongoSettings,
        embedding: EmbeddingServiceInterface,
        chunk_size: int = 1200,
        chunk_overlap: int = 200,
    ) -> Self:
        """Factory method for SupportDesk instantiation.

        Args:
            config: MongoDB settings
            embedding: Embedding service for chunks and queries
            chunk_size: Maximum characters per chunk
            chunk_overlap: Characters shared by consecutive chunks
        """
        client = MongoClient(config)
        await client.connect()
        await client.create_indexes()

        instance = cls(client, embedding, chunk_size=chunk_size, chunk_overlap=chunk_overlap)
        instance._owns_client = True
        return instance

    @classmethod
    async def from_dict(
        cls,
        config: dict[str, Any],
        embedding: EmbeddingServiceInterface,
        chunk_size: int = 1200,
        chunk_overlap: int = 200,
    ) -> Self:
        """Factory method for custom config dict."""
        return await cls.from_config(
            MongoSettings(**config), embedding, chunk_size=chunk_size, chunk_overlap=chunk_overlap
        )

    async def close(self) -> None:
        """Close owned resources."""
        if self._owns_client and self._client:
            await self._client.disconnect()

    async def add(
        self,
        namespace: str,
        text: str,
        key: str,
        metadata: EntryMetadata,
        content_hash: str,
        title: str | None = None,
    ) -> IndexAddResult:
        entries = self._client.knowledge_entries
        live = EntryStatus.READY.value
        duplicate = await entries.find_one(
            {"namespace": namespace, "content_hash": content_hash, "status": live}
        )
        if duplicate is not None:
            logger.debug(
                "index_entry_duplicate",
                namespace=namespace,
                key=key,
                entry_id=duplicate["entry_id"],
            )
            return IndexAddResult(entry_id=duplicate["entry_id"], created=False)

        existing = await entries.find_one({"namespace": namespace, "key": key, "status": live})

        chunks = chunk_text(text, self._chunk_size, self._chunk_overlap)
        vectors = await self._embedding.embed_batch(chunks) if chunks else []

        entry = KnowledgeEntryDTO(
            entry_id=generate_id(),
            namespace=namespace,
            key=key,
            title=title,
            status=EntryStatus.PENDING,
            content_hash=content_hash,
            metadata=metadata,
            created_at=self._clock(),
        )
        await entries.insert_one(self._entry_to_doc(entry))
        if chunks:
            await self._client.knowledge_chunks.insert_many(
                [
                    {
                        "entry_id": entry.entry_id,
                        "namespace": namespace,
                        "position": i,
                        "text": chunk,
                        "embedding": vector,
                    }
                    for i, (chunk, vector) in enumerate(zip(chunks, vectors, strict=True))
                ]
            )
        await entries.update_one(
            {"entry_id": entry.entry_id},
            {"$set": {"status": EntryStatus.READY.value}},
        )

        replaced_storage_id = None
        if existing is not None:
            replaced_storage_id = existing["metadata"].get("storage_id")
            await entries.update_one(
                {"entry_id": existing["entry_id"]},
                {"$set": {"status": EntryStatus.REPLACED.value}},
            )
            await self._client.knowledge_chunks.delete_many({"entry_id": existing["entry_id"]})
            logger.info(
                "index_entry_replaced",
                namespace=namespace,
                key=key,
                previous_entry_id=existing["entry_id"],
            )

        logger.info(
            "index_entry_added",
            namespace=namespace,
            entry_id=entry.entry_id,
            chunks=len(chunks),
        )
        return IndexAddResult(
            entry_id=entry.entry_id,
            created=True,
            replaced_storage_id=replaced_storage_id,
        )

    async def search(self, namespace: str, query: str, limit: int) -> SearchResult:
        """Rank the namespace's chunks against the query.

        The best ``limit`` chunks are grouped by entry; entries are ordered
        by their best chunk score and their chunks by position.
        """
        chunks = [
            doc
            async for doc in self._client.knowledge_chunks.find({"namespace": namespace})
            if doc.get("embedding")
        ]
        if not chunks:
            return SearchResult()

        query_vec = np.array(await self._embedding.embed(query), dtype=float)
        query_norm = np.linalg.norm(query_vec)
        if query_norm == 0:
            return SearchResult()

        matrix = np.array([doc["embedding"] for doc in chunks], dtype=float)
        norms = np.linalg.norm(matrix, axis=1)
        norms[norms == 0] = np.inf
        scores = matrix @ query_vec / (norms * query_norm)

        top = np.argsort(-scores)[:limit]
        grouped: dict[str, list[tuple[int, str, float]]] = {}
        for i in top:
            doc = chunks[int(i)]
            grouped.setdefault(doc["entry_id"], []).append(
                (doc["position"], doc["text"], float(scores[int(i)]))
            )

        titles = await self._titles(list(grouped))
        entries = []
        for entry_id, hits in grouped.items():
            hits.sort(key=lambda h: h[0])
            entries.append(
                SearchEntry(
                    entry_id=entry_id,
                    title=titles.get(entry_id),
                    text="\n\n".join(h[1] for h in hits),
                    score=max(h[2] for h in hits),
                )
            )

        logger.debug("index_searched", namespace=namespace, entries=len(entries))
        return SearchResult(
            entries=entries,
            text=ENTRY_SEPARATOR.join(e.text for e in entries),
        )

    async def get_entry(self, entry_id: str) -> KnowledgeEntryDTO | None:
        doc = await self._client.knowledge_entries.find_one({"entry_id": entry_id})
        return self._doc_to_entry(doc) if doc else None

    async def delete(self, entry_id: str) -> None:
        await self._client.knowledge_chunks.delete_many({"entry_id": entry_id})
        await self._client.knowledge_entries.delete_one({"entry_id": entry_id})
        logger.info("index_entry_deleted", entry_id=entry_id)

    async def list_entries(
        self,
        namespace: str,
        opts: PaginationOpts,
        category: str | None = None,
    ) -> PaginationResult[KnowledgeEntryDTO]:
        filter_: dict[str, Any] = {
            "namespace": namespace,
            "status": {"$ne": EntryStatus.REPLACED.value},
        }
        if category is not None:
            filter_["metadata.category"] = category
        if opts.cursor:
            filter_.update(after_filter(decode_cursor(opts.cursor), _ENTRY_KEYS, descending=True))

        cursor = (
            self._client.knowledge_entries.find(filter_)
            .sort(_ENTRY_SORT)
            .limit(opts.num_items + 1)
        )
        docs = [doc async for doc in cursor]

        has_more = len(docs) > opts.num_items
        docs = docs[: opts.num_items]
        continue_cursor = opts.cursor
        if docs:
            last = docs[-1]
            continue_cursor = encode_cursor(
                {"created_at": last["created_at"], "entry_id": last["entry_id"]}
            )

        return PaginationResult[KnowledgeEntryDTO](
            page=[self._doc_to_entry(doc) for doc in docs],
            continue_cursor=continue_cursor,
            is_done=not has_more,
        )

    async def _titles(self, entry_ids: list[str]) -> dict[str, str | None]:
        cursor = self._client.knowledge_entries.find({"entry_id": {"$in": entry_ids}})
        return {doc["entry_id"]: doc.get("title") async for doc in cursor}

    # Document conversion helpers
    @staticmethod
    def _entry_to_doc(entry: KnowledgeEntryDTO) -> dict[str, Any]:
        return {
            "entry_id": entry.entry_id,
            "namespace": entry.namespace,
            "key": entry.key,
            "title": entry.title,
            "status": entry.status.value,
            "content_hash": entry.content_hash,
            "metadata": entry.metadata.model_dump(),
            "created_at": entry.created_at,
            "schema_version": entry.schema_version,
        }

    @staticmethod
    def _doc_to_entry(doc: dict[str, Any]) -> KnowledgeEntryDTO:
        return KnowledgeEntryDTO(
            entry_id=doc["entry_id"],
            namespace=doc["namespace"],
            key=doc["key"],
            title=doc.get("title"),
            status=EntryStatus(doc["status"]),
            content_hash=doc["content_hash"],
            metadata=EntryMetadata(**doc["metadata"]),
            created_at=doc["created_at"],
            schema_version=doc.get("schema_version", 1),
        )
