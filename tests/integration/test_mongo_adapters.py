"""Integration tests for the Mongo adapters on the in-memory client."""

import pytest
from conftest import NOW, ORG_ID, OTHER_ORG_ID, FakeClock
from mocks.mock_embedding import MockEmbeddingService
from mocks.mock_mongo import MockMongoClient

from support_desk.errors import BadRequestError, NotFoundError
from support_desk.infra.mongo.blobs import MongoBlobStore
from support_desk.infra.mongo.index import MongoRetrievalIndex, chunk_text
from support_desk.infra.mongo.repositories import MongoStorageRepository
from support_desk.infra.mongo.threads import MongoThreadStore
from support_desk.models.conversation import ConversationDTO, ConversationStatus
from support_desk.models.knowledge import EntryMetadata, EntryStatus
from support_desk.models.message import MessageRole, NewMessage
from support_desk.models.pagination import PaginationOpts
from support_desk.models.session import ContactSessionDTO, ContactSessionMetadata
from support_desk.utils.hashing import content_hash


@pytest.fixture
def mongo() -> MockMongoClient:
    return MockMongoClient()


def _conversation(i: int, created_at: int, org: str = ORG_ID) -> ConversationDTO:
    return ConversationDTO(
        id=f"conv_{i:02d}",
        organization_id=org,
        contact_session_id="session_1",
        thread_id=f"thread_{i}",
        created_at=created_at,
    )


class TestStorageRepository:
    """Tests for contact sessions and conversations."""

    @pytest.mark.asyncio
    async def test_session_roundtrip(self, mongo: MockMongoClient) -> None:
        repo = MongoStorageRepository(mongo)
        session = ContactSessionDTO(
            id="session_1",
            organization_id=ORG_ID,
            name="Ada",
            email="ada@example.com",
            expires_at=NOW + 1000,
            metadata=ContactSessionMetadata(language="en-US", screen_resolution="1920x1080"),
            created_at=NOW,
        )

        await repo.save_contact_session(session)

        assert await repo.get_contact_session("session_1") == session
        assert await repo.get_contact_session("missing") is None

    @pytest.mark.asyncio
    async def test_keyset_pages_cover_everything_once(self, mongo: MockMongoClient) -> None:
        repo = MongoStorageRepository(mongo)
        # Ties on created_at are broken by id
        for i in range(12):
            await repo.save_conversation(_conversation(i, NOW + (i // 3)))

        seen: list[str] = []
        opts = PaginationOpts(num_items=5)
        while True:
            result = await repo.list_conversations(ORG_ID, opts)
            seen.extend(c.id for c in result.page)
            if result.is_done:
                break
            opts = PaginationOpts(num_items=5, cursor=result.continue_cursor)

        assert len(seen) == 12
        assert len(set(seen)) == 12
        assert seen[0] == "conv_11"
        assert seen[-1] == "conv_00"

    @pytest.mark.asyncio
    async def test_new_rows_do_not_shift_later_pages(self, mongo: MockMongoClient) -> None:
        repo = MongoStorageRepository(mongo)
        for i in range(6):
            await repo.save_conversation(_conversation(i, NOW + i))

        first = await repo.list_conversations(ORG_ID, PaginationOpts(num_items=3))
        await repo.save_conversation(_conversation(99, NOW + 100))
        second = await repo.list_conversations(
            ORG_ID, PaginationOpts(num_items=3, cursor=first.continue_cursor)
        )

        assert [c.id for c in first.page] == ["conv_05", "conv_04", "conv_03"]
        assert [c.id for c in second.page] == ["conv_02", "conv_01", "conv_00"]
        assert second.is_done is True

    @pytest.mark.asyncio
    async def test_tenant_and_status_filters(self, mongo: MockMongoClient) -> None:
        repo = MongoStorageRepository(mongo)
        await repo.save_conversation(_conversation(1, NOW))
        await repo.save_conversation(_conversation(2, NOW + 1))
        await repo.save_conversation(_conversation(3, NOW + 2, org=OTHER_ORG_ID))
        await repo.update_conversation_status("conv_02", ConversationStatus.ESCALATED)

        everything = await repo.list_conversations(ORG_ID, PaginationOpts())
        escalated = await repo.list_conversations(
            ORG_ID, PaginationOpts(), status=ConversationStatus.ESCALATED
        )

        assert [c.id for c in everything.page] == ["conv_02", "conv_01"]
        assert [c.id for c in escalated.page] == ["conv_02"]
        by_thread = await repo.get_conversation_by_thread_id("thread_2")
        assert by_thread is not None
        assert by_thread.status == ConversationStatus.ESCALATED

    @pytest.mark.asyncio
    async def test_empty_page_keeps_cursor(self, mongo: MockMongoClient) -> None:
        repo = MongoStorageRepository(mongo)
        await repo.save_conversation(_conversation(1, NOW))

        first = await repo.list_conversations(ORG_ID, PaginationOpts(num_items=1))
        after = await repo.list_conversations(
            ORG_ID, PaginationOpts(num_items=1, cursor=first.continue_cursor)
        )

        assert first.is_done is True
        assert after.page == []
        assert after.continue_cursor == first.continue_cursor

    @pytest.mark.asyncio
    async def test_malformed_cursor(self, mongo: MockMongoClient) -> None:
        repo = MongoStorageRepository(mongo)

        with pytest.raises(BadRequestError):
            await repo.list_conversations(ORG_ID, PaginationOpts(cursor="garbage"))


class TestThreadStore:
    """Tests for message threads."""

    @pytest.mark.asyncio
    async def test_messages_are_numbered_in_append_order(self, mongo: MockMongoClient) -> None:
        store = MongoThreadStore(mongo, clock=FakeClock(NOW))
        thread_id = await store.create_thread(owner_key="session_1")

        for i in range(5):
            await store.save_message(
                thread_id, NewMessage(role=MessageRole.USER, content=f"message {i}")
            )

        newest = await store.list_messages(thread_id, PaginationOpts(num_items=2), order="desc")
        older = await store.list_messages(
            thread_id,
            PaginationOpts(num_items=2, cursor=newest.continue_cursor),
            order="desc",
        )
        oldest = await store.list_messages(thread_id, PaginationOpts(num_items=10), order="asc")

        assert [m.order for m in newest.page] == [5, 4]
        assert [m.order for m in older.page] == [3, 2]
        assert older.is_done is False
        assert [m.content for m in oldest.page][0] == "message 0"
        assert oldest.is_done is True

    @pytest.mark.asyncio
    async def test_agent_name_stored(self, mongo: MockMongoClient) -> None:
        store = MongoThreadStore(mongo)
        thread_id = await store.create_thread(owner_key="session_1")

        saved = await store.save_message(
            thread_id,
            NewMessage(role=MessageRole.ASSISTANT, content="Hi", agent_name="Smith"),
        )

        listed = await store.list_messages(thread_id, PaginationOpts())
        assert listed.page == [saved]
        assert saved.agent_name == "Smith"

    @pytest.mark.asyncio
    async def test_unknown_thread(self, mongo: MockMongoClient) -> None:
        store = MongoThreadStore(mongo)

        with pytest.raises(NotFoundError):
            await store.save_message("missing", NewMessage(role=MessageRole.USER, content="x"))


class TestBlobStore:
    """Tests for GridFS-backed blobs."""

    @pytest.mark.asyncio
    async def test_store_read_delete(self, mongo: MockMongoClient) -> None:
        blobs = MongoBlobStore(mongo, "https://files.test/")

        storage_id = await blobs.store(b"hello world", "text/plain")

        assert await blobs.get(storage_id) == b"hello world"
        assert await blobs.stat_size(storage_id) == 11
        assert await blobs.get_url(storage_id) == f"https://files.test/{storage_id}"

        await blobs.delete(storage_id)
        assert await blobs.get(storage_id) is None
        assert await blobs.get_url(storage_id) is None
        assert await blobs.stat_size(storage_id) is None
        await blobs.delete(storage_id)

    @pytest.mark.asyncio
    async def test_invalid_storage_id(self, mongo: MockMongoClient) -> None:
        blobs = MongoBlobStore(mongo, "https://files.test")

        assert await blobs.get("not-an-object-id") is None
        assert await blobs.get_url("not-an-object-id") is None


class TestRetrievalIndex:
    """Tests for the knowledge index."""

    def _metadata(
        self,
        storage_id: str,
        filename: str,
        category: str | None = None,
    ) -> EntryMetadata:
        return EntryMetadata(
            storage_id=storage_id,
            uploaded_by=ORG_ID,
            filename=filename,
            category=category,
        )

    @pytest.mark.asyncio
    async def test_add_then_search(self, mongo: MockMongoClient) -> None:
        index = MongoRetrievalIndex(mongo, MockEmbeddingService())
        text = "Refunds are issued within 14 days."

        added = await index.add(
            namespace=ORG_ID,
            text=text,
            key="refunds.txt",
            title="refunds.txt",
            metadata=self._metadata("blob_1", "refunds.txt"),
            content_hash=content_hash(text.encode()),
        )

        entry = await index.get_entry(added.entry_id)
        assert entry is not None
        assert entry.status == EntryStatus.READY

        # The mock embedding maps identical text to identical vectors
        result = await index.search(ORG_ID, text, limit=3)
        assert result.entries[0].entry_id == added.entry_id
        assert result.entries[0].title == "refunds.txt"
        assert result.entries[0].score == pytest.approx(1.0)
        assert text in result.text

    @pytest.mark.asyncio
    async def test_search_is_namespaced(self, mongo: MockMongoClient) -> None:
        index = MongoRetrievalIndex(mongo, MockEmbeddingService())
        await index.add(
            namespace=ORG_ID,
            text="secret",
            key="a.txt",
            metadata=self._metadata("b", "a.txt"),
            content_hash="h",
        )

        result = await index.search(OTHER_ORG_ID, "secret", limit=3)

        assert result.entries == []
        assert result.text == ""

    @pytest.mark.asyncio
    async def test_same_content_is_deduplicated(self, mongo: MockMongoClient) -> None:
        embedding = MockEmbeddingService()
        index = MongoRetrievalIndex(mongo, embedding)
        kwargs = {
            "namespace": ORG_ID,
            "text": "same",
            "key": "faq.txt",
            "metadata": self._metadata("blob_1", "faq.txt"),
            "content_hash": "hash_1",
        }

        first = await index.add(**kwargs)
        second = await index.add(**{**kwargs, "metadata": self._metadata("blob_2", "faq.txt")})

        assert first.created is True
        assert second.created is False
        assert second.entry_id == first.entry_id
        assert len(embedding.calls) == 1

    @pytest.mark.asyncio
    async def test_same_content_under_other_key_is_deduplicated(
        self, mongo: MockMongoClient
    ) -> None:
        embedding = MockEmbeddingService()
        index = MongoRetrievalIndex(mongo, embedding)

        first = await index.add(
            namespace=ORG_ID,
            text="same",
            key="faq.txt",
            metadata=self._metadata("blob_1", "faq.txt"),
            content_hash="hash_1",
        )
        second = await index.add(
            namespace=ORG_ID,
            text="same",
            key="faq-copy.txt",
            metadata=self._metadata("blob_2", "faq-copy.txt"),
            content_hash="hash_1",
        )
        other_org = await index.add(
            namespace=OTHER_ORG_ID,
            text="same",
            key="faq.txt",
            metadata=self._metadata("blob_3", "faq.txt"),
            content_hash="hash_1",
        )

        assert second.created is False
        assert second.entry_id == first.entry_id
        assert other_org.created is True
        assert len(embedding.calls) == 2

    @pytest.mark.asyncio
    async def test_changed_content_replaces_entry(self, mongo: MockMongoClient) -> None:
        index = MongoRetrievalIndex(mongo, MockEmbeddingService())
        first = await index.add(
            namespace=ORG_ID,
            text="old text",
            key="faq.txt",
            metadata=self._metadata("blob_1", "faq.txt"),
            content_hash="hash_old",
        )
        second = await index.add(
            namespace=ORG_ID,
            text="new text",
            key="faq.txt",
            metadata=self._metadata("blob_2", "faq.txt"),
            content_hash="hash_new",
        )

        assert second.created is True
        assert second.replaced_storage_id == "blob_1"
        assert first.replaced_storage_id is None
        old = await index.get_entry(first.entry_id)
        assert old is not None
        assert old.status == EntryStatus.REPLACED

        listed = await index.list_entries(ORG_ID, PaginationOpts())
        assert [e.entry_id for e in listed.page] == [second.entry_id]
        result = await index.search(ORG_ID, "old text", limit=5)
        assert "old text" not in result.text

    @pytest.mark.asyncio
    async def test_list_by_category_and_delete(self, mongo: MockMongoClient) -> None:
        index = MongoRetrievalIndex(mongo, MockEmbeddingService(), clock=FakeClock(NOW))
        billing = await index.add(
            namespace=ORG_ID,
            text="invoices",
            key="billing.txt",
            metadata=self._metadata("b1", "billing.txt", category="billing"),
            content_hash="h1",
        )
        await index.add(
            namespace=ORG_ID,
            text="shipping",
            key="shipping.txt",
            metadata=self._metadata("b2", "shipping.txt", category="logistics"),
            content_hash="h2",
        )

        only_billing = await index.list_entries(ORG_ID, PaginationOpts(), category="billing")
        assert [e.entry_id for e in only_billing.page] == [billing.entry_id]

        await index.delete(billing.entry_id)
        assert await index.get_entry(billing.entry_id) is None
        remaining = await index.list_entries(ORG_ID, PaginationOpts())
        assert [e.key for e in remaining.page] == ["shipping.txt"]


class TestChunking:
    """Tests for text chunking."""

    def test_short_text_single_chunk(self) -> None:
        assert chunk_text("  hello  ", size=100, overlap=10) == ["hello"]

    def test_empty_text(self) -> None:
        assert chunk_text("   ", size=100, overlap=10) == []

    def test_long_text_chunks_within_size(self) -> None:
        text = " ".join(f"word{i}" for i in range(400))

        chunks = chunk_text(text, size=200, overlap=40)

        assert len(chunks) > 1
        assert all(len(c) <= 200 for c in chunks)
        assert chunks[0].startswith("word0")
        assert chunks[-1].endswith("word399")

    def test_consecutive_chunks_overlap(self) -> None:
        text = " ".join(f"word{i}" for i in range(400))

        chunks = chunk_text(text, size=200, overlap=40)

        first_words = chunks[0].split()
        assert chunks[1].split()[0] in first_words
        assert chunks[1].split()[0] != first_words[0]
