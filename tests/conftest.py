"""Shared test fixtures for support_desk.

This module provides pytest fixtures used across all tests.
"""

from unittest.mock import AsyncMock

import pytest

from support_desk.models.conversation import ConversationDTO, ConversationStatus
from support_desk.models.identity import Identity
from support_desk.models.knowledge import (
    EntryMetadata,
    EntryStatus,
    IndexAddResult,
    KnowledgeEntryDTO,
    SearchResult,
)
from support_desk.models.message import MessageDTO, MessageRole
from support_desk.models.pagination import PaginationResult
from support_desk.models.session import ContactSessionDTO
from support_desk.services.contact_sessions import ContactSessionService
from support_desk.services.identity import IdentityResolver

NOW = 1_704_067_200_000  # 2024-01-01T00:00:00Z
HOUR_MS = 60 * 60 * 1000
ORG_ID = "org_1"
OTHER_ORG_ID = "org_2"


@pytest.fixture
def clock() -> "FakeClock":
    return FakeClock(NOW)


class FakeClock:
    """Settable epoch-millisecond clock."""

    def __init__(self, now: int) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


# Identity fixtures
@pytest.fixture
def operator() -> Identity:
    return Identity(user_id="user_1", org_id=ORG_ID, name="Jane Smith", family_name="Smith")


@pytest.fixture
def other_operator() -> Identity:
    return Identity(user_id="user_2", org_id=OTHER_ORG_ID, name="Bob")


@pytest.fixture
def identity_without_org() -> Identity:
    return Identity(user_id="user_3")


# Sample data fixtures
@pytest.fixture
def sample_session() -> ContactSessionDTO:
    return ContactSessionDTO(
        id="session_1",
        organization_id=ORG_ID,
        name="Ada",
        email="ada@example.com",
        expires_at=NOW + 24 * HOUR_MS,
        created_at=NOW,
    )


@pytest.fixture
def expired_session(sample_session: ContactSessionDTO) -> ContactSessionDTO:
    return sample_session.model_copy(update={"id": "session_expired", "expires_at": NOW})


@pytest.fixture
def sample_conversation() -> ConversationDTO:
    return ConversationDTO(
        id="conv_1",
        organization_id=ORG_ID,
        contact_session_id="session_1",
        status=ConversationStatus.UNRESOLVED,
        thread_id="thread_1",
        created_at=NOW,
    )


@pytest.fixture
def sample_message() -> MessageDTO:
    return MessageDTO(
        id="msg_1",
        thread_id="thread_1",
        order=1,
        role=MessageRole.ASSISTANT,
        content="Hello, how can I help you today?",
        created_at=NOW,
    )


@pytest.fixture
def sample_entry() -> KnowledgeEntryDTO:
    return KnowledgeEntryDTO(
        entry_id="entry_1",
        namespace=ORG_ID,
        key="faq.txt",
        title="faq.txt",
        status=EntryStatus.READY,
        content_hash="abc",
        metadata=EntryMetadata(
            storage_id="blob_1",
            uploaded_by=ORG_ID,
            filename="faq.txt",
            category="general",
        ),
        created_at=NOW,
    )


# Mock fixtures
@pytest.fixture
def mock_storage(
    sample_session: ContactSessionDTO,
    sample_conversation: ConversationDTO,
) -> AsyncMock:
    """Create mock storage interface."""
    storage = AsyncMock()
    storage.get_contact_session.return_value = sample_session
    storage.get_conversation.return_value = sample_conversation
    storage.get_conversation_by_thread_id.return_value = sample_conversation
    storage.save_conversation.side_effect = lambda c: c.id
    storage.list_conversations.return_value = PaginationResult[ConversationDTO](
        page=[sample_conversation], continue_cursor="c1", is_done=True
    )
    storage.list_conversations_for_session.return_value = PaginationResult[ConversationDTO](
        page=[sample_conversation], continue_cursor="c1", is_done=True
    )
    return storage


@pytest.fixture
def mock_threads(sample_message: MessageDTO) -> AsyncMock:
    """Create mock thread store."""
    threads = AsyncMock()
    threads.create_thread.return_value = "thread_new"
    threads.save_message.return_value = sample_message
    threads.list_messages.return_value = PaginationResult[MessageDTO](
        page=[sample_message], continue_cursor="m1", is_done=True
    )
    return threads


@pytest.fixture
def mock_blobs() -> AsyncMock:
    """Create mock blob store."""
    blobs = AsyncMock()
    blobs.store.return_value = "blob_new"
    blobs.get_url.side_effect = lambda storage_id: f"https://files.test/{storage_id}"
    blobs.stat_size.return_value = 1536
    return blobs


@pytest.fixture
def mock_index(sample_entry: KnowledgeEntryDTO) -> AsyncMock:
    """Create mock retrieval index."""
    index = AsyncMock()
    index.add.return_value = IndexAddResult(entry_id="entry_new", created=True)
    index.get_entry.return_value = sample_entry
    index.search.return_value = SearchResult()
    index.list_entries.return_value = PaginationResult[KnowledgeEntryDTO](
        page=[sample_entry], continue_cursor="e1", is_done=True
    )
    return index


@pytest.fixture
def mock_llm() -> AsyncMock:
    """Create mock LLM interface."""
    llm = AsyncMock()
    llm.generate.return_value = "generated text"
    return llm


@pytest.fixture
def mock_identity_provider() -> AsyncMock:
    provider = AsyncMock()
    provider.organization_exists.return_value = True
    return provider


@pytest.fixture
def identities(mock_identity_provider: AsyncMock) -> IdentityResolver:
    return IdentityResolver(mock_identity_provider)


@pytest.fixture
def sessions(mock_storage: AsyncMock, clock: FakeClock) -> ContactSessionService:
    return ContactSessionService(mock_storage, ttl_ms=24 * HOUR_MS, clock=clock)
