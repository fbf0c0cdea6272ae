"""Mock MongoDB client for testing.

Supports the query subset the Mongo adapters use: equality on (dotted)
fields, ``$or``, ``$lt``, ``$gt``, ``$ne`` and ``$in``, compound sorts,
``$set`` and ``$inc`` updates.
"""

import copy
import itertools
from typing import Any
from unittest.mock import MagicMock

from bson import ObjectId
from gridfs.errors import NoFile

_MISSING = object()


def _get(doc: dict[str, Any], path: str) -> Any:
    value: Any = doc
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _match_condition(value: Any, condition: Any) -> bool:
    if isinstance(condition, dict) and any(k.startswith("$") for k in condition):
        for op, operand in condition.items():
            if op == "$lt" and not (value is not _MISSING and value < operand):
                return False
            if op == "$gt" and not (value is not _MISSING and value > operand):
                return False
            if op == "$ne" and value == operand:
                return False
            if op == "$in" and value not in operand:
                return False
        return True
    if value is _MISSING:
        return condition is None
    return value == condition


def matches(doc: dict[str, Any], filter_: dict[str, Any] | None) -> bool:
    if not filter_:
        return True
    for key, condition in filter_.items():
        if key == "$or":
            if not any(matches(doc, clause) for clause in condition):
                return False
        elif not _match_condition(_get(doc, key), condition):
            return False
    return True


class MockMongoCollection:
    """Mock MongoDB collection."""

    def __init__(self) -> None:
        self._documents: list[dict[str, Any]] = []
        self._ids = itertools.count(1)
        self.indexes: list[Any] = []

    @property
    def documents(self) -> list[dict[str, Any]]:
        return self._documents

    async def insert_one(self, document: dict[str, Any]) -> MagicMock:
        doc = copy.deepcopy(document)
        doc.setdefault("_id", next(self._ids))
        self._documents.append(doc)
        result = MagicMock()
        result.inserted_id = doc["_id"]
        return result

    async def insert_many(self, documents: list[dict[str, Any]]) -> MagicMock:
        ids = [(await self.insert_one(d)).inserted_id for d in documents]
        result = MagicMock()
        result.inserted_ids = ids
        return result

    async def replace_one(
        self,
        filter_: dict[str, Any],
        replacement: dict[str, Any],
        upsert: bool = False,
    ) -> MagicMock:
        result = MagicMock()
        for i, doc in enumerate(self._documents):
            if matches(doc, filter_):
                new_doc = copy.deepcopy(replacement)
                new_doc["_id"] = doc["_id"]
                self._documents[i] = new_doc
                result.modified_count = 1
                return result
        result.modified_count = 0
        if upsert:
            await self.insert_one(replacement)
        return result

    async def update_one(self, filter_: dict[str, Any], update: dict[str, Any]) -> MagicMock:
        result = MagicMock()
        result.modified_count = 0
        for doc in self._documents:
            if matches(doc, filter_):
                self._apply(doc, update)
                result.modified_count = 1
                break
        return result

    async def find_one_and_update(
        self,
        filter_: dict[str, Any],
        update: dict[str, Any],
        return_document: Any = None,
    ) -> dict[str, Any] | None:
        for doc in self._documents:
            if matches(doc, filter_):
                before = copy.deepcopy(doc)
                self._apply(doc, update)
                # pymongo's ReturnDocument.AFTER is True
                return copy.deepcopy(doc) if return_document else before
        return None

    async def find_one(self, filter_: dict[str, Any]) -> dict[str, Any] | None:
        for doc in self._documents:
            if matches(doc, filter_):
                return copy.deepcopy(doc)
        return None

    async def delete_one(self, filter_: dict[str, Any]) -> MagicMock:
        result = MagicMock()
        result.deleted_count = 0
        for i, doc in enumerate(self._documents):
            if matches(doc, filter_):
                del self._documents[i]
                result.deleted_count = 1
                break
        return result

    async def delete_many(self, filter_: dict[str, Any]) -> MagicMock:
        before = len(self._documents)
        self._documents = [d for d in self._documents if not matches(d, filter_)]
        result = MagicMock()
        result.deleted_count = before - len(self._documents)
        return result

    async def count_documents(self, filter_: dict[str, Any]) -> int:
        return sum(1 for d in self._documents if matches(d, filter_))

    async def create_index(self, keys: Any, **kwargs: Any) -> str:
        self.indexes.append(keys)
        return str(keys)

    def find(self, filter_: dict[str, Any] | None = None) -> "MockCursor":
        return MockCursor([copy.deepcopy(d) for d in self._documents if matches(d, filter_)])

    @staticmethod
    def _apply(doc: dict[str, Any], update: dict[str, Any]) -> None:
        for field, value in update.get("$set", {}).items():
            doc[field] = value
        for field, amount in update.get("$inc", {}).items():
            doc[field] = doc.get(field, 0) + amount


class MockCursor:
    """Mock MongoDB cursor."""

    def __init__(self, documents: list[dict[str, Any]]) -> None:
        self._documents = documents

    def sort(self, keys: list[tuple[str, int]]) -> "MockCursor":
        # Stable sorts applied from the least significant key
        for field, direction in reversed(keys):
            self._documents.sort(key=lambda d: _get(d, field), reverse=direction < 0)
        return self

    def limit(self, n: int) -> "MockCursor":
        self._documents = self._documents[:n]
        return self

    def __aiter__(self) -> "MockCursor":
        self._index = 0
        return self

    async def __anext__(self) -> dict[str, Any]:
        if self._index >= len(self._documents):
            raise StopAsyncIteration
        doc = self._documents[self._index]
        self._index += 1
        return doc


class MockGridOut:
    def __init__(self, data: bytes) -> None:
        self._data = data

    async def read(self) -> bytes:
        return self._data


class MockGridFSBucket:
    """Mock GridFS bucket storing files in a ``.files`` collection."""

    def __init__(self, files: MockMongoCollection) -> None:
        self._files = files
        self._chunks: dict[Any, bytes] = {}

    async def upload_from_stream(
        self,
        filename: str,
        source: bytes,
        metadata: dict[str, Any] | None = None,
    ) -> Any:
        file_id = ObjectId()
        self._chunks[file_id] = source
        await self._files.insert_one(
            {"_id": file_id, "filename": filename, "length": len(source), "metadata": metadata}
        )
        return file_id

    async def open_download_stream(self, file_id: Any) -> MockGridOut:
        if file_id not in self._chunks:
            raise NoFile(f"no file in gridfs with _id {file_id!r}")
        return MockGridOut(self._chunks[file_id])

    async def delete(self, file_id: Any) -> None:
        if self._chunks.pop(file_id, None) is None:
            raise NoFile(f"no file in gridfs with _id {file_id!r}")
        await self._files.delete_one({"_id": file_id})


class MockMongoClient:
    """Mock of support_desk's MongoClient wrapper for testing."""

    def __init__(self, bucket_name: str = "uploads") -> None:
        self._collections: dict[str, MockMongoCollection] = {}
        self.bucket_name = bucket_name
        self.bucket = MockGridFSBucket(self[f"{bucket_name}.files"])
        self.connected = False

    def __getitem__(self, name: str) -> MockMongoCollection:
        if name not in self._collections:
            self._collections[name] = MockMongoCollection()
        return self._collections[name]

    @property
    def db(self) -> "MockMongoClient":
        return self

    @property
    def contact_sessions(self) -> MockMongoCollection:
        return self["contact_sessions"]

    @property
    def conversations(self) -> MockMongoCollection:
        return self["conversations"]

    @property
    def threads(self) -> MockMongoCollection:
        return self["threads"]

    @property
    def messages(self) -> MockMongoCollection:
        return self["messages"]

    @property
    def knowledge_entries(self) -> MockMongoCollection:
        return self["knowledge_entries"]

    @property
    def knowledge_chunks(self) -> MockMongoCollection:
        return self["knowledge_chunks"]

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    async def create_indexes(self) -> None:
        pass
