"""Interface contracts for support_desk.

This module exports all Protocol-based interfaces for dependency injection.
"""

from support_desk.interfaces.blob import BlobStoreInterface
from support_desk.interfaces.embedding import EmbeddingServiceInterface
from support_desk.interfaces.identity import IdentityProviderInterface
from support_desk.interfaces.index import RetrievalIndexInterface
from support_desk.interfaces.llm import LLMInterface
from support_desk.interfaces.storage import StorageInterface
from support_desk.interfaces.threads import ThreadStoreInterface

__all__ = [
    "BlobStoreInterface",
    "EmbeddingServiceInterface",
    "IdentityProviderInterface",
    "LLMInterface",
    "RetrievalIndexInterface",
    "StorageInterface",
    "ThreadStoreInterface",
]
