"""Hashing and identifier utilities for support_desk.

This module provides content hashes used for upload deduplication and
random identifiers for conversations, threads, sessions and messages.
"""

import hashlib
import uuid
from typing import Any

__all__ = [
    "content_hash",
    "generate_id",
    "hash_text",
    "stable_hash",
]


def content_hash(data: bytes) -> str:
    """Generate SHA256 hash of raw bytes.

    Two uploads with identical bytes yield the same hash, which is what
    the knowledge base index uses to detect duplicates within a namespace.

    Args:
        data: Raw file content

    Returns:
        Hexadecimal SHA256 hash string
    """
    return hashlib.sha256(data).hexdigest()


def hash_text(text: str) -> str:
    """Generate SHA256 hash of text.

    Args:
        text: Input text to hash

    Returns:
        Hexadecimal SHA256 hash string
    """
    return content_hash(text.encode("utf-8"))


def generate_id() -> str:
    """Generate a random opaque identifier."""
    return uuid.uuid4().hex


def stable_hash(*args: Any) -> str:
    """Generate a stable hash from multiple arguments.

    Converts all arguments to strings and joins them with pipe separator.
    Useful for composite keys such as cache entries.

    Args:
        *args: Values to include in the hash

    Returns:
        Hexadecimal SHA256 hash string
    """
    combined = "|".join(str(arg) for arg in args)
    return hash_text(combined)
