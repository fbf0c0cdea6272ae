"""Utility functions for support_desk.

This module contains internal utility functions.
"""

from support_desk.utils.clock import Clock, now_ms
from support_desk.utils.files import (
    file_type_label,
    format_size,
    guess_mime_type,
    sniff_mime_type,
)
from support_desk.utils.hashing import (
    content_hash,
    generate_id,
    hash_text,
    stable_hash,
)

__all__ = [
    "Clock",
    "content_hash",
    "file_type_label",
    "format_size",
    "generate_id",
    "guess_mime_type",
    "hash_text",
    "now_ms",
    "sniff_mime_type",
    "stable_hash",
]
