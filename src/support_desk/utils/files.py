"""File type and size helpers for knowledge base uploads."""

import mimetypes
from pathlib import PurePath

__all__ = [
    "DEFAULT_MIME_TYPE",
    "file_type_label",
    "format_size",
    "guess_mime_type",
    "sniff_mime_type",
]

DEFAULT_MIME_TYPE = "application/octet-stream"

# (prefix, offset, mime type); checked in order
_SIGNATURES: list[tuple[bytes, int, str]] = [
    (b"%PDF-", 0, "application/pdf"),
    (b"\x89PNG\r\n\x1a\n", 0, "image/png"),
    (b"\xff\xd8\xff", 0, "image/jpeg"),
    (b"GIF87a", 0, "image/gif"),
    (b"GIF89a", 0, "image/gif"),
    (b"WEBP", 8, "image/webp"),
]

_HTML_MARKERS = (b"<!doctype html", b"<html")

_SIZE_UNITS = ["B", "KB", "MB", "GB", "TB"]


def sniff_mime_type(data: bytes) -> str | None:
    """Detect a MIME type from magic numbers, None when unrecognized."""
    for signature, offset, mime_type in _SIGNATURES:
        if data[offset : offset + len(signature)] == signature:
            if mime_type == "image/webp" and not data.startswith(b"RIFF"):
                continue
            return mime_type

    head = data[:512].lstrip().lower()
    if head.startswith(_HTML_MARKERS):
        return "text/html"
    return None


def guess_mime_type(filename: str, data: bytes, declared: str | None = None) -> str:
    """Resolve an upload's MIME type.

    The caller-declared type wins, then content sniffing, then the filename
    extension, then ``application/octet-stream``.
    """
    if declared:
        return declared
    return (
        sniff_mime_type(data)
        or mimetypes.guess_type(filename, strict=False)[0]
        or DEFAULT_MIME_TYPE
    )


def file_type_label(filename: str) -> str:
    """Upper-cased extension, "FILE" when the name has none."""
    suffix = PurePath(filename).suffix
    return suffix[1:].upper() if len(suffix) > 1 else "FILE"


def format_size(size: int | None) -> str:
    """Human-readable byte count such as "0 B", "1.5 KB" or "2.3 MB"."""
    if size is None:
        return "unknown"
    if size <= 0:
        return "0 B"

    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1

    if unit == 0:
        return f"{size} B"
    return f"{value:.1f} {_SIZE_UNITS[unit]}"
