"""Opaque keyset cursors for MongoDB listings.

A cursor encodes the sort key of the last item of a page. The next page
starts strictly after it, so items inserted meanwhile never shift pages.
"""

import base64
import json
from typing import Any

from support_desk.errors import BadRequestError

__all__ = [
    "after_filter",
    "decode_cursor",
    "encode_cursor",
]


def encode_cursor(position: dict[str, Any]) -> str:
    raw = json.dumps(position, separators=(",", ":"), sort_keys=True)
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str) -> dict[str, Any]:
    """Decode a cursor produced by :func:`encode_cursor`.

    Raises:
        BadRequestError: If the cursor is malformed
    """
    try:
        position = json.loads(base64.urlsafe_b64decode(cursor.encode("ascii")))
    except (ValueError, UnicodeError) as e:
        raise BadRequestError("Invalid cursor") from e
    if not isinstance(position, dict):
        raise BadRequestError("Invalid cursor")
    return position


def after_filter(position: dict[str, Any], fields: list[str], descending: bool) -> dict[str, Any]:
    """Filter matching documents strictly after ``position`` in a compound sort.

    For fields ``[a, b]`` descending this is
    ``a < pa OR (a == pa AND b < pb)``.
    """
    op = "$lt" if descending else "$gt"
    clauses: list[dict[str, Any]] = []
    for i, field in enumerate(fields):
        if field not in position:
            raise BadRequestError("Invalid cursor")
        clause = {prev: position[prev] for prev in fields[:i]}
        clause[field] = {op: position[field]}
        clauses.append(clause)
    return clauses[0] if len(clauses) == 1 else {"$or": clauses}
