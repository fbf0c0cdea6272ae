"""Cursor pagination models shared by every list operation."""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

__all__ = [
    "PaginationOpts",
    "PaginationResult",
]

T = TypeVar("T")


class PaginationOpts(BaseModel, frozen=True):
    """Request for one page.

    Attributes:
        num_items: Maximum number of items to return
        cursor: Opaque continuation token from the previous page, None for the first page
    """

    num_items: int = Field(default=10, ge=1)
    cursor: str | None = None


class PaginationResult(BaseModel, Generic[T], frozen=True):
    """One page of results.

    Attributes:
        page: Items in this page
        continue_cursor: Token to request the next page
        is_done: True when no further items exist
    """

    page: list[T] = Field(default_factory=list)
    continue_cursor: str | None = None
    is_done: bool = True
