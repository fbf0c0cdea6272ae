"""Cursor consumer and infinite-scroll trigger.

``PaginatedQuery`` accumulates pages of any cursor-paginated list
operation into a forward-only prefix. ``InfiniteScroll`` drives it from a
sentinel's visibility; duplicate triggers are absorbed by the status gate,
never by timers.
"""

from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from support_desk.logging import get_logger
from support_desk.models.pagination import PaginationOpts, PaginationResult

__all__ = [
    "InfiniteScroll",
    "LoadMoreSource",
    "LoadStatus",
    "PageFetcher",
    "PaginatedQuery",
]

logger = get_logger(__name__)

T = TypeVar("T")

PageFetcher = Callable[[PaginationOpts], Awaitable[PaginationResult[Any]]]


class LoadStatus(StrEnum):
    """Loading state of a paginated list."""

    LOADING_FIRST_PAGE = "LoadingFirstPage"
    CAN_LOAD_MORE = "CanLoadMore"
    LOADING_MORE = "LoadingMore"
    EXHAUSTED = "Exhausted"


@runtime_checkable
class LoadMoreSource(Protocol):
    """Anything exposing a load status and a ``load_more(count)`` effect."""

    @property
    def status(self) -> LoadStatus: ...

    async def load_more(self, num_items: int) -> None: ...


class PaginatedQuery(Generic[T]):
    """Forward-only accumulation of a cursor-paginated list.

    Each ``load_more`` appends the next page after the already-loaded
    prefix; there is no rewinding.

    Example:
        query = PaginatedQuery(lambda opts: desk.list_files(identity, opts))
        await query.load_first_page()
        await query.load_more(10)
    """

    def __init__(
        self,
        fetch: Callable[[PaginationOpts], Awaitable[PaginationResult[T]]],
        initial_num_items: int = 10,
    ) -> None:
        self._fetch = fetch
        self._initial_num_items = initial_num_items
        self._items: list[T] = []
        self._cursor: str | None = None
        self._status = LoadStatus.LOADING_FIRST_PAGE
        self._started = False

    @property
    def status(self) -> LoadStatus:
        return self._status

    @property
    def items(self) -> list[T]:
        return list(self._items)

    async def load_first_page(self) -> None:
        """Fetch the first page; later calls are no-ops."""
        if self._started:
            return
        self._started = True
        try:
            await self._load(self._initial_num_items)
        except Exception:
            self._started = False
            raise

    async def load_more(self, num_items: int) -> None:
        """Fetch ``num_items`` more items unless the status forbids it."""
        if self._status != LoadStatus.CAN_LOAD_MORE:
            return

        self._status = LoadStatus.LOADING_MORE
        try:
            await self._load(num_items)
        except Exception:
            self._status = LoadStatus.CAN_LOAD_MORE
            raise

    async def _load(self, num_items: int) -> None:
        result = await self._fetch(PaginationOpts(num_items=num_items, cursor=self._cursor))
        self._items.extend(result.page)
        self._cursor = result.continue_cursor
        self._status = LoadStatus.EXHAUSTED if result.is_done else LoadStatus.CAN_LOAD_MORE
        logger.debug(
            "page_loaded",
            received=len(result.page),
            total=len(self._items),
            status=self._status.value,
        )


class InfiniteScroll:
    """Load-more trigger for a list rendered with a visibility sentinel.

    Attributes:
        load_size: Items requested per trigger
        observer_enabled: Whether sentinel visibility triggers loading
        threshold: Visible fraction of the sentinel that counts as intersecting
    """

    def __init__(
        self,
        source: LoadMoreSource,
        load_size: int = 10,
        observer_enabled: bool = True,
        threshold: float = 0.1,
        load_more_text: str = "Load more",
        no_more_text: str = "No more items",
    ) -> None:
        self._source = source
        self.load_size = load_size
        self.observer_enabled = observer_enabled
        self.threshold = threshold
        self.load_more_text = load_more_text
        self.no_more_text = no_more_text

    @property
    def can_load_more(self) -> bool:
        return self._source.status == LoadStatus.CAN_LOAD_MORE

    @property
    def is_loading_more(self) -> bool:
        return self._source.status == LoadStatus.LOADING_MORE

    @property
    def is_loading_first_page(self) -> bool:
        return self._source.status == LoadStatus.LOADING_FIRST_PAGE

    @property
    def is_exhausted(self) -> bool:
        return self._source.status == LoadStatus.EXHAUSTED

    @property
    def trigger_label(self) -> str:
        """Text of the manual load-more control."""
        if self.is_loading_more:
            return "Loading..."
        if not self.can_load_more:
            return self.no_more_text
        return self.load_more_text

    @property
    def trigger_disabled(self) -> bool:
        return not self.can_load_more or self.is_loading_more

    async def trigger_load_more(self) -> bool:
        """Request the next increment.

        Returns:
            True if a fetch was issued, False if the status gate refused it
        """
        if not self.can_load_more:
            return False
        await self._source.load_more(self.load_size)
        return True

    async def on_intersection(self, intersection_ratio: float) -> bool:
        """Feed a visibility change of the sentinel.

        Args:
            intersection_ratio: Visible fraction of the sentinel, 0.0 to 1.0

        Returns:
            True if the change issued a fetch
        """
        if not self.observer_enabled:
            return False
        if intersection_ratio <= 0 or intersection_ratio < self.threshold:
            return False
        return await self.trigger_load_more()
