"""Unit tests for PaginatedQuery and InfiniteScroll."""

import asyncio
import typing

import pytest

from support_desk.models.pagination import PaginationOpts, PaginationResult
from support_desk.services.infinite_scroll import (
    InfiniteScroll,
    LoadMoreSource,
    LoadStatus,
    PaginatedQuery,
)


class ListSource:
    """Cursor-paginated view over a fixed list; the cursor is the next offset."""

    def __init__(self, items: list[int]) -> None:
        self.items = items
        self.requests: list[PaginationOpts] = []
        self.fail_next = False
        self.gate: asyncio.Event | None = None

    async def __call__(self, opts: PaginationOpts) -> PaginationResult[int]:
        self.requests.append(opts)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_next:
            self.fail_next = False
            raise ConnectionError("backend down")
        start = int(opts.cursor or 0)
        end = start + opts.num_items
        return PaginationResult[int](
            page=self.items[start:end],
            continue_cursor=str(end),
            is_done=end >= len(self.items),
        )


class TestPaginatedQuery:
    """Tests for page accumulation."""

    @pytest.mark.asyncio
    async def test_first_page_then_more(self) -> None:
        source = ListSource(list(range(25)))
        query = PaginatedQuery(source, initial_num_items=10)
        assert query.status == LoadStatus.LOADING_FIRST_PAGE

        await query.load_first_page()
        assert query.items == list(range(10))
        assert query.status == LoadStatus.CAN_LOAD_MORE

        await query.load_more(10)
        await query.load_more(10)
        assert query.items == list(range(25))
        assert query.status == LoadStatus.EXHAUSTED
        assert [r.cursor for r in source.requests] == [None, "10", "20"]

    @pytest.mark.asyncio
    async def test_exhausted_refuses_more(self) -> None:
        source = ListSource([1, 2])
        query = PaginatedQuery(source, initial_num_items=5)

        await query.load_first_page()
        await query.load_more(5)

        assert query.status == LoadStatus.EXHAUSTED
        assert len(source.requests) == 1

    @pytest.mark.asyncio
    async def test_load_more_before_first_page_is_ignored(self) -> None:
        source = ListSource([1, 2, 3])
        query = PaginatedQuery(source)

        await query.load_more(5)

        assert source.requests == []

    @pytest.mark.asyncio
    async def test_first_page_loads_once(self) -> None:
        source = ListSource(list(range(30)))
        query = PaginatedQuery(source)

        await query.load_first_page()
        await query.load_first_page()

        assert len(source.requests) == 1

    @pytest.mark.asyncio
    async def test_failed_load_more_can_be_retried(self) -> None:
        source = ListSource(list(range(30)))
        query = PaginatedQuery(source)
        await query.load_first_page()

        source.fail_next = True
        with pytest.raises(ConnectionError):
            await query.load_more(10)

        assert query.status == LoadStatus.CAN_LOAD_MORE
        await query.load_more(10)
        assert query.items == list(range(20))

    @pytest.mark.asyncio
    async def test_concurrent_triggers_issue_one_fetch(self) -> None:
        source = ListSource(list(range(30)))
        query = PaginatedQuery(source)
        await query.load_first_page()

        source.gate = asyncio.Event()
        first = asyncio.create_task(query.load_more(10))
        await asyncio.sleep(0)
        assert query.status == LoadStatus.LOADING_MORE
        await query.load_more(10)
        source.gate.set()
        await first

        assert len(source.requests) == 2
        assert query.items == list(range(20))

    def test_is_a_load_more_source(self) -> None:
        assert isinstance(PaginatedQuery(ListSource([])), LoadMoreSource)

    def test_fetch_annotation_resolves(self) -> None:
        hints = typing.get_type_hints(PaginatedQuery.__init__)
        assert typing.get_origin(hints["fetch"]) is not None


class TestInfiniteScroll:
    """Tests for the visibility-driven trigger."""

    @pytest.mark.asyncio
    async def test_sentinel_visibility_loads_next_increment(self) -> None:
        source = ListSource(list(range(30)))
        query = PaginatedQuery(source)
        await query.load_first_page()
        scroll = InfiniteScroll(query, load_size=5)

        assert await scroll.on_intersection(0.5) is True

        assert source.requests[-1].num_items == 5
        assert len(query.items) == 15

    @pytest.mark.asyncio
    async def test_below_threshold_ignored(self) -> None:
        source = ListSource(list(range(30)))
        query = PaginatedQuery(source)
        await query.load_first_page()
        scroll = InfiniteScroll(query, threshold=0.25)

        assert await scroll.on_intersection(0.0) is False
        assert await scroll.on_intersection(0.2) is False
        assert len(source.requests) == 1

    @pytest.mark.asyncio
    async def test_observer_disabled(self) -> None:
        source = ListSource(list(range(30)))
        query = PaginatedQuery(source)
        await query.load_first_page()
        scroll = InfiniteScroll(query, observer_enabled=False)

        assert await scroll.on_intersection(1.0) is False
        assert await scroll.trigger_load_more() is True

    @pytest.mark.asyncio
    async def test_labels_follow_status(self) -> None:
        source = ListSource(list(range(12)))
        query = PaginatedQuery(source)
        scroll = InfiniteScroll(query, no_more_text="That's everything")

        assert scroll.is_loading_first_page
        await query.load_first_page()
        assert scroll.trigger_label == "Load more"
        assert scroll.trigger_disabled is False

        await scroll.trigger_load_more()
        assert scroll.is_exhausted
        assert scroll.trigger_label == "That's everything"
        assert scroll.trigger_disabled is True
        assert await scroll.trigger_load_more() is False

    @pytest.mark.asyncio
    async def test_loading_label_while_fetching(self) -> None:
        source = ListSource(list(range(30)))
        query = PaginatedQuery(source)
        await query.load_first_page()
        scroll = InfiniteScroll(query)

        source.gate = asyncio.Event()
        task = asyncio.create_task(scroll.trigger_load_more())
        await asyncio.sleep(0)

        assert scroll.is_loading_more
        assert scroll.trigger_label == "Loading..."
        assert await scroll.on_intersection(1.0) is False

        source.gate.set()
        assert await task is True
