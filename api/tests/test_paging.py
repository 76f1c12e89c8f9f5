from __future__ import annotations

import asyncio
from typing import Any

import pytest

from conftest import make_job
from talentlist.services.cursors import CursorCodec
from talentlist.services.engine import ListQueryEngine, ListRequest
from talentlist.services.paging import PagingRequest, compute_offset_paging, execute_page
from talentlist.services.predicates import FieldIsNull, Predicate
from talentlist.services.repository import RepositoryQueryError
from talentlist.services.sorting import select_strategy
from talentlist.services.store import InMemoryRepository
from talentlist.services.views import JOBS_VIEW

CODEC = CursorCodec("test-signing-key")


def _ids(rows: list[dict[str, Any]]) -> list[str]:
    return [row["id"] for row in rows]


def _twenty_five_jobs() -> InMemoryRepository:
    return InMemoryRepository(jobs=[make_job(index, salary=1000 * index) for index in range(1, 26)])


def test_cursor_pages_walk_recency_order_to_the_end() -> None:
    engine = ListQueryEngine(JOBS_VIEW, _twenty_five_jobs(), CODEC)

    async def run() -> list[Any]:
        first = await engine.list(ListRequest(limit=10))
        second = await engine.list(ListRequest(limit=10, cursor=first.paging.next_cursor))
        third = await engine.list(ListRequest(limit=10, cursor=second.paging.next_cursor))
        return [first, second, third]

    first, second, third = asyncio.run(run())

    assert _ids(first.items) == [f"job-{index:03d}" for index in range(25, 15, -1)]
    assert first.paging.next_cursor is not None
    assert _ids(second.items) == [f"job-{index:03d}" for index in range(15, 5, -1)]
    assert second.paging.next_cursor is not None
    assert _ids(third.items) == [f"job-{index:03d}" for index in range(5, 0, -1)]
    assert third.paging.next_cursor is None


def test_exact_multiple_ends_without_cursor() -> None:
    repository = InMemoryRepository(jobs=[make_job(index) for index in range(1, 11)])
    sort = select_strategy(JOBS_VIEW.sort, None, None)

    result = asyncio.run(
        execute_page(repository, "jobs", FieldIsNull("deleted_at"), sort, PagingRequest(limit=10), CODEC)
    )

    assert len(result.items) == 10
    assert result.paging.next_cursor is None


def test_cursor_page_is_stable_when_newer_rows_arrive() -> None:
    repository = _twenty_five_jobs()
    engine = ListQueryEngine(JOBS_VIEW, repository, CODEC)

    first = asyncio.run(engine.list(ListRequest(limit=10)))
    for index in range(26, 31):
        repository.add("jobs", make_job(index))
    second = asyncio.run(engine.list(ListRequest(limit=10, cursor=first.paging.next_cursor)))

    assert _ids(second.items) == [f"job-{index:03d}" for index in range(15, 5, -1)]


def test_equal_timestamps_are_ordered_by_id_without_gaps() -> None:
    jobs = [make_job(1, created_at=make_job(0)["created_at"], id=f"job-{letter}") for letter in "abcdef"]
    engine = ListQueryEngine(JOBS_VIEW, InMemoryRepository(jobs=jobs), CODEC)

    seen: list[str] = []
    cursor = None
    for _ in range(4):
        result = asyncio.run(engine.list(ListRequest(limit=4, cursor=cursor)))
        seen.extend(_ids(result.items))
        cursor = result.paging.next_cursor
        if cursor is None:
            break

    assert seen == ["job-f", "job-e", "job-d", "job-c", "job-b", "job-a"]


def test_offset_pages_report_totals() -> None:
    engine = ListQueryEngine(JOBS_VIEW, _twenty_five_jobs(), CODEC)

    first = asyncio.run(engine.list(ListRequest(sort_key="salary", sort_dir="asc", limit=10, page=1)))
    third = asyncio.run(engine.list(ListRequest(sort_key="salary", sort_dir="asc", limit=10, page=3)))

    assert first.paging.mode == "offset"
    assert (first.paging.page, first.paging.total, first.paging.total_pages) == (1, 25, 3)
    assert first.paging.has_more is True
    assert _ids(first.items)[0] == "job-001"
    assert third.paging.page == 3
    assert third.paging.has_more is False
    assert len(third.items) == 5


def test_offset_fetch_and_count_share_one_predicate() -> None:
    repository = _twenty_five_jobs()
    repository.add("jobs", make_job(40, deleted=True, salary=1))
    engine = ListQueryEngine(JOBS_VIEW, repository, CODEC)

    result = asyncio.run(engine.list(ListRequest(sort_key="salary", limit=100)))

    assert result.paging.total == len(result.items) == 25
    assert repository.fetch_calls == 1
    assert repository.count_calls == 1


def test_nulls_sort_last_in_both_directions() -> None:
    jobs = [make_job(1, salary=None), make_job(2, salary=500), make_job(3, salary=900)]
    engine = ListQueryEngine(JOBS_VIEW, InMemoryRepository(jobs=jobs), CODEC)

    ascending = asyncio.run(engine.list(ListRequest(sort_key="salary", sort_dir="asc")))
    descending = asyncio.run(engine.list(ListRequest(sort_key="salary", sort_dir="desc")))

    assert _ids(ascending.items) == ["job-002", "job-003", "job-001"]
    assert _ids(descending.items) == ["job-003", "job-002", "job-001"]


def test_offset_math_floors_and_rounds_up() -> None:
    assert compute_offset_paging(0, 10, 0) == compute_offset_paging(1, 10, 0)
    assert compute_offset_paging(1, 10, 0).total_pages == 1
    assert compute_offset_paging(2, 10, 11).total_pages == 2
    assert compute_offset_paging(2, 10, 11).has_more is False
    assert compute_offset_paging(1, 10, 11).has_more is True


def test_garbage_cursor_restarts_from_first_page() -> None:
    engine = ListQueryEngine(JOBS_VIEW, _twenty_five_jobs(), CODEC)

    result = asyncio.run(engine.list(ListRequest(limit=3, cursor="not-a-real-cursor")))

    assert _ids(result.items) == ["job-025", "job-024", "job-023"]


def test_request_parsing_clamps_and_defaults() -> None:
    assert ListRequest.from_query(limit="abc").limit == 10
    assert ListRequest.from_query(limit="0").limit == 1
    assert ListRequest.from_query(limit="500").limit == 100
    assert ListRequest.from_query(page="-3").page == 1
    assert ListRequest.from_query(page="two").page == 1
    assert ListRequest.from_query(q="   ", cursor="  ").search_text is None
    assert ListRequest.from_query(cursor="  ").cursor is None


class FailingFetchRepository(InMemoryRepository):
    def __init__(self) -> None:
        super().__init__(jobs=[make_job(1)])
        self.count_cancelled = False

    async def fetch_rows(self, table: str, predicate: Predicate, order: Any, **_: Any) -> list[dict[str, Any]]:
        await asyncio.sleep(0)
        raise RepositoryQueryError("fetch rejected")

    async def count_rows(self, table: str, predicate: Predicate) -> int:
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            self.count_cancelled = True
            raise
        return 1


def test_offset_failure_cancels_the_count_query() -> None:
    repository = FailingFetchRepository()
    sort = select_strategy(JOBS_VIEW.sort, "salary", "asc")

    with pytest.raises(RepositoryQueryError, match="fetch rejected"):
        asyncio.run(
            execute_page(repository, "jobs", FieldIsNull("deleted_at"), sort, PagingRequest(limit=5), CODEC)
        )

    assert repository.count_cancelled is True


def test_cursor_from_other_direction_restarts_from_first_page() -> None:
    engine = ListQueryEngine(JOBS_VIEW, _twenty_five_jobs(), CODEC)

    async def run() -> tuple[Any, Any]:
        descending = await engine.list(ListRequest(limit=5))
        replayed = await engine.list(ListRequest(limit=5, sort_dir="asc", cursor=descending.paging.next_cursor))
        return descending, replayed

    descending, replayed = asyncio.run(run())

    assert descending.paging.next_cursor is not None
    assert replayed.sort.direction == "asc"
    assert _ids(replayed.items) == ["job-001", "job-002", "job-003", "job-004", "job-005"]
