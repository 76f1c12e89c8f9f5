"""Runs one bounded fetch against a store and derives paging metadata.

Cursor mode pages by the ``(sort_value, id)`` composite key and is stable under
concurrent inserts. Offset mode uses ``skip/take`` plus a count under the same
predicate; a row inserted or deleted between two page fetches can shift the
later page by one, which is accepted for the non-default sorts that use it.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Literal

from talentlist.services.cursors import CursorCodec, InvalidCursorError
from talentlist.services.predicates import Predicate
from talentlist.services.sorting import ResolvedSort, RowBoundary, row_order_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CursorPaging:
    next_cursor: str | None
    mode: Literal["cursor"] = "cursor"


@dataclass(frozen=True, slots=True)
class OffsetPaging:
    page: int
    total: int
    total_pages: int
    has_more: bool
    mode: Literal["offset"] = "offset"


@dataclass(frozen=True, slots=True)
class PageResult:
    items: list[dict[str, Any]]
    paging: CursorPaging | OffsetPaging


@dataclass(frozen=True, slots=True)
class PagingRequest:
    limit: int
    cursor: str | None = None
    page: int = 1


def compute_offset_paging(page: int, limit: int, total: int) -> OffsetPaging:
    page = max(1, page)
    limit = max(1, limit)
    total_pages = max(1, math.ceil(total / limit))
    return OffsetPaging(page=page, total=total, total_pages=total_pages, has_more=page < total_pages)


def decode_boundary(codec: CursorCodec, token: str | None, sort: ResolvedSort) -> RowBoundary | None:
    if not token:
        return None
    try:
        cursor = codec.decode(token, sort)
    except InvalidCursorError as exc:
        logger.info("ignoring cursor sort_by=%s sort_dir=%s reason=%s", sort.key, sort.direction, exc)
        return None
    return RowBoundary(sort_value=cursor.sort_value, tie_break_id=cursor.tie_break_id)


async def _gather_or_cancel(*aws: Awaitable[Any]) -> tuple[Any, ...]:
    """Await all of ``aws``; on the first failure cancel the rest and re-raise it."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
    for task in tasks:
        error = None if task.cancelled() else task.exception()
        if error is not None:
            raise error
    return tuple(task.result() for task in tasks)


async def execute_page(
    repository: Any,
    table: str,
    predicate: Predicate,
    sort: ResolvedSort,
    paging: PagingRequest,
    codec: CursorCodec,
) -> PageResult:
    order = row_order_for(sort)
    limit = max(1, paging.limit)

    if sort.mode == "cursor":
        boundary = decode_boundary(codec, paging.cursor, sort)
        rows = await repository.fetch_rows(table, predicate, order, limit=limit + 1, after=boundary)
        next_cursor: str | None = None
        if len(rows) > limit:
            rows = rows[:limit]
            next_cursor = codec.encode(rows[-1], sort)
        return PageResult(items=rows, paging=CursorPaging(next_cursor=next_cursor))

    page = max(1, paging.page)
    rows, total = await _gather_or_cancel(
        repository.fetch_rows(table, predicate, order, limit=limit, offset=(page - 1) * limit),
        repository.count_rows(table, predicate),
    )
    return PageResult(items=rows, paging=compute_offset_paging(page, limit, total))
