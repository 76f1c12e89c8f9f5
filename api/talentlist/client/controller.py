"""Paging state machine for a list screen.

Every request works from an immutable ``PagingState`` snapshot. The pure
helpers (``build_query_params``, ``apply_page``, ``reset_position``) compute
the next snapshot; ``ListController`` only decides which snapshot to send and
swaps in the result once the page arrives.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
import logging
from typing import Any, Callable, Mapping

import httpx

from talentlist.client.list_client import ListClient, ListClientError, ListPage, PagingMode

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_DEBOUNCE_SECONDS = 0.3


@dataclass(frozen=True, slots=True)
class PagingState:
    path: str
    limit: int = 10
    sort_by: str | None = None
    sort_dir: str | None = None
    search_text: str = ""
    filters: tuple[tuple[str, str], ...] = ()
    mode: PagingMode | None = None
    cursor: str | None = None
    back_stack: tuple[str | None, ...] = ()
    next_cursor: str | None = None
    page: int = 1
    total: int | None = None
    total_pages: int = 1
    has_more: bool = False
    items: tuple[dict[str, Any], ...] = ()
    loaded: bool = False
    error: str | None = None

    @property
    def has_next(self) -> bool:
        if self.mode == "cursor":
            return self.next_cursor is not None
        if self.mode == "offset":
            return self.has_more
        return False

    @property
    def has_prev(self) -> bool:
        if self.mode == "cursor":
            return bool(self.back_stack)
        if self.mode == "offset":
            return self.page > 1
        return False


def build_query_params(state: PagingState) -> dict[str, str]:
    params = {"limit": str(state.limit)}
    if state.sort_by:
        params["sortBy"] = state.sort_by
    if state.sort_dir:
        params["sortDir"] = state.sort_dir
    search_text = state.search_text.strip()
    if search_text:
        params["q"] = search_text
    for name, value in state.filters:
        params[name] = value
    if state.cursor:
        params["cursor"] = state.cursor
    if state.mode == "offset":
        params["page"] = str(state.page)
    return params


def apply_page(state: PagingState, page: ListPage, *, append: bool = False) -> PagingState:
    if append:
        merged = {str(item["id"]): item for item in state.items}
        for item in page.items:
            merged.setdefault(str(item["id"]), item)
        items = tuple(merged.values())
    else:
        items = tuple(page.items)

    return replace(
        state,
        limit=page.limit,
        sort_by=page.sort_by,
        sort_dir=page.sort_dir,
        mode=page.mode,
        next_cursor=page.next_cursor if page.mode == "cursor" else None,
        page=page.page if page.mode == "offset" else 1,
        total=page.total,
        total_pages=page.total_pages,
        has_more=page.has_more if page.mode == "offset" else page.next_cursor is not None,
        items=items,
        loaded=True,
        error=None,
    )


def reset_position(state: PagingState) -> PagingState:
    """Back to the first page; items stay until the new page arrives."""
    return replace(state, cursor=None, back_stack=(), next_cursor=None, page=1, has_more=False)


def set_filter_value(filters: tuple[tuple[str, str], ...], name: str, value: str | None) -> tuple[tuple[str, str], ...]:
    updated = dict(filters)
    cleaned = (value or "").strip()
    if cleaned:
        updated[name] = cleaned
    else:
        updated.pop(name, None)
    return tuple(sorted(updated.items()))


class ListController:
    def __init__(
        self,
        client: ListClient,
        path: str,
        *,
        limit: int = 10,
        sort_by: str | None = None,
        sort_dir: str | None = None,
        filters: Mapping[str, str] | None = None,
        debounce_seconds: float = DEFAULT_SEARCH_DEBOUNCE_SECONDS,
    ) -> None:
        self.client = client
        self.debounce_seconds = debounce_seconds
        self.state = PagingState(
            path=path,
            limit=limit,
            sort_by=sort_by,
            sort_dir=sort_dir,
            filters=tuple(sorted((filters or {}).items())),
        )
        self._lock = asyncio.Lock()
        self._search_generation = 0

    async def refresh(self) -> PagingState:
        return await self._load(self.state)

    async def next_page(self) -> PagingState:
        state = self.state
        if not state.has_next:
            return state
        if state.mode == "cursor":
            target = replace(state, back_stack=state.back_stack + (state.cursor,), cursor=state.next_cursor)
        else:
            target = replace(state, page=state.page + 1)
        return await self._load(target)

    async def prev_page(self) -> PagingState:
        state = self.state
        if not state.has_prev:
            return state
        if state.mode == "cursor":
            target = replace(state, cursor=state.back_stack[-1], back_stack=state.back_stack[:-1])
        else:
            target = replace(state, page=state.page - 1)
        return await self._load(target)

    async def load_more(self) -> PagingState:
        state = self.state
        if not state.has_next:
            return state
        if state.mode == "cursor":
            target = replace(state, cursor=state.next_cursor)
        else:
            target = replace(state, page=state.page + 1)
        return await self._load(target, append=True)

    async def search(self, text: str) -> PagingState:
        self._search_generation += 1
        generation = self._search_generation
        await asyncio.sleep(self.debounce_seconds)
        if generation != self._search_generation:
            # A newer keystroke superseded this one.
            return self.state
        async with self._lock:
            if generation != self._search_generation:
                return self.state
            return await self._fetch(reset_position(replace(self.state, search_text=text.strip())))

    async def set_sort(self, sort_by: str) -> PagingState:
        def toggle(state: PagingState) -> PagingState:
            if sort_by == state.sort_by:
                return replace(state, sort_dir="asc" if state.sort_dir == "desc" else "desc")
            # Let the server pick the direction (and paging mode) for a new key.
            return replace(state, sort_by=sort_by, sort_dir=None, mode=None)

        return await self._reset(toggle)

    async def set_limit(self, limit: int) -> PagingState:
        return await self._reset(lambda state: replace(state, limit=limit))

    async def set_filter(self, name: str, value: str | None) -> PagingState:
        return await self._reset(
            lambda state: replace(state, filters=set_filter_value(state.filters, name, value))
        )

    async def _load(self, target: PagingState, *, append: bool = False) -> PagingState:
        """Scroll requests are dropped while another request is outstanding."""
        if self._lock.locked():
            return self.state
        async with self._lock:
            return await self._fetch(target, append=append)

    async def _reset(self, change: Callable[[PagingState], PagingState]) -> PagingState:
        """Reset requests queue behind the outstanding one and apply on top of its result."""
        async with self._lock:
            return await self._fetch(reset_position(change(self.state)))

    async def _fetch(self, target: PagingState, *, append: bool = False) -> PagingState:
        try:
            page = await self.client.fetch_page(target.path, build_query_params(target))
        except (httpx.HTTPError, ListClientError) as exc:
            logger.warning("list fetch failed path=%s error=%s", target.path, exc)
            self.state = replace(self.state, error=str(exc) or exc.__class__.__name__)
            return self.state
        self.state = apply_page(target, page, append=append)
        return self.state
