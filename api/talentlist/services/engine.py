from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from opentelemetry import trace

from talentlist.services.cursors import CursorCodec
from talentlist.services.filters import build_filter, normalize_search_text, resolve_explicit_filters
from talentlist.services.paging import CursorPaging, OffsetPaging, PagingRequest, execute_page
from talentlist.services.predicates import Predicate
from talentlist.services.recommendation import CallerContext, build_candidate_filter
from talentlist.services.sorting import ResolvedSort, row_order_for, select_strategy
from talentlist.services.views import ListView

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass(frozen=True, slots=True)
class ListRequest:
    search_text: str | None = None
    filters: Mapping[str, str] = field(default_factory=dict)
    sort_key: str | None = None
    sort_dir: str | None = None
    limit: int = DEFAULT_LIMIT
    cursor: str | None = None
    page: int = 1

    @classmethod
    def from_query(
        cls,
        *,
        q: str | None = None,
        filters: Mapping[str, str | None] | None = None,
        sort_by: str | None = None,
        sort_dir: str | None = None,
        limit: Any = None,
        cursor: str | None = None,
        page: Any = None,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
    ) -> "ListRequest":
        parsed_limit = _coerce_int(limit)
        if parsed_limit is None:
            parsed_limit = default_limit
        parsed_page = _coerce_int(page)
        return cls(
            search_text=normalize_search_text(q),
            filters={name: value for name, value in (filters or {}).items() if isinstance(value, str)},
            sort_key=sort_by,
            sort_dir=sort_dir,
            limit=max(1, min(max_limit, parsed_limit)),
            cursor=(cursor or "").strip() or None,
            page=max(1, parsed_page) if parsed_page is not None else 1,
        )


@dataclass(frozen=True, slots=True)
class ListResult:
    items: list[dict[str, Any]]
    limit: int
    sort: ResolvedSort
    paging: CursorPaging | OffsetPaging


class ListQueryEngine:
    """One engine per list view; stateless apart from its collaborators."""

    def __init__(self, view: ListView, repository: Any, codec: CursorCodec) -> None:
        self.view = view
        self.repository = repository
        self.codec = codec

    def build_predicate(self, request: ListRequest) -> Predicate:
        explicit = resolve_explicit_filters(self.view.filter_params, request.filters)
        return build_filter(self.view.base, explicit, request.search_text, self.view.search_fields)

    async def list(self, request: ListRequest, *, caller: CallerContext | None = None) -> ListResult:
        """Run one list request; passing ``caller`` turns on recommendation mode."""
        sort = select_strategy(self.view.sort, request.sort_key, request.sort_dir)
        with tracer.start_as_current_span("list_query.execute") as span:
            span.set_attribute("list.view", self.view.name)
            span.set_attribute("list.sort_by", sort.key)
            span.set_attribute("list.mode", sort.mode)
            span.set_attribute("list.recommended", caller is not None)

            predicate = self.build_predicate(request)
            if caller is not None:
                predicate = await self._apply_recommendation(predicate, sort, caller)

            result = await execute_page(
                self.repository,
                self.view.table,
                predicate,
                sort,
                PagingRequest(limit=request.limit, cursor=request.cursor, page=request.page),
                self.codec,
            )
            span.set_attribute("list.items", len(result.items))

        logger.debug(
            "list query view=%s sort_by=%s sort_dir=%s mode=%s items=%s",
            self.view.name,
            sort.key,
            sort.direction,
            sort.mode,
            len(result.items),
        )
        return ListResult(items=result.items, limit=request.limit, sort=sort, paging=result.paging)

    async def _apply_recommendation(
        self,
        predicate: Predicate,
        sort: ResolvedSort,
        caller: CallerContext,
    ) -> Predicate:
        candidate = build_candidate_filter(caller, self.view)
        if candidate.include is None:
            return candidate.fallback(predicate)

        narrowed = candidate.narrowed(predicate)
        with tracer.start_as_current_span("list_query.recommendation_probe"):
            probe = await self.repository.fetch_rows(
                self.view.table,
                narrowed,
                row_order_for(sort),
                limit=1,
            )
        if probe:
            return narrowed

        logger.info(
            "recommendation fallback view=%s caller_id=%s reason=no_matching_records",
            self.view.name,
            caller.caller_id,
        )
        return candidate.fallback(predicate)


def _coerce_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None
