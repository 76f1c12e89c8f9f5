from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Mapping

SortDir = Literal["asc", "desc"]
PagingMode = Literal["cursor", "offset"]

SORT_DIRECTIONS: frozenset[str] = frozenset({"asc", "desc"})


@dataclass(frozen=True, slots=True)
class SortField:
    field: str
    default_direction: SortDir = "asc"
    then_by: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SortSpec:
    """Allow-listed sort keys of one list view.

    ``recency_key`` is the only key paged with cursors; it must be an
    immutable creation timestamp so cursor pages stay stable.
    """

    allowed: Mapping[str, SortField]
    default_key: str
    recency_key: str


@dataclass(frozen=True, slots=True)
class ResolvedSort:
    key: str
    field: str
    direction: SortDir
    mode: PagingMode
    then_by: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RowOrder:
    """Store-level ordering: ``field``, then ``then_by`` in the same direction,
    then the ``id`` tie-break. Nulls sort last on every field.
    """

    field: str
    direction: SortDir
    tie_break_direction: SortDir
    then_by: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RowBoundary:
    """Rows strictly after ``(sort_value, tie_break_id)`` in ``RowOrder`` terms."""

    sort_value: object
    tie_break_id: str


def row_order_for(sort: ResolvedSort) -> RowOrder:
    # Cursor paging needs the same direction on both keys for a total order.
    tie_break_direction: SortDir = sort.direction if sort.mode == "cursor" else "asc"
    return RowOrder(
        field=sort.field,
        direction=sort.direction,
        tie_break_direction=tie_break_direction,
        then_by=sort.then_by,
    )


def select_strategy(spec: SortSpec, sort_key: str | None, requested_dir: str | None) -> ResolvedSort:
    key = sort_key.strip() if isinstance(sort_key, str) else ""
    if key not in spec.allowed:
        key = spec.default_key
    sort_field = spec.allowed[key]

    direction = requested_dir.strip().lower() if isinstance(requested_dir, str) else ""
    if direction not in SORT_DIRECTIONS:
        direction = sort_field.default_direction

    mode: PagingMode = "cursor" if key == spec.recency_key else "offset"
    return ResolvedSort(
        key=key,
        field=sort_field.field,
        direction=direction,  # type: ignore[arg-type]
        mode=mode,
        then_by=sort_field.then_by,
    )
