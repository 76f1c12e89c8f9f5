from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from talentlist.services.predicates import (
    FieldContainsInsensitive,
    FieldEquals,
    Predicate,
    and_,
    or_,
)


@dataclass(frozen=True, slots=True)
class FilterParam:
    """A query-string filter that maps onto one record field.

    ``allowed_values`` turns the filter into an enum: values outside it are
    dropped rather than rejected.
    """

    field: str
    allowed_values: frozenset[str] | None = None


def normalize_search_text(search_text: str | None) -> str | None:
    if search_text is None:
        return None
    stripped = search_text.strip()
    return stripped or None


def resolve_explicit_filters(
    params: Mapping[str, FilterParam],
    raw_values: Mapping[str, str | None],
) -> dict[str, str]:
    resolved: dict[str, str] = {}
    for name, param in params.items():
        raw = raw_values.get(name)
        if not isinstance(raw, str):
            continue
        value = raw.strip()
        if not value:
            continue
        if param.allowed_values is not None and value not in param.allowed_values:
            continue
        resolved[param.field] = value
    return resolved


def build_search_clause(search_text: str | None, search_fields: Sequence[str]) -> Predicate | None:
    text = normalize_search_text(search_text)
    if text is None or not search_fields:
        return None
    return or_(*(FieldContainsInsensitive(field=field, text=text) for field in search_fields))


def build_filter(
    base: Predicate,
    explicit_filters: Mapping[str, str],
    search_text: str | None,
    search_fields: Sequence[str],
) -> Predicate:
    explicit = [
        FieldEquals(field=field, value=value.strip())
        for field, value in sorted(explicit_filters.items())
        if isinstance(value, str) and value.strip()
    ]
    return and_(base, *explicit, build_search_clause(search_text, search_fields))
