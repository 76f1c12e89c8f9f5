"""Closed set of predicate nodes shared by the filter builders and the stores.

Builders compose these nodes; each store translates them (SQL for Postgres,
plain evaluation for the in-memory store). Field names are logical record
fields, never raw SQL.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Union


@dataclass(frozen=True, slots=True)
class FieldEquals:
    field: str
    value: Any


@dataclass(frozen=True, slots=True)
class FieldIn:
    field: str
    values: frozenset[str]


@dataclass(frozen=True, slots=True)
class FieldContainsInsensitive:
    field: str
    text: str


@dataclass(frozen=True, slots=True)
class FieldIsNull:
    field: str


@dataclass(frozen=True, slots=True)
class FieldOverlaps:
    """True when a list-valued field shares at least one element with ``values``."""

    field: str
    values: frozenset[str]


@dataclass(frozen=True, slots=True)
class And:
    parts: tuple["Predicate", ...]


@dataclass(frozen=True, slots=True)
class Or:
    parts: tuple["Predicate", ...]


@dataclass(frozen=True, slots=True)
class Not:
    part: "Predicate"


Predicate = Union[FieldEquals, FieldIn, FieldContainsInsensitive, FieldIsNull, FieldOverlaps, And, Or, Not]

MATCH_ALL: Predicate = And(())


def and_(*parts: Predicate | None) -> Predicate:
    flattened: list[Predicate] = []
    for part in parts:
        if part is None or part == MATCH_ALL:
            continue
        if isinstance(part, And):
            flattened.extend(part.parts)
        else:
            flattened.append(part)
    if len(flattened) == 1:
        return flattened[0]
    return And(tuple(flattened))


def or_(*parts: Predicate) -> Predicate:
    if len(parts) == 1:
        return parts[0]
    return Or(tuple(parts))


def matches(predicate: Predicate, record: Mapping[str, Any]) -> bool:
    if isinstance(predicate, And):
        return all(matches(part, record) for part in predicate.parts)
    if isinstance(predicate, Or):
        return any(matches(part, record) for part in predicate.parts)
    if isinstance(predicate, Not):
        return not matches(predicate.part, record)
    if isinstance(predicate, FieldEquals):
        return record.get(predicate.field) == predicate.value
    if isinstance(predicate, FieldIn):
        return record.get(predicate.field) in predicate.values
    if isinstance(predicate, FieldContainsInsensitive):
        value = record.get(predicate.field)
        if value is None:
            return False
        return predicate.text.casefold() in str(value).casefold()
    if isinstance(predicate, FieldIsNull):
        return record.get(predicate.field) is None
    if isinstance(predicate, FieldOverlaps):
        values = record.get(predicate.field) or ()
        return not predicate.values.isdisjoint(values)
    raise TypeError(f"unsupported predicate node: {type(predicate).__name__}")
