from __future__ import annotations

from typing import Any, Iterable

from talentlist.services.predicates import Predicate, matches
from talentlist.services.repository import (
    CallerProfileRecord,
    RepositoryNotFoundError,
    RepositoryQueryError,
)
from talentlist.services.sorting import RowBoundary, RowOrder


class InMemoryRepository:
    """Store with the same list interface as ``PostgresRepository``, kept in process memory.

    Rows are plain dicts shaped like the Postgres projections (``jobs`` rows
    carry ``skill_ids`` and ``applications_count``). Profiles map a user id to
    skill tag ids, and ``skill_categories`` maps a skill tag id to its category.
    """

    def __init__(
        self,
        *,
        jobs: Iterable[dict[str, Any]] = (),
        applications: Iterable[dict[str, Any]] = (),
        profiles: dict[str, list[str]] | None = None,
        skill_categories: dict[str, str | None] | None = None,
    ) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {
            "jobs": [dict(row) for row in jobs],
            "applications": [dict(row) for row in applications],
        }
        self.profiles: dict[str, list[str]] = dict(profiles or {})
        self.skill_categories: dict[str, str | None] = dict(skill_categories or {})
        self.fetch_calls = 0
        self.count_calls = 0

    def add(self, table: str, row: dict[str, Any]) -> None:
        self._rows(table).append(dict(row))

    async def close(self) -> None:
        return None

    async def fetch_rows(
        self,
        table: str,
        predicate: Predicate,
        order: RowOrder,
        *,
        limit: int,
        offset: int = 0,
        after: RowBoundary | None = None,
    ) -> list[dict[str, Any]]:
        self.fetch_calls += 1
        rows = [row for row in self._rows(table) if matches(predicate, row)]
        if after is not None:
            rows = [row for row in rows if _is_after(row, order, after)]
        ordered = _sort_rows(rows, order)
        return [dict(row) for row in ordered[offset : offset + limit]]

    async def count_rows(self, table: str, predicate: Predicate) -> int:
        self.count_calls += 1
        return sum(1 for row in self._rows(table) if matches(predicate, row))

    async def get_record(self, table: str, record_id: str) -> dict[str, Any]:
        for row in self._rows(table):
            if row.get("id") == record_id:
                return dict(row)
        raise RepositoryNotFoundError(f"{table} record not found")

    async def load_caller_profile(self, caller_id: str) -> CallerProfileRecord:
        skill_ids = list(dict.fromkeys(self.profiles.get(caller_id, [])))
        skill_category_ids = [
            category_id
            for category_id in dict.fromkeys(self.skill_categories.get(skill_id) for skill_id in skill_ids)
            if category_id
        ]

        jobs_by_id = {row["id"]: row for row in self.tables["jobs"]}
        applied_job_ids = list(
            dict.fromkeys(row["job_id"] for row in self.tables["applications"] if row.get("applicant_id") == caller_id)
        )
        applied_category_ids = [
            category_id
            for category_id in dict.fromkeys(
                jobs_by_id[job_id].get("category_id") for job_id in applied_job_ids if job_id in jobs_by_id
            )
            if category_id
        ]
        return CallerProfileRecord(
            skill_ids=skill_ids,
            skill_category_ids=skill_category_ids,
            applied_job_ids=applied_job_ids,
            applied_category_ids=applied_category_ids,
        )

    def _rows(self, table: str) -> list[dict[str, Any]]:
        rows = self.tables.get(table)
        if rows is None:
            raise RepositoryQueryError(f"unknown table: {table}")
        return rows


def _sort_rows(rows: list[dict[str, Any]], order: RowOrder) -> list[dict[str, Any]]:
    # Stable multi-pass sort: tie-break first, then the fields from least to most significant.
    ordered = sorted(rows, key=lambda row: str(row["id"]), reverse=order.tie_break_direction == "desc")
    for name in reversed((order.field, *order.then_by)):
        present = [row for row in ordered if row.get(name) is not None]
        missing = [row for row in ordered if row.get(name) is None]
        present.sort(key=lambda row: row[name], reverse=order.direction == "desc")
        ordered = present + missing
    return ordered


def _is_after(row: dict[str, Any], order: RowOrder, boundary: RowBoundary) -> bool:
    value = row.get(order.field)
    if value is None:
        return False
    if value != boundary.sort_value:
        return value > boundary.sort_value if order.direction == "asc" else value < boundary.sort_value
    row_id = str(row["id"])
    if order.tie_break_direction == "asc":
        return row_id > boundary.tie_break_id
    return row_id < boundary.tie_break_id
