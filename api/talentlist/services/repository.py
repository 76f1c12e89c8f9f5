from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc

from talentlist.core.config import get_settings
from talentlist.services.predicates import (
    And,
    FieldContainsInsensitive,
    FieldEquals,
    FieldIn,
    FieldIsNull,
    FieldOverlaps,
    Not,
    Or,
    Predicate,
)
from talentlist.services.sorting import RowBoundary, RowOrder


class RepositoryError(Exception):
    """Base repository error."""


class RepositoryUnavailableError(RepositoryError):
    """Raised when the database is unavailable or not configured."""


class RepositoryNotFoundError(RepositoryError):
    """Raised when the requested entity does not exist."""


class RepositoryQueryError(RepositoryError):
    """Raised when the database rejects or fails a query."""


@dataclass(slots=True)
class CallerProfileRecord:
    skill_ids: list[str]
    skill_category_ids: list[str]
    applied_job_ids: list[str]
    applied_category_ids: list[str]


@dataclass(frozen=True, slots=True)
class TableSource:
    select_sql: str
    columns: frozenset[str]


TABLE_SOURCES: dict[str, TableSource] = {
    "jobs": TableSource(
        select_sql="""
            select
              j.id::text as id,
              j.title,
              j.description,
              j.company,
              j.location,
              j.salary,
              j.manpower,
              j.status::text as status,
              j.category_id::text as category_id,
              c.name as category_name,
              coalesce(
                (
                  select array_agg(js.skill_tag_id::text order by js.skill_tag_id)
                  from job_skill_tags js
                  where js.job_id = j.id
                ),
                '{}'::text[]
              ) as skill_ids,
              (select count(*) from applications a where a.job_id = j.id)::int as applications_count,
              j.created_at,
              j.deleted_at
            from jobs j
            left join categories c on c.id = j.category_id
        """,
        columns=frozenset(
            {
                "id",
                "title",
                "description",
                "company",
                "location",
                "salary",
                "manpower",
                "status",
                "category_id",
                "category_name",
                "skill_ids",
                "applications_count",
                "created_at",
                "deleted_at",
            }
        ),
    ),
    "applications": TableSource(
        select_sql="""
            select
              a.id::text as id,
              a.status::text as status,
              a.submitted_at,
              a.deleted_at,
              j.id::text as job_id,
              j.title as job_title,
              j.company as job_company,
              j.location as job_location,
              u.id::text as applicant_id,
              u.firstname as applicant_firstname,
              u.lastname as applicant_lastname,
              u.email as applicant_email,
              array_position(enum_range(null::application_status), a.status) as status_rank
            from applications a
            join jobs j on j.id = a.job_id
            join users u on u.id = a.applicant_id
        """,
        columns=frozenset(
            {
                "id",
                "status",
                "submitted_at",
                "deleted_at",
                "job_id",
                "job_title",
                "job_company",
                "job_location",
                "applicant_id",
                "applicant_firstname",
                "applicant_lastname",
                "applicant_email",
                "status_rank",
            }
        ),
    ),
}


class PostgresRepository:
    def __init__(
        self,
        database_url: str | None,
        min_pool_size: int,
        max_pool_size: int,
        command_timeout_seconds: float = 15.0,
    ) -> None:
        self.database_url = database_url
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self.command_timeout_seconds = command_timeout_seconds
        self._pool: asyncpg.Pool | None = None

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

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
        source = self._resolve_table(table)
        params: list[Any] = []

        def bind(value: Any) -> str:
            params.append(value)
            return f"${len(params)}"

        conditions = [compile_predicate(predicate, source.columns, bind)]
        if after is not None:
            conditions.append(compile_boundary(order, after, source.columns, bind))
        where_sql = " and ".join(conditions)
        order_by_sql = compile_order_by(order, source.columns)
        limit_token = bind(limit)
        offset_token = bind(offset)

        rows = await self._fetch(
            f"""
            select r.*
            from ({source.select_sql}) as r
            where {where_sql}
            order by {order_by_sql}
            limit {limit_token}
            offset {offset_token}
            """,
            *params,
        )
        return [self._row_to_dict(row) for row in rows]

    async def count_rows(self, table: str, predicate: Predicate) -> int:
        source = self._resolve_table(table)
        params: list[Any] = []

        def bind(value: Any) -> str:
            params.append(value)
            return f"${len(params)}"

        where_sql = compile_predicate(predicate, source.columns, bind)
        rows = await self._fetch(
            f"""
            select count(*)::int as total
            from ({source.select_sql}) as r
            where {where_sql}
            """,
            *params,
        )
        return int(rows[0]["total"]) if rows else 0

    async def get_record(self, table: str, record_id: str) -> dict[str, Any]:
        source = self._resolve_table(table)
        normalized_id = self._coerce_text(record_id)
        if not normalized_id:
            raise RepositoryNotFoundError(f"{table} record not found")
        rows = await self._fetch(
            f"""
            select r.*
            from ({source.select_sql}) as r
            where r."id" = $1
            """,
            normalized_id,
        )
        if not rows:
            raise RepositoryNotFoundError(f"{table} record not found")
        return self._row_to_dict(rows[0])

    async def load_caller_profile(self, caller_id: str) -> CallerProfileRecord:
        skill_rows = await self._fetch(
            """
            select
              st.id::text as skill_id,
              st.category_id::text as category_id
            from profiles p
            join profile_skills ps on ps.profile_id = p.id
            join skill_tags st on st.id = ps.skill_tag_id
            where p.user_id::text = $1
            """,
            caller_id,
        )
        application_rows = await self._fetch(
            """
            select
              a.job_id::text as job_id,
              j.category_id::text as category_id
            from applications a
            join jobs j on j.id = a.job_id
            where a.applicant_id::text = $1
            """,
            caller_id,
        )
        return CallerProfileRecord(
            skill_ids=self._distinct_texts(row["skill_id"] for row in skill_rows),
            skill_category_ids=self._distinct_texts(row["category_id"] for row in skill_rows),
            applied_job_ids=self._distinct_texts(row["job_id"] for row in application_rows),
            applied_category_ids=self._distinct_texts(row["category_id"] for row in application_rows),
        )

    async def _fetch(self, sql: str, *params: Any) -> list[asyncpg.Record]:
        pool = await self._get_pool()
        try:
            return await pool.fetch(sql, *params)
        except pg_exc.PostgresConnectionError as exc:
            raise RepositoryUnavailableError("database unavailable") from exc
        except pg_exc.PostgresError as exc:
            raise RepositoryQueryError(f"list query failed: {exc.__class__.__name__}") from exc
        except (pg_exc.InterfaceError, OSError) as exc:
            raise RepositoryUnavailableError("database unavailable") from exc

    async def _get_pool(self) -> asyncpg.Pool:
        if not self.database_url:
            raise RepositoryUnavailableError("TL_DATABASE_URL is required")

        if self._pool is not None:
            return self._pool

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self.database_url,
                min_size=self.min_pool_size,
                max_size=self.max_pool_size,
                command_timeout=self.command_timeout_seconds,
            )
            return self._pool
        except Exception as exc:  # pragma: no cover - depends on environment
            raise RepositoryUnavailableError("database unavailable") from exc

    @staticmethod
    def _resolve_table(table: str) -> TableSource:
        source = TABLE_SOURCES.get(table)
        if source is None:
            raise RepositoryQueryError(f"unknown table: {table}")
        return source

    @staticmethod
    def _row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        record = dict(row)
        if "skill_ids" in record:
            record["skill_ids"] = list(record["skill_ids"] or [])
        return record

    @staticmethod
    def _coerce_text(value: Any) -> str | None:
        if value is None:
            return None
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return str(value)

    @classmethod
    def _distinct_texts(cls, values: Any) -> list[str]:
        seen: dict[str, None] = {}
        for value in values:
            text = cls._coerce_text(value)
            if text:
                seen[text] = None
        return list(seen)


def _column(field: str, columns: frozenset[str]) -> str:
    if field not in columns:
        raise RepositoryQueryError(f"unknown field: {field}")
    return f'r."{field}"'


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def compile_predicate(predicate: Predicate, columns: frozenset[str], bind: Callable[[Any], str]) -> str:
    if isinstance(predicate, And):
        if not predicate.parts:
            return "true"
        return "(" + " and ".join(compile_predicate(part, columns, bind) for part in predicate.parts) + ")"
    if isinstance(predicate, Or):
        if not predicate.parts:
            return "false"
        return "(" + " or ".join(compile_predicate(part, columns, bind) for part in predicate.parts) + ")"
    if isinstance(predicate, Not):
        return f"not {compile_predicate(predicate.part, columns, bind)}"
    if isinstance(predicate, FieldEquals):
        return f"{_column(predicate.field, columns)} = {bind(predicate.value)}"
    if isinstance(predicate, FieldIn):
        return f"{_column(predicate.field, columns)} = any({bind(sorted(predicate.values))}::text[])"
    if isinstance(predicate, FieldContainsInsensitive):
        return f"{_column(predicate.field, columns)} ilike {bind(f'%{_escape_like(predicate.text)}%')}"
    if isinstance(predicate, FieldIsNull):
        return f"{_column(predicate.field, columns)} is null"
    if isinstance(predicate, FieldOverlaps):
        return f"{_column(predicate.field, columns)} && {bind(sorted(predicate.values))}::text[]"
    raise RepositoryQueryError(f"unsupported predicate node: {type(predicate).__name__}")


def compile_order_by(order: RowOrder, columns: frozenset[str]) -> str:
    terms = [f"{_column(name, columns)} {order.direction} nulls last" for name in (order.field, *order.then_by)]
    # Ids compare bytewise so SQL and in-memory ordering agree.
    terms.append(f'{_column("id", columns)} collate "C" {order.tie_break_direction}')
    return ", ".join(terms)


def compile_boundary(
    order: RowOrder,
    boundary: RowBoundary,
    columns: frozenset[str],
    bind: Callable[[Any], str],
) -> str:
    sort_column = _column(order.field, columns)
    id_column = _column("id", columns)
    sort_op = ">" if order.direction == "asc" else "<"
    id_op = ">" if order.tie_break_direction == "asc" else "<"
    value_token = bind(boundary.sort_value)
    id_token = bind(boundary.tie_break_id)
    return (
        f"({sort_column} {sort_op} {value_token}"
        f' or ({sort_column} = {value_token} and {id_column} collate "C" {id_op} {id_token}))'
    )


@lru_cache
def get_repository() -> Any:
    settings = get_settings()
    if settings.store_backend == "memory":
        from talentlist.services.store import InMemoryRepository

        return InMemoryRepository()
    return PostgresRepository(
        database_url=settings.database_url,
        min_pool_size=settings.database_pool_min_size,
        max_pool_size=settings.database_pool_max_size,
        command_timeout_seconds=settings.database_command_timeout_seconds,
    )
