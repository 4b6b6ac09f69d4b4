from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime
from functools import lru_cache
import logging
from typing import TYPE_CHECKING, Any

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc
from opentelemetry import trace

from listings_api.core.clock import expiring_soon_cutoff
from listings_api.core.config import get_settings
from listings_api.services.entities import ENTITY_KINDS, EntityKind

if TYPE_CHECKING:
    from listings_api.services.store import InMemoryRepository

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class RepositoryError(Exception):
    """Base repository error."""


class RepositoryUnavailableError(RepositoryError):
    """Raised when the database is unavailable, not configured, or a statement fails."""


class RepositoryValidationError(RepositoryError):
    """Raised when values do not belong to the entity kind being written."""


def check_fields(kind: EntityKind, values: Mapping[str, Any], *, require_all: bool) -> None:
    unknown = sorted(set(values) - set(kind.fields))
    if unknown:
        raise RepositoryValidationError(f"unknown {kind.name} fields: {', '.join(unknown)}")
    if require_all:
        missing = [field for field in kind.required_fields if values.get(field) is None]
        if missing:
            raise RepositoryValidationError(f"missing {kind.name} fields: {', '.join(missing)}")
    cleared = sorted(
        field for field, value in values.items() if value is None and field not in kind.nullable_fields
    )
    if cleared:
        raise RepositoryValidationError(f"{kind.name} fields cannot be null: {', '.join(cleared)}")


def active_filters(kind: EntityKind, filters: Mapping[str, str | None]) -> dict[str, str]:
    # Empty strings behave like an omitted filter.
    return {field: value for field in kind.filter_fields if (value := filters.get(field))}


def empty_cleanup_result() -> dict[str, int]:
    result = {kind.deleted_key: 0 for kind in ENTITY_KINDS}
    result["total_deleted"] = 0
    return result


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

    async def ensure_schema(self) -> None:
        pool = await self._get_pool()
        with self._database_errors("ensure_schema"):
            async with pool.acquire() as conn:
                async with conn.transaction():
                    for kind in ENTITY_KINDS:
                        for statement in self._schema_statements(kind):
                            await conn.execute(statement)
        logger.info("schema ensured for tables=%s", ",".join(kind.table for kind in ENTITY_KINDS))

    async def create_entity(self, kind: EntityKind, *, values: Mapping[str, Any], now: datetime) -> dict[str, Any]:
        check_fields(kind, values, require_all=True)
        pool = await self._get_pool()
        params: list[Any] = [values.get(field) for field in kind.fields]
        placeholders = [f"${index}" for index in range(1, len(params) + 1)]
        params.append(now)
        timestamp_token = f"${len(params)}"

        with self._database_errors("create", kind):
            row = await pool.fetchrow(
                f"""
                insert into {kind.table} ({", ".join(kind.fields)}, created_at, updated_at)
                values ({", ".join(placeholders)}, {timestamp_token}, {timestamp_token})
                returning {self._select_list(kind)}
                """,
                *params,
            )
        return self._row_to_dict(kind, row)

    async def list_entities(
        self,
        kind: EntityKind,
        *,
        filters: Mapping[str, str | None],
        limit: int,
        offset: int,
        now: datetime,
    ) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        conditions: list[str] = []
        params: list[Any] = []

        def bind(value: Any) -> str:
            params.append(value)
            return f"${len(params)}"

        conditions.append(f"{kind.deadline_field} >= {bind(now)}")
        for field, value in active_filters(kind, filters).items():
            conditions.append(f"{field} = {bind(value)}")

        where_sql = " and ".join(conditions)
        limit_token = bind(limit)
        offset_token = bind(offset)

        with self._database_errors("list", kind):
            rows = await pool.fetch(
                f"""
                select {self._select_list(kind)}
                from {kind.table}
                where {where_sql}
                order by {kind.deadline_field} asc, id asc
                limit {limit_token}
                offset {offset_token}
                """,
                *params,
            )
        return [self._row_to_dict(kind, row) for row in rows]

    async def get_entity(self, kind: EntityKind, *, entity_id: int, now: datetime) -> dict[str, Any] | None:
        pool = await self._get_pool()
        with self._database_errors("get", kind):
            row = await pool.fetchrow(
                f"""
                select {self._select_list(kind)}
                from {kind.table}
                where id = $1
                  and {kind.deadline_field} >= $2
                """,
                entity_id,
                now,
            )
        if not row:
            return None
        return self._row_to_dict(kind, row)

    async def update_entity(
        self,
        kind: EntityKind,
        *,
        entity_id: int,
        changes: Mapping[str, Any],
        now: datetime,
    ) -> dict[str, Any] | None:
        check_fields(kind, changes, require_all=False)
        pool = await self._get_pool()

        if not changes:
            # Nothing to write: hand back the stored record as-is.
            with self._database_errors("update", kind):
                row = await pool.fetchrow(
                    f"select {self._select_list(kind)} from {kind.table} where id = $1",
                    entity_id,
                )
            return self._row_to_dict(kind, row) if row else None

        params: list[Any] = []

        def bind(value: Any) -> str:
            params.append(value)
            return f"${len(params)}"

        assignments = [f"{field} = {bind(value)}" for field, value in changes.items()]
        assignments.append(f"updated_at = {bind(now)}")
        id_token = bind(entity_id)

        with self._database_errors("update", kind):
            row = await pool.fetchrow(
                f"""
                update {kind.table}
                set {", ".join(assignments)}
                where id = {id_token}
                returning {self._select_list(kind)}
                """,
                *params,
            )
        if not row:
            return None
        return self._row_to_dict(kind, row)

    async def delete_entity(self, kind: EntityKind, *, entity_id: int) -> bool:
        pool = await self._get_pool()
        with self._database_errors("delete", kind):
            deleted_id = await pool.fetchval(
                f"delete from {kind.table} where id = $1 returning id",
                entity_id,
            )
        return deleted_id is not None

    async def cleanup_expired(self, *, now: datetime) -> dict[str, int]:
        pool = await self._get_pool()
        result = empty_cleanup_result()
        with tracer.start_as_current_span("listings.cleanup_sweep") as span:
            for kind in ENTITY_KINDS:
                # Each statement commits on its own; earlier tables stay swept if a later one fails.
                with self._database_errors("cleanup", kind):
                    status = await pool.execute(
                        f"delete from {kind.table} where {kind.deadline_field} < $1",
                        now,
                    )
                deleted = self._parse_row_count(status)
                result[kind.deleted_key] = deleted
                result["total_deleted"] += deleted
                span.set_attribute(f"listings.{kind.deleted_key}", deleted)
                logger.info("cleanup swept table=%s deleted=%s cutoff=%s", kind.table, deleted, now.isoformat())
            span.set_attribute("listings.total_deleted", result["total_deleted"])
        return result

    async def get_dashboard_stats(self, *, now: datetime) -> dict[str, int]:
        pool = await self._get_pool()
        cutoff = expiring_soon_cutoff(now)
        stats: dict[str, int] = {}
        for kind in ENTITY_KINDS:
            with self._database_errors("dashboard_stats", kind):
                row = await pool.fetchrow(
                    f"""
                    select
                      count(*) filter (where {kind.deadline_field} >= $1) as total_active,
                      count(*) filter (
                        where {kind.deadline_field} >= $1
                          and {kind.deadline_field} <= $2
                      ) as expiring_soon
                    from {kind.table}
                    """,
                    now,
                    cutoff,
                )
            stats[kind.total_key] = int(row["total_active"])
            stats[kind.expiring_soon_key] = int(row["expiring_soon"])
        return stats

    async def _get_pool(self) -> asyncpg.Pool:
        if not self.database_url:
            raise RepositoryUnavailableError("OB_DATABASE_URL is required")

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
            logger.exception("database pool creation failed")
            raise RepositoryUnavailableError("database unavailable") from exc

    @contextmanager
    def _database_errors(self, operation: str, kind: EntityKind | None = None) -> Iterator[None]:
        table = kind.table if kind is not None else "*"
        try:
            yield
        except asyncpg.DataError as exc:
            # SQLSTATE class 22 and bind-time encoding failures come from the caller's input.
            logger.info("repository rejected input op=%s table=%s error=%s", operation, table, exc)
            raise RepositoryValidationError(f"invalid {operation} input for {table}: {exc}") from exc
        except (pg_exc.PostgresError, pg_exc.InterfaceError, OSError) as exc:
            logger.exception("repository operation failed op=%s table=%s", operation, table)
            raise RepositoryUnavailableError(f"{operation} failed for {table}") from exc

    @staticmethod
    def _select_list(kind: EntityKind) -> str:
        return ", ".join(kind.columns)

    @staticmethod
    def _row_to_dict(kind: EntityKind, row: asyncpg.Record) -> dict[str, Any]:
        return {column: row[column] for column in kind.columns}

    @staticmethod
    def _parse_row_count(status: str | None) -> int:
        # asyncpg returns the command tag, e.g. "DELETE 3".
        if not status:
            return 0
        try:
            return int(status.rsplit(" ", maxsplit=1)[-1])
        except ValueError:
            return 0

    @staticmethod
    def _schema_statements(kind: EntityKind) -> list[str]:
        column_defs = ["id serial primary key"]
        for field in kind.fields:
            if field == kind.deadline_field:
                column_defs.append(f"{field} timestamptz not null")
            elif field in kind.nullable_fields:
                column_defs.append(f"{field} text")
            else:
                column_defs.append(f"{field} text not null")
        column_defs.append("created_at timestamptz not null default now()")
        column_defs.append("updated_at timestamptz not null default now()")
        columns_sql = ",\n  ".join(column_defs)
        return [
            f"create table if not exists {kind.table} (\n  {columns_sql}\n)",
            f"create index if not exists {kind.table}_{kind.deadline_field}_idx on {kind.table} ({kind.deadline_field})",
        ]


@lru_cache
def get_repository() -> PostgresRepository | InMemoryRepository:
    settings = get_settings()
    if settings.storage_backend == "memory":
        from listings_api.services.store import InMemoryRepository

        return InMemoryRepository()
    return PostgresRepository(
        database_url=settings.database_url,
        min_pool_size=settings.database_pool_min_size,
        max_pool_size=settings.database_pool_max_size,
        command_timeout_seconds=settings.database_command_timeout_seconds,
    )
