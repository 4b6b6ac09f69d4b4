from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
import itertools
import logging
from typing import Any

from listings_api.core.clock import ensure_utc, is_expiring_soon, is_visible
from listings_api.services.entities import ENTITY_KINDS, EntityKind
from listings_api.services.repository import active_filters, check_fields, empty_cleanup_result

logger = logging.getLogger(__name__)


class InMemoryRepository:
    """Process-local store with the same contract as ``PostgresRepository``.

    Used for ``OB_STORAGE_BACKEND=memory`` and in tests. Nothing awaits between
    a read and the matching write, so every call is atomic on the event loop.
    """

    def __init__(self) -> None:
        self.tables: dict[str, dict[int, dict[str, Any]]] = {kind.table: {} for kind in ENTITY_KINDS}
        self._id_sequences = {kind.table: itertools.count(1) for kind in ENTITY_KINDS}

    async def close(self) -> None:
        return None

    async def ensure_schema(self) -> None:
        return None

    async def create_entity(self, kind: EntityKind, *, values: Mapping[str, Any], now: datetime) -> dict[str, Any]:
        check_fields(kind, values, require_all=True)
        entity_id = next(self._id_sequences[kind.table])
        row: dict[str, Any] = {"id": entity_id}
        row.update(_normalize(kind, {field: values.get(field) for field in kind.fields}))
        row["created_at"] = now
        row["updated_at"] = now
        self.tables[kind.table][entity_id] = row
        return dict(row)

    async def list_entities(
        self,
        kind: EntityKind,
        *,
        filters: Mapping[str, str | None],
        limit: int,
        offset: int,
        now: datetime,
    ) -> list[dict[str, Any]]:
        wanted = active_filters(kind, filters)
        rows = [
            row
            for row in self.tables[kind.table].values()
            if is_visible(row[kind.deadline_field], now)
            and all(row[field] == value for field, value in wanted.items())
        ]
        rows.sort(key=lambda row: (row[kind.deadline_field], row["id"]))
        return [dict(row) for row in rows[offset : offset + limit]]

    async def get_entity(self, kind: EntityKind, *, entity_id: int, now: datetime) -> dict[str, Any] | None:
        row = self.tables[kind.table].get(entity_id)
        if row is None or not is_visible(row[kind.deadline_field], now):
            return None
        return dict(row)

    async def update_entity(
        self,
        kind: EntityKind,
        *,
        entity_id: int,
        changes: Mapping[str, Any],
        now: datetime,
    ) -> dict[str, Any] | None:
        check_fields(kind, changes, require_all=False)
        row = self.tables[kind.table].get(entity_id)
        if row is None:
            return None
        if changes:
            row.update(_normalize(kind, changes))
            row["updated_at"] = now
        return dict(row)

    async def delete_entity(self, kind: EntityKind, *, entity_id: int) -> bool:
        return self.tables[kind.table].pop(entity_id, None) is not None

    async def cleanup_expired(self, *, now: datetime) -> dict[str, int]:
        result = empty_cleanup_result()
        for kind in ENTITY_KINDS:
            table = self.tables[kind.table]
            expired_ids = [entity_id for entity_id, row in table.items() if not is_visible(row[kind.deadline_field], now)]
            for entity_id in expired_ids:
                del table[entity_id]
            result[kind.deleted_key] = len(expired_ids)
            result["total_deleted"] += len(expired_ids)
            logger.info("cleanup swept table=%s deleted=%s cutoff=%s", kind.table, len(expired_ids), now.isoformat())
        return result

    async def get_dashboard_stats(self, *, now: datetime) -> dict[str, int]:
        stats: dict[str, int] = {}
        for kind in ENTITY_KINDS:
            deadlines = [row[kind.deadline_field] for row in self.tables[kind.table].values()]
            stats[kind.total_key] = sum(1 for deadline in deadlines if is_visible(deadline, now))
            stats[kind.expiring_soon_key] = sum(1 for deadline in deadlines if is_expiring_soon(deadline, now))
        return stats


def _normalize(kind: EntityKind, values: Mapping[str, Any]) -> dict[str, Any]:
    normalized = dict(values)
    deadline = normalized.get(kind.deadline_field)
    if isinstance(deadline, datetime):
        normalized[kind.deadline_field] = ensure_utc(deadline)
    return normalized
