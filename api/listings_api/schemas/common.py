from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, HttpUrl

from listings_api.core.clock import ensure_utc

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
# Postgres bigint, the widest value an offset can bind to
MAX_OFFSET = 2**63 - 1


class PageParams(BaseModel):
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    offset: int = Field(default=0, ge=0, le=MAX_OFFSET)


class DeleteOut(BaseModel):
    id: int
    deleted: bool


def link_to_text(value: HttpUrl | str | None) -> str | None:
    if value is None:
        return None
    return str(value)


def deadline_to_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return ensure_utc(value)


def reject_null_required(values: dict[str, Any], *, nullable: set[str]) -> None:
    cleared = sorted(name for name, value in values.items() if value is None and name not in nullable)
    if cleared:
        raise ValueError(f"fields cannot be null: {', '.join(cleared)}")


def dump_payload(model: BaseModel, *, link_fields: set[str], exclude_unset: bool = False) -> dict[str, Any]:
    """Dump a write model into store-ready values (links as text, deadlines in UTC)."""
    payload = model.model_dump(exclude_unset=exclude_unset)
    for name in link_fields & payload.keys():
        payload[name] = link_to_text(payload[name])
    for name, value in payload.items():
        if isinstance(value, datetime):
            payload[name] = deadline_to_utc(value)
    return payload
