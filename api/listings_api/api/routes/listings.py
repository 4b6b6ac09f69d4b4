"""Route factory shared by the competition, job and scholarship endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status as http_status
from pydantic import BaseModel

from listings_api.core.clock import Clock, get_clock
from listings_api.schemas.common import DeleteOut
from listings_api.services.entities import EntityKind
from listings_api.services.repository import (
    RepositoryUnavailableError,
    RepositoryValidationError,
    get_repository,
)

# ids are Postgres serial (int4) values
EntityId = Annotated[int, Path(ge=1, le=2_147_483_647)]

PAGE_FIELDS = {"limit", "offset"}


def build_listing_router(
    kind: EntityKind,
    *,
    out_model: type[BaseModel],
    create_model: type[BaseModel],
    update_model: type[BaseModel],
    filter_model: type[BaseModel],
) -> APIRouter:
    router = APIRouter()
    not_found = f"{kind.name} not found"

    @router.post("", response_model=out_model, status_code=http_status.HTTP_201_CREATED, name=f"create_{kind.name}")
    async def create_entity(
        payload: create_model,  # type: ignore[valid-type]
        repository=Depends(get_repository),
        clock: Clock = Depends(get_clock),
    ) -> Any:
        try:
            row = await repository.create_entity(kind, values=payload.to_values(), now=clock.now_utc())
        except RepositoryValidationError as exc:
            raise HTTPException(status_code=http_status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
        except RepositoryUnavailableError as exc:
            raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
        return out_model(**row)

    @router.get("", response_model=list[out_model], name=f"list_{kind.table}")  # type: ignore[valid-type]
    async def list_entities(
        query: Annotated[filter_model, Query()],  # type: ignore[valid-type]
        repository=Depends(get_repository),
        clock: Clock = Depends(get_clock),
    ) -> Any:
        try:
            rows = await repository.list_entities(
                kind,
                filters=query.model_dump(exclude=PAGE_FIELDS),
                limit=query.limit,
                offset=query.offset,
                now=clock.now_utc(),
            )
        except RepositoryValidationError as exc:
            raise HTTPException(status_code=http_status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
        except RepositoryUnavailableError as exc:
            raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
        return [out_model(**row) for row in rows]

    @router.get("/{entity_id}", response_model=out_model, name=f"get_{kind.name}")
    async def get_entity(
        entity_id: EntityId,
        repository=Depends(get_repository),
        clock: Clock = Depends(get_clock),
    ) -> Any:
        try:
            row = await repository.get_entity(kind, entity_id=entity_id, now=clock.now_utc())
        except RepositoryUnavailableError as exc:
            raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
        if row is None:
            raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=not_found)
        return out_model(**row)

    @router.patch("/{entity_id}", response_model=out_model, name=f"update_{kind.name}")
    async def update_entity(
        entity_id: EntityId,
        payload: update_model,  # type: ignore[valid-type]
        repository=Depends(get_repository),
        clock: Clock = Depends(get_clock),
    ) -> Any:
        try:
            row = await repository.update_entity(
                kind,
                entity_id=entity_id,
                changes=payload.to_changes(),
                now=clock.now_utc(),
            )
        except RepositoryValidationError as exc:
            raise HTTPException(status_code=http_status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
        except RepositoryUnavailableError as exc:
            raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
        if row is None:
            raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=not_found)
        return out_model(**row)

    @router.delete("/{entity_id}", response_model=DeleteOut, name=f"delete_{kind.name}")
    async def delete_entity(entity_id: EntityId, repository=Depends(get_repository)) -> DeleteOut:
        try:
            deleted = await repository.delete_entity(kind, entity_id=entity_id)
        except RepositoryUnavailableError as exc:
            raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
        return DeleteOut(id=entity_id, deleted=deleted)

    return router
