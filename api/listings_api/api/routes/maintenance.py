import logging

from fastapi import APIRouter, Depends, HTTPException, status as http_status

from listings_api.core.clock import Clock, get_clock
from listings_api.schemas.maintenance import CleanupOut
from listings_api.services.repository import RepositoryUnavailableError, get_repository

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/cleanup", response_model=CleanupOut)
async def cleanup_expired(
    repository=Depends(get_repository),
    clock: Clock = Depends(get_clock),
) -> CleanupOut:
    try:
        result = await repository.cleanup_expired(now=clock.now_utc())
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    logger.info("cleanup sweep finished total_deleted=%s", result["total_deleted"])
    return CleanupOut(**result)
