from fastapi import APIRouter, Depends, HTTPException, status as http_status

from listings_api.core.clock import Clock, get_clock
from listings_api.schemas.maintenance import DashboardStatsOut
from listings_api.services.repository import RepositoryUnavailableError, get_repository

router = APIRouter()


@router.get("/stats", response_model=DashboardStatsOut)
async def get_dashboard_stats(
    repository=Depends(get_repository),
    clock: Clock = Depends(get_clock),
) -> DashboardStatsOut:
    try:
        stats = await repository.get_dashboard_stats(now=clock.now_utc())
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return DashboardStatsOut(**stats)
