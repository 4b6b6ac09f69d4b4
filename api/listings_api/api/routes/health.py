from fastapi import APIRouter, Depends

from listings_api.core.clock import Clock, get_clock

router = APIRouter()


@router.get("/")
async def root() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/healthz")
async def healthz(clock: Clock = Depends(get_clock)) -> dict[str, str]:
    return {"status": "ok", "timestamp": clock.now_utc().isoformat()}
