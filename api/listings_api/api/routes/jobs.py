from listings_api.api.routes.listings import build_listing_router
from listings_api.schemas.jobs import JobCreateRequest, JobFilter, JobOut, JobUpdateRequest
from listings_api.services.entities import JOBS

router = build_listing_router(
    JOBS,
    out_model=JobOut,
    create_model=JobCreateRequest,
    update_model=JobUpdateRequest,
    filter_model=JobFilter,
)
