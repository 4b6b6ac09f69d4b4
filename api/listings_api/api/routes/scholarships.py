from listings_api.api.routes.listings import build_listing_router
from listings_api.schemas.scholarships import (
    ScholarshipCreateRequest,
    ScholarshipFilter,
    ScholarshipOut,
    ScholarshipUpdateRequest,
)
from listings_api.services.entities import SCHOLARSHIPS

router = build_listing_router(
    SCHOLARSHIPS,
    out_model=ScholarshipOut,
    create_model=ScholarshipCreateRequest,
    update_model=ScholarshipUpdateRequest,
    filter_model=ScholarshipFilter,
)
