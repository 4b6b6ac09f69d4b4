from listings_api.api.routes.listings import build_listing_router
from listings_api.schemas.competitions import (
    CompetitionCreateRequest,
    CompetitionFilter,
    CompetitionOut,
    CompetitionUpdateRequest,
)
from listings_api.services.entities import COMPETITIONS

router = build_listing_router(
    COMPETITIONS,
    out_model=CompetitionOut,
    create_model=CompetitionCreateRequest,
    update_model=CompetitionUpdateRequest,
    filter_model=CompetitionFilter,
)
