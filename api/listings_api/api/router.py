from fastapi import APIRouter

from listings_api.api.routes import competitions, dashboard, health, jobs, maintenance, scholarships

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(competitions.router, prefix="/competitions", tags=["competitions"])
api_router.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
api_router.include_router(scholarships.router, prefix="/scholarships", tags=["scholarships"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(maintenance.router, prefix="/maintenance", tags=["maintenance"])
