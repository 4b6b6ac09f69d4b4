from pydantic import BaseModel, Field


class CleanupOut(BaseModel):
    competitions_deleted: int = Field(ge=0)
    jobs_deleted: int = Field(ge=0)
    scholarships_deleted: int = Field(ge=0)
    total_deleted: int = Field(ge=0)


class DashboardStatsOut(BaseModel):
    total_competitions: int = Field(ge=0)
    total_jobs: int = Field(ge=0)
    total_scholarships: int = Field(ge=0)
    competitions_expiring_soon: int = Field(ge=0)
    jobs_expiring_soon: int = Field(ge=0)
    scholarships_expiring_soon: int = Field(ge=0)
