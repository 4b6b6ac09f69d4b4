from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, HttpUrl, model_validator

from listings_api.schemas.common import PageParams, dump_payload, reject_null_required

LINK_FIELDS = {"application_link", "image_link"}
NULLABLE_FIELDS = {"image_link"}


class JobOut(BaseModel):
    id: int
    job_title: str
    company: str
    location: str
    job_description: str
    application_link: str
    deadline: datetime
    required_experience: str
    image_link: str | None = None
    created_at: datetime
    updated_at: datetime


class JobCreateRequest(BaseModel):
    job_title: str = Field(min_length=1)
    company: str = Field(min_length=1)
    location: str = Field(min_length=1)
    job_description: str = Field(min_length=1)
    application_link: HttpUrl
    deadline: datetime
    required_experience: str = Field(min_length=1)
    image_link: HttpUrl | None = None

    def to_values(self) -> dict[str, Any]:
        return dump_payload(self, link_fields=LINK_FIELDS)


class JobUpdateRequest(BaseModel):
    job_title: str | None = Field(default=None, min_length=1)
    company: str | None = Field(default=None, min_length=1)
    location: str | None = Field(default=None, min_length=1)
    job_description: str | None = Field(default=None, min_length=1)
    application_link: HttpUrl | None = None
    deadline: datetime | None = None
    required_experience: str | None = Field(default=None, min_length=1)
    image_link: HttpUrl | None = None

    @model_validator(mode="after")
    def _check_nulls(self) -> "JobUpdateRequest":
        reject_null_required(
            {name: getattr(self, name) for name in self.model_fields_set},
            nullable=NULLABLE_FIELDS,
        )
        return self

    def to_changes(self) -> dict[str, Any]:
        return dump_payload(self, link_fields=LINK_FIELDS, exclude_unset=True)


class JobFilter(PageParams):
    location: str | None = None
    company: str | None = None
    required_experience: str | None = None
