from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, HttpUrl, model_validator

from listings_api.schemas.common import PageParams, dump_payload, reject_null_required

LINK_FIELDS = {"application_link", "image_link"}
NULLABLE_FIELDS = {"image_link"}


class ScholarshipOut(BaseModel):
    id: int
    scholarship_name: str
    description: str
    provider: str
    eligibility: str
    application_link: str
    deadline: datetime
    award_amount: str
    image_link: str | None = None
    created_at: datetime
    updated_at: datetime


class ScholarshipCreateRequest(BaseModel):
    scholarship_name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    provider: str = Field(min_length=1)
    eligibility: str = Field(min_length=1)
    application_link: HttpUrl
    deadline: datetime
    award_amount: str = Field(min_length=1)
    image_link: HttpUrl | None = None

    def to_values(self) -> dict[str, Any]:
        return dump_payload(self, link_fields=LINK_FIELDS)


class ScholarshipUpdateRequest(BaseModel):
    scholarship_name: str | None = Field(default=None, min_length=1)
    description: str | None = Field(default=None, min_length=1)
    provider: str | None = Field(default=None, min_length=1)
    eligibility: str | None = Field(default=None, min_length=1)
    application_link: HttpUrl | None = None
    deadline: datetime | None = None
    award_amount: str | None = Field(default=None, min_length=1)
    image_link: HttpUrl | None = None

    @model_validator(mode="after")
    def _check_nulls(self) -> "ScholarshipUpdateRequest":
        reject_null_required(
            {name: getattr(self, name) for name in self.model_fields_set},
            nullable=NULLABLE_FIELDS,
        )
        return self

    def to_changes(self) -> dict[str, Any]:
        return dump_payload(self, link_fields=LINK_FIELDS, exclude_unset=True)


class ScholarshipFilter(PageParams):
    provider: str | None = None
    award_amount: str | None = None
