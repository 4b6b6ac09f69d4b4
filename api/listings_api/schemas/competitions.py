from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, HttpUrl, model_validator

from listings_api.schemas.common import PageParams, dump_payload, reject_null_required

LINK_FIELDS = {"registration_link", "guide_book_link", "image_link"}
NULLABLE_FIELDS = {"guide_book_link", "image_link"}


class CompetitionOut(BaseModel):
    id: int
    title: str
    description: str
    organizer: str
    deadline_registration_date: datetime
    registration_link: str
    guide_book_link: str | None = None
    price_register: str
    place: str
    category: str
    image_link: str | None = None
    created_at: datetime
    updated_at: datetime


class CompetitionCreateRequest(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    organizer: str = Field(min_length=1)
    deadline_registration_date: datetime
    registration_link: HttpUrl
    guide_book_link: HttpUrl | None = None
    price_register: str = Field(min_length=1)
    place: str = Field(min_length=1)
    category: str = Field(min_length=1)
    image_link: HttpUrl | None = None

    def to_values(self) -> dict[str, Any]:
        return dump_payload(self, link_fields=LINK_FIELDS)


class CompetitionUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    description: str | None = Field(default=None, min_length=1)
    organizer: str | None = Field(default=None, min_length=1)
    deadline_registration_date: datetime | None = None
    registration_link: HttpUrl | None = None
    guide_book_link: HttpUrl | None = None
    price_register: str | None = Field(default=None, min_length=1)
    place: str | None = Field(default=None, min_length=1)
    category: str | None = Field(default=None, min_length=1)
    image_link: HttpUrl | None = None

    @model_validator(mode="after")
    def _check_nulls(self) -> "CompetitionUpdateRequest":
        reject_null_required(
            {name: getattr(self, name) for name in self.model_fields_set},
            nullable=NULLABLE_FIELDS,
        )
        return self

    def to_changes(self) -> dict[str, Any]:
        return dump_payload(self, link_fields=LINK_FIELDS, exclude_unset=True)


class CompetitionFilter(PageParams):
    category: str | None = None
    place: str | None = None
    price_register: str | None = None
