"""Per-kind configuration shared by the Postgres and in-memory stores.

Competitions, jobs and scholarships follow one storage template; an
``EntityKind`` names the pieces that differ between them.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class EntityKind:
    name: str
    table: str
    deadline_field: str
    fields: tuple[str, ...]
    nullable_fields: frozenset[str]
    filter_fields: tuple[str, ...]

    @property
    def columns(self) -> tuple[str, ...]:
        return ("id", *self.fields, "created_at", "updated_at")

    @property
    def required_fields(self) -> tuple[str, ...]:
        return tuple(field for field in self.fields if field not in self.nullable_fields)

    @property
    def deleted_key(self) -> str:
        return f"{self.table}_deleted"

    @property
    def total_key(self) -> str:
        return f"total_{self.table}"

    @property
    def expiring_soon_key(self) -> str:
        return f"{self.table}_expiring_soon"


COMPETITIONS = EntityKind(
    name="competition",
    table="competitions",
    deadline_field="deadline_registration_date",
    fields=(
        "title",
        "description",
        "organizer",
        "deadline_registration_date",
        "registration_link",
        "guide_book_link",
        "price_register",
        "place",
        "category",
        "image_link",
    ),
    nullable_fields=frozenset({"guide_book_link", "image_link"}),
    filter_fields=("category", "place", "price_register"),
)

JOBS = EntityKind(
    name="job",
    table="jobs",
    deadline_field="deadline",
    fields=(
        "job_title",
        "company",
        "location",
        "job_description",
        "application_link",
        "deadline",
        "required_experience",
        "image_link",
    ),
    nullable_fields=frozenset({"image_link"}),
    filter_fields=("location", "company", "required_experience"),
)

SCHOLARSHIPS = EntityKind(
    name="scholarship",
    table="scholarships",
    deadline_field="deadline",
    fields=(
        "scholarship_name",
        "description",
        "provider",
        "eligibility",
        "application_link",
        "deadline",
        "award_amount",
        "image_link",
    ),
    nullable_fields=frozenset({"image_link"}),
    filter_fields=("provider", "award_amount"),
)

# Sweep and dashboard order.
ENTITY_KINDS: tuple[EntityKind, ...] = (COMPETITIONS, JOBS, SCHOLARSHIPS)
