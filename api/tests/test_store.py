from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from datetime import datetime, timedelta
from typing import Any, TypeVar

import pytest

from factories import NOW
from listings_api.services.entities import COMPETITIONS, JOBS, SCHOLARSHIPS
from listings_api.services.repository import RepositoryValidationError
from listings_api.services.store import InMemoryRepository

T = TypeVar("T")


def _run(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


def _job_values(deadline: datetime, **overrides: Any) -> dict[str, Any]:
    values: dict[str, Any] = {
        "job_title": "Data Analyst",
        "company": "Acme Corp",
        "location": "Bandung",
        "job_description": "Analyse listings data.",
        "application_link": "https://jobs.example.com/analyst",
        "deadline": deadline,
        "required_experience": "Entry-level",
        "image_link": None,
    }
    values.update(overrides)
    return values


def _competition_values(deadline: datetime, **overrides: Any) -> dict[str, Any]:
    values: dict[str, Any] = {
        "title": "Math Olympiad",
        "description": "Regional round.",
        "organizer": "Math Club",
        "deadline_registration_date": deadline,
        "registration_link": "https://example.org/olympiad",
        "guide_book_link": None,
        "price_register": "Free",
        "place": "Online",
        "category": "High School",
        "image_link": None,
    }
    values.update(overrides)
    return values


def _scholarship_values(deadline: datetime, **overrides: Any) -> dict[str, Any]:
    values: dict[str, Any] = {
        "scholarship_name": "STEM Grant",
        "description": "Support for STEM majors.",
        "provider": "Example Foundation",
        "eligibility": "Undergraduates",
        "application_link": "https://scholarships.example.edu/stem",
        "deadline": deadline,
        "award_amount": "$5000",
        "image_link": None,
    }
    values.update(overrides)
    return values


@pytest.fixture
def repo() -> InMemoryRepository:
    return InMemoryRepository()


def test_create_assigns_sequential_ids_per_kind(repo: InMemoryRepository) -> None:
    first = _run(repo.create_entity(JOBS, values=_job_values(NOW + timedelta(days=1)), now=NOW))
    second = _run(repo.create_entity(JOBS, values=_job_values(NOW + timedelta(days=2)), now=NOW))
    competition = _run(
        repo.create_entity(COMPETITIONS, values=_competition_values(NOW + timedelta(days=1)), now=NOW)
    )

    assert (first["id"], second["id"]) == (1, 2)
    assert competition["id"] == 1
    assert first["created_at"] == first["updated_at"] == NOW


def test_create_accepts_already_expired_record(repo: InMemoryRepository) -> None:
    created = _run(repo.create_entity(JOBS, values=_job_values(NOW - timedelta(days=1)), now=NOW))

    assert created["id"] == 1
    assert _run(repo.get_entity(JOBS, entity_id=1, now=NOW)) is None
    assert 1 in repo.tables["jobs"]


def test_create_rejects_unknown_and_missing_fields(repo: InMemoryRepository) -> None:
    with pytest.raises(RepositoryValidationError, match="unknown job fields: salary"):
        _run(repo.create_entity(JOBS, values=_job_values(NOW, salary="10"), now=NOW))

    values = _job_values(NOW)
    del values["company"]
    with pytest.raises(RepositoryValidationError, match="missing job fields: company"):
        _run(repo.create_entity(JOBS, values=values, now=NOW))


def test_list_hides_expired_regardless_of_filters(repo: InMemoryRepository) -> None:
    _run(repo.create_entity(JOBS, values=_job_values(NOW - timedelta(seconds=1)), now=NOW))
    _run(repo.create_entity(JOBS, values=_job_values(NOW), now=NOW))

    unfiltered = _run(repo.list_entities(JOBS, filters={}, limit=20, offset=0, now=NOW))
    filtered = _run(repo.list_entities(JOBS, filters={"company": "Acme Corp"}, limit=20, offset=0, now=NOW))

    assert [row["id"] for row in unfiltered] == [2]
    assert [row["id"] for row in filtered] == [2]


def test_list_filters_are_conjunctive_and_exact(repo: InMemoryRepository) -> None:
    deadline = NOW + timedelta(days=3)
    _run(repo.create_entity(JOBS, values=_job_values(deadline, location="Bandung", company="Acme Corp"), now=NOW))
    _run(repo.create_entity(JOBS, values=_job_values(deadline, location="Bandung", company="Globex"), now=NOW))
    _run(repo.create_entity(JOBS, values=_job_values(deadline, location="bandung", company="Acme Corp"), now=NOW))

    rows = _run(
        repo.list_entities(
            JOBS,
            filters={"location": "Bandung", "company": "Acme Corp", "required_experience": None},
            limit=20,
            offset=0,
            now=NOW,
        )
    )

    assert [row["id"] for row in rows] == [1]


def test_list_treats_empty_filter_as_wildcard(repo: InMemoryRepository) -> None:
    _run(repo.create_entity(JOBS, values=_job_values(NOW + timedelta(days=1)), now=NOW))

    rows = _run(repo.list_entities(JOBS, filters={"company": ""}, limit=20, offset=0, now=NOW))

    assert len(rows) == 1


def test_list_orders_by_deadline_then_id(repo: InMemoryRepository) -> None:
    _run(repo.create_entity(SCHOLARSHIPS, values=_scholarship_values(NOW + timedelta(days=9)), now=NOW))
    _run(repo.create_entity(SCHOLARSHIPS, values=_scholarship_values(NOW + timedelta(days=2)), now=NOW))
    _run(repo.create_entity(SCHOLARSHIPS, values=_scholarship_values(NOW + timedelta(days=2)), now=NOW))

    rows = _run(repo.list_entities(SCHOLARSHIPS, filters={}, limit=20, offset=0, now=NOW))

    assert [row["id"] for row in rows] == [2, 3, 1]


@pytest.mark.parametrize(("limit", "offset", "expected"), [(2, 0, 2), (2, 4, 1), (3, 5, 0), (100, 0, 5), (1, 9, 0)])
def test_list_pagination_count(repo: InMemoryRepository, limit: int, offset: int, expected: int) -> None:
    for day in range(1, 6):
        _run(repo.create_entity(JOBS, values=_job_values(NOW + timedelta(days=day)), now=NOW))

    rows = _run(repo.list_entities(JOBS, filters={}, limit=limit, offset=offset, now=NOW))

    assert len(rows) == expected == max(0, min(limit, 5 - offset))


def test_pages_reconstruct_full_ordering(repo: InMemoryRepository) -> None:
    for day in (5, 1, 4, 2, 3, 7, 6):
        _run(repo.create_entity(JOBS, values=_job_values(NOW + timedelta(days=day)), now=NOW))

    full = _run(repo.list_entities(JOBS, filters={}, limit=100, offset=0, now=NOW))
    paged: list[dict[str, Any]] = []
    offset = 0
    while True:
        page = _run(repo.list_entities(JOBS, filters={}, limit=3, offset=offset, now=NOW))
        if not page:
            break
        paged.extend(page)
        offset += 3

    assert [row["id"] for row in paged] == [row["id"] for row in full]
    assert len({row["id"] for row in paged}) == 7


def test_get_returns_none_for_missing_and_expired(repo: InMemoryRepository) -> None:
    _run(repo.create_entity(JOBS, values=_job_values(NOW + timedelta(hours=1)), now=NOW))

    assert _run(repo.get_entity(JOBS, entity_id=1, now=NOW))["id"] == 1
    assert _run(repo.get_entity(JOBS, entity_id=99, now=NOW)) is None
    # Same record, read after its deadline has passed.
    assert _run(repo.get_entity(JOBS, entity_id=1, now=NOW + timedelta(hours=2))) is None


def test_update_changes_only_supplied_fields(repo: InMemoryRepository) -> None:
    created = _run(repo.create_entity(COMPETITIONS, values=_competition_values(NOW + timedelta(days=10)), now=NOW))
    later = NOW + timedelta(minutes=30)

    updated = _run(repo.update_entity(COMPETITIONS, entity_id=created["id"], changes={"place": "Surabaya"}, now=later))

    assert updated is not None
    assert updated["place"] == "Surabaya"
    assert updated["updated_at"] == later
    untouched = {key: value for key, value in created.items() if key not in {"place", "updated_at"}}
    assert {key: updated[key] for key in untouched} == untouched


def test_update_with_explicit_null_clears_nullable_link(repo: InMemoryRepository) -> None:
    created = _run(
        repo.create_entity(
            COMPETITIONS,
            values=_competition_values(NOW + timedelta(days=10), guide_book_link="https://example.org/guide"),
            now=NOW,
        )
    )

    updated = _run(
        repo.update_entity(COMPETITIONS, entity_id=created["id"], changes={"guide_book_link": None}, now=NOW)
    )

    assert updated is not None
    assert updated["guide_book_link"] is None


def test_update_rejects_null_for_required_field(repo: InMemoryRepository) -> None:
    _run(repo.create_entity(JOBS, values=_job_values(NOW + timedelta(days=1)), now=NOW))

    with pytest.raises(RepositoryValidationError, match="cannot be null: company"):
        _run(repo.update_entity(JOBS, entity_id=1, changes={"company": None}, now=NOW))


def test_update_without_changes_returns_record_untouched(repo: InMemoryRepository) -> None:
    created = _run(repo.create_entity(JOBS, values=_job_values(NOW + timedelta(days=1)), now=NOW))

    unchanged = _run(repo.update_entity(JOBS, entity_id=created["id"], changes={}, now=NOW + timedelta(hours=1)))

    assert unchanged == created


def test_update_missing_record_returns_none(repo: InMemoryRepository) -> None:
    assert _run(repo.update_entity(JOBS, entity_id=7, changes={"company": "Globex"}, now=NOW)) is None
    assert _run(repo.update_entity(JOBS, entity_id=7, changes={}, now=NOW)) is None


def test_update_can_revive_expired_record(repo: InMemoryRepository) -> None:
    _run(repo.create_entity(JOBS, values=_job_values(NOW - timedelta(days=1)), now=NOW))

    _run(repo.update_entity(JOBS, entity_id=1, changes={"deadline": NOW + timedelta(days=1)}, now=NOW))

    assert _run(repo.get_entity(JOBS, entity_id=1, now=NOW)) is not None


def test_delete_signals_first_and_second_call_differently(repo: InMemoryRepository) -> None:
    _run(repo.create_entity(JOBS, values=_job_values(NOW - timedelta(days=3)), now=NOW))

    assert _run(repo.delete_entity(JOBS, entity_id=1)) is True
    assert _run(repo.delete_entity(JOBS, entity_id=1)) is False


def test_cleanup_deletes_only_expired_and_is_idempotent(repo: InMemoryRepository) -> None:
    _run(repo.create_entity(COMPETITIONS, values=_competition_values(NOW - timedelta(days=1)), now=NOW))
    _run(repo.create_entity(COMPETITIONS, values=_competition_values(NOW + timedelta(days=1)), now=NOW))
    _run(repo.create_entity(JOBS, values=_job_values(NOW - timedelta(seconds=1)), now=NOW))
    _run(repo.create_entity(JOBS, values=_job_values(NOW), now=NOW))
    _run(repo.create_entity(SCHOLARSHIPS, values=_scholarship_values(NOW - timedelta(days=30)), now=NOW))
    _run(repo.create_entity(SCHOLARSHIPS, values=_scholarship_values(NOW - timedelta(days=2)), now=NOW))

    first = _run(repo.cleanup_expired(now=NOW))
    second = _run(repo.cleanup_expired(now=NOW))

    assert first == {
        "competitions_deleted": 1,
        "jobs_deleted": 1,
        "scholarships_deleted": 2,
        "total_deleted": 4,
    }
    assert second["total_deleted"] == 0
    assert set(repo.tables["competitions"]) == {2}
    assert set(repo.tables["jobs"]) == {2}
    assert repo.tables["scholarships"] == {}


def test_dashboard_counts_active_and_expiring_soon(repo: InMemoryRepository) -> None:
    for offset in (timedelta(days=-1), timedelta(0), timedelta(days=7), timedelta(days=7, seconds=1)):
        _run(repo.create_entity(JOBS, values=_job_values(NOW + offset), now=NOW))
    _run(repo.create_entity(SCHOLARSHIPS, values=_scholarship_values(NOW + timedelta(days=6)), now=NOW))

    stats = _run(repo.get_dashboard_stats(now=NOW))

    assert stats == {
        "total_competitions": 0,
        "competitions_expiring_soon": 0,
        "total_jobs": 3,
        "jobs_expiring_soon": 2,
        "total_scholarships": 1,
        "scholarships_expiring_soon": 1,
    }
    for kind in (COMPETITIONS, JOBS, SCHOLARSHIPS):
        assert stats[kind.expiring_soon_key] <= stats[kind.total_key]
