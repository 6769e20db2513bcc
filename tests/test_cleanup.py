"""
Unit tests for billboard availability, contract date rules and the expiry sweep.
"""
from datetime import date

import pytest

from adboard.billboards.cleanup import (
    ISSUE_EXPIRED,
    ISSUE_FUTURE_DATES,
    ISSUE_INVALID_DATES,
    classify_billboard,
    cleanup_expired_billboards,
    find_problem_billboards,
    get_cleanup_logs,
)
from adboard.billboards.models import Billboard, BillboardStatus, CleanupType
from adboard.billboards.service import is_billboard_available
from adboard.contracts.lifecycle import (
    days_until_expiry,
    duration_in_months,
    is_contract_active,
    is_contract_expired,
    is_near_expiry,
)

TODAY = date(2024, 6, 15)


def test_contract_date_rules():
    assert is_contract_expired(date(2024, 6, 14), TODAY)
    assert not is_contract_expired(TODAY, TODAY)
    assert not is_contract_expired(None, TODAY)
    assert is_contract_active(date(2024, 6, 1), TODAY, TODAY)
    assert days_until_expiry(date(2024, 6, 20), TODAY) == 5
    assert days_until_expiry(TODAY, TODAY) == 0


@pytest.mark.parametrize("end,expected", [
    (date(2024, 7, 5), True),
    (date(2024, 7, 6), False),
    (date(2024, 6, 14), False),
])
def test_near_expiry_threshold(end, expected):
    assert is_near_expiry(end, TODAY) is expected


@pytest.mark.parametrize("start,end,months", [
    (date(2024, 1, 1), date(2024, 4, 1), 3),
    (date(2024, 1, 1), date(2024, 1, 5), 1),
    (date(2024, 1, 1), date(2024, 1, 1), 1),
])
def test_duration_in_months(start, end, months):
    assert duration_in_months(start, end) == months


def test_availability_rules(billboard_factory):
    assert is_billboard_available(billboard_factory(status=BillboardStatus.AVAILABLE), TODAY)
    assert not is_billboard_available(billboard_factory(status=BillboardStatus.MAINTENANCE), TODAY)
    assert not is_billboard_available(billboard_factory(status=BillboardStatus.RENTED, contract_id=3), TODAY)
    assert not is_billboard_available(
        billboard_factory(status=BillboardStatus.RENTED, contract_id=3, rent_end_date=date(2024, 7, 1)), TODAY
    )
    assert is_billboard_available(
        billboard_factory(status=BillboardStatus.RENTED, contract_id=3, rent_end_date=date(2024, 6, 1)), TODAY
    )


@pytest.mark.parametrize("start,end,issue,days_past", [
    (date(2024, 5, 1), date(2024, 6, 10), ISSUE_EXPIRED, 5),
    (date(2024, 7, 1), date(2024, 9, 1), ISSUE_FUTURE_DATES, 0),
    (None, date(2024, 9, 1), ISSUE_INVALID_DATES, 0),
])
def test_classify_billboard(billboard_factory, start, end, issue, days_past):
    problem = classify_billboard(billboard_factory(rent_start_date=start, rent_end_date=end), TODAY)

    assert problem.issue_type == issue
    assert problem.days_past_end == days_past


def test_running_rental_is_not_a_problem(billboard_factory):
    billboard = billboard_factory(rent_start_date=date(2024, 6, 1), rent_end_date=date(2024, 8, 1))
    assert classify_billboard(billboard, TODAY) is None
    assert classify_billboard(billboard_factory(), TODAY) is None


def _rented(db, name, start, end):
    billboard = Billboard(
        name=name,
        size="4x12",
        level="A",
        status=BillboardStatus.RENTED,
        customer_name="Acme",
        rent_start_date=start,
        rent_end_date=end
    )
    db.add(billboard)
    return billboard


def test_sweep_releases_only_expired(db):
    expired = _rented(db, "Old", date(2024, 1, 1), date(2024, 5, 31))
    future = _rented(db, "Future", date(2024, 8, 1), date(2024, 9, 1))
    running = _rented(db, "Running", date(2024, 6, 1), date(2024, 7, 1))
    db.commit()

    assert {p.name for p in find_problem_billboards(db, TODAY)} == {"Old", "Future"}

    result = cleanup_expired_billboards(db, TODAY, cleanup_type=CleanupType.AUTOMATIC)

    assert result.cleaned == 1
    assert result.billboard_ids == [expired.id]
    db.refresh(expired)
    db.refresh(future)
    db.refresh(running)
    assert expired.status == BillboardStatus.AVAILABLE
    assert expired.customer_name is None
    assert expired.rent_end_date is None
    assert future.status == BillboardStatus.RENTED
    assert running.status == BillboardStatus.RENTED

    logs = get_cleanup_logs(db)
    assert logs[0].billboards_cleaned == 1
    assert logs[0].cleanup_type == CleanupType.AUTOMATIC


def test_sweep_is_logged_even_when_nothing_to_clean(db):
    result = cleanup_expired_billboards(db, TODAY)

    assert result.cleaned == 0
    assert len(get_cleanup_logs(db)) == 1


def test_release_endpoint(client, db):
    billboard = _rented(db, "Manual", date(2024, 1, 1), date(2030, 1, 1))
    db.commit()

    response = client.post(f"/billboards/{billboard.id}/release")
    assert response.status_code == 200
    assert response.json()["status"] == "available"
    assert client.get("/billboards/cleanup/logs").json()[0]["cleanup_type"] == "manual"

    assert client.post("/billboards/999/release").status_code == 404
