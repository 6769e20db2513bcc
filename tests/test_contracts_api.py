"""
API tests for the contract lifecycle: preview, creation, edition, renewal and expiry.
"""
from datetime import date, timedelta

import pytest
from dateutil.relativedelta import relativedelta

from adboard.contracts.service import duration_from_dates, resolve_end_date, resolve_period
from adboard.pricing.schemas import DurationMode

TODAY = date.today()


@pytest.fixture
def inventory(client):
    client.put("/installation/sizes", json={"name": "4x12", "installation_price": 400, "sort_order": 1})
    ids = []
    for name in ("Airport Road", "Gargaresh"):
        response = client.post("/billboards/", json={"name": name, "size": "12x4", "level": "A", "city": "Tripoli"})
        assert response.status_code == 201
        ids.append(response.json()["id"])
    return ids


def contract_payload(billboard_ids, **overrides):
    payload = {
        "customer_name": "Acme Trading",
        "ad_type": "Telecom",
        "pricing_category": "regular",
        "billboard_ids": billboard_ids,
        "start_date": TODAY.isoformat(),
        "duration_mode": "months",
        "duration_value": 3,
        "discount_type": "percent",
        "discount_value": 10,
    }
    payload.update(overrides)
    return payload


def test_resolve_end_date():
    assert resolve_end_date(date(2024, 1, 31), DurationMode.MONTHS, 1) == date(2024, 2, 29)
    assert resolve_end_date(date(2024, 1, 1), DurationMode.DAYS, 10) == date(2024, 1, 11)


def test_explicit_end_date_sets_the_priced_duration():
    assert duration_from_dates(date(2024, 1, 1), date(2025, 1, 1), DurationMode.MONTHS) == 12
    assert duration_from_dates(date(2024, 1, 1), date(2024, 1, 11), DurationMode.DAYS) == 10
    assert duration_from_dates(date(2024, 1, 1), date(2024, 1, 1), DurationMode.DAYS) == 1
    assert resolve_period(date(2024, 1, 1), DurationMode.MONTHS, 1, date(2024, 7, 1)) == (date(2024, 7, 1), 6)
    assert resolve_period(date(2024, 1, 1), DurationMode.MONTHS, 2) == (date(2024, 3, 1), 2)

    with pytest.raises(ValueError):
        resolve_period(date(2024, 1, 2), DurationMode.DAYS, 1, date(2024, 1, 1))


def test_preview_does_not_write(client, inventory):
    response = client.post("/contracts/preview", json=contract_payload(inventory))
    assert response.status_code == 200
    preview = response.json()

    assert preview["estimated_total"] == 4000
    assert preview["installation"]["total_installation_cost"] == 800
    assert preview["totals"]["final_total"] == 3600
    assert preview["totals"]["rental_cost_only"] == 2800
    assert preview["totals"]["operating_fee"] == 84
    assert [line["source"] for line in preview["lines"]] == ["static", "static"]
    assert client.get("/contracts/").json() == []


def test_create_contract_rents_billboards(client, inventory):
    response = client.post("/contracts/", json=contract_payload(inventory), headers={"X-Correlation-ID": "corr-1"})
    assert response.status_code == 201
    assert response.headers["X-Correlation-ID"] == "corr-1"
    contract = response.json()

    assert contract["contract_number"] == 1
    assert contract["final_total"] == 3600
    assert contract["billboard_ids"] == inventory
    assert contract["end_date"] == resolve_end_date(TODAY, DurationMode.MONTHS, 3).isoformat()
    assert len(contract["installments"]) == 1
    assert contract["installments"][0]["payment_type"] == "on_signing"
    assert contract["installments"][0]["amount"] == 3600
    assert contract["customer_id"] is not None

    billboards = client.get("/billboards/").json()
    assert all(b["status"] == "rented" and b["contract_id"] == contract["id"] for b in billboards)
    assert client.get("/billboards/", params={"available_only": True}).json() == []


def test_create_with_mismatched_installments_writes_nothing(client, inventory):
    payload = contract_payload(inventory, installments=[
        {"amount": 1000, "payment_type": "on_signing"},
        {"amount": 1000, "payment_type": "monthly"},
    ])
    response = client.post("/contracts/", json=payload)

    assert response.status_code == 422
    assert "does not match" in response.json()["detail"]
    assert client.get("/contracts/").json() == []
    assert client.get("/customers/").json() == []
    assert all(b["status"] == "available" for b in client.get("/billboards/").json())


def test_create_with_installments_fills_due_dates(client, inventory):
    payload = contract_payload(inventory, installments=[
        {"amount": 1800, "payment_type": "on_signing"},
        {"amount": 1800, "payment_type": "monthly"},
    ])
    contract = client.post("/contracts/", json=payload).json()

    assert contract["installments"][0]["due_date"] == TODAY.isoformat()
    assert contract["installments"][1]["due_date"] is not None


def test_rented_billboards_are_rejected(client, inventory):
    assert client.post("/contracts/", json=contract_payload(inventory)).status_code == 201

    response = client.post("/contracts/", json=contract_payload(inventory, customer_name="Other"))
    assert response.status_code == 400
    assert "not available" in response.json()["detail"]


def test_maintenance_billboard_is_rejected(client, inventory):
    client.patch(f"/billboards/{inventory[0]}", json={"status": "maintenance"})

    response = client.post("/contracts/", json=contract_payload(inventory))
    assert response.status_code == 400
    assert "maintenance" in response.json()["detail"]


def test_unknown_billboard(client, inventory):
    response = client.post("/contracts/", json=contract_payload([inventory[0], 999]))
    assert response.status_code == 400
    assert "999" in response.json()["detail"]


def test_end_before_start(client, inventory):
    payload = contract_payload(inventory, end_date=(TODAY - timedelta(days=1)).isoformat())
    assert client.post("/contracts/", json=payload).status_code == 400


def test_days_mode_uses_derived_daily_rate(client, inventory):
    client.put("/pricing/prices", json={
        "size": "4x12", "level": "A", "customer_category": "regular", "duration_bucket": "1_month", "unit_price": 3000
    })
    payload = contract_payload(inventory, duration_mode="days", duration_value=10, discount_value=0)
    contract = client.post("/contracts/", json=payload).json()

    assert contract["estimated_total"] == 2000
    assert contract["end_date"] == (TODAY + timedelta(days=10)).isoformat()


def test_same_customer_is_reused(client, inventory):
    first = client.post("/contracts/", json=contract_payload([inventory[0]])).json()
    second = client.post("/contracts/", json=contract_payload([inventory[1]], customer_name="  acme trading ")).json()

    assert first["customer_id"] == second["customer_id"]
    assert second["contract_number"] == 2


def test_update_recomputes_and_revalidates(client, inventory):
    contract = client.post("/contracts/", json=contract_payload(inventory)).json()

    # One billboard less: 2000 rent - 10% = 1800, but the stored plan still says 3600
    response = client.patch(f"/contracts/{contract['id']}", json={"billboard_ids": [inventory[0]]})
    assert response.status_code == 422

    response = client.patch(f"/contracts/{contract['id']}", json={
        "billboard_ids": [inventory[0]],
        "installments": [{"amount": 1800, "payment_type": "on_signing"}]
    })
    assert response.status_code == 200
    updated = response.json()
    assert updated["final_total"] == 1800
    assert updated["installation_cost"] == 400

    billboards = {b["id"]: b for b in client.get("/billboards/").json()}
    assert billboards[inventory[0]]["status"] == "rented"
    assert billboards[inventory[1]]["status"] == "available"


def test_update_without_pricing_changes_keeps_totals(client, inventory):
    contract = client.post("/contracts/", json=contract_payload(inventory)).json()
    response = client.patch(f"/contracts/{contract['id']}", json={"ad_type": "Banking"})

    assert response.status_code == 200
    assert response.json()["ad_type"] == "Banking"
    assert response.json()["final_total"] == 3600


def test_renew_keeps_cost(client, inventory):
    original = client.post("/contracts/", json=contract_payload(inventory)).json()

    response = client.post(f"/contracts/{original['id']}/renew", json={"keep_cost": True})
    assert response.status_code == 201
    renewed = response.json()

    assert renewed["renewed_from_id"] == original["id"]
    assert renewed["final_total"] == original["final_total"]
    assert renewed["discount_amount"] == 0
    assert renewed["contract_number"] == original["contract_number"] + 1
    assert renewed["installments"][0]["amount"] == renewed["final_total"]

    billboards = client.get("/billboards/").json()
    assert all(b["contract_id"] == renewed["id"] for b in billboards)


def test_renew_missing_contract(client):
    assert client.post("/contracts/42/renew", json={}).status_code == 404


def test_expire_releases_billboards(client, inventory):
    past = contract_payload(inventory, start_date="2024-01-01", duration_value=1)
    contract = client.post("/contracts/", json=past).json()

    result = client.post("/contracts/expire").json()
    assert result["expired_contracts"] == [contract["id"]]
    assert sorted(result["released_billboards"]) == sorted(inventory)

    assert client.get(f"/contracts/{contract['id']}").json()["status"] == "expired"
    assert all(b["status"] == "available" for b in client.get("/billboards/").json())


def test_stats(client, inventory):
    client.post("/contracts/", json=contract_payload([inventory[0]], start_date="2024-01-01", duration_value=1))
    client.post("/contracts/", json=contract_payload(
        [inventory[1]], start_date=TODAY.isoformat(), end_date=(TODAY + timedelta(days=10)).isoformat()
    ))

    stats = client.get("/contracts/stats").json()
    assert stats["total"] == 2
    assert stats["active"] == 1
    assert stats["expired"] == 1
    assert stats["near_expiry"] == 1


def test_missing_contract(client):
    response = client.get("/contracts/7")
    assert response.status_code == 404
    assert "correlation_id" in response.json()


def test_preview_prices_the_length_of_an_explicit_end_date(client, inventory):
    end_date = TODAY + relativedelta(months=12)
    by_dates = contract_payload(inventory, end_date=end_date.isoformat())
    del by_dates["duration_value"]
    by_duration = contract_payload(inventory, duration_value=12)

    from_dates = client.post("/contracts/preview", json=by_dates).json()
    from_duration = client.post("/contracts/preview", json=by_duration).json()

    assert from_dates["duration_value"] == 12
    assert from_dates["end_date"] == end_date.isoformat()
    assert from_dates["estimated_total"] == from_duration["estimated_total"]
    assert from_dates["estimated_total"] > client.post(
        "/contracts/preview", json=contract_payload(inventory, duration_value=1)
    ).json()["estimated_total"]


def test_create_with_end_date_overrides_the_duration(client, inventory):
    end_date = TODAY + relativedelta(months=6)
    contract = client.post("/contracts/", json=contract_payload(
        inventory, duration_value=1, end_date=end_date.isoformat()
    )).json()
    expected = client.post("/contracts/preview", json=contract_payload(inventory, duration_value=6)).json()

    assert contract["duration_value"] == 6
    assert contract["end_date"] == end_date.isoformat()
    assert contract["final_total"] == expected["totals"]["final_total"]


def test_days_mode_end_date_counts_days(client, inventory):
    payload = contract_payload(inventory, duration_mode="days", end_date=(TODAY + timedelta(days=10)).isoformat())
    del payload["duration_value"]

    assert client.post("/contracts/preview", json=payload).json()["duration_value"] == 10


def test_update_end_date_reprices_the_contract(client, inventory):
    contract = client.post("/contracts/", json=contract_payload(inventory)).json()
    end_date = date.fromisoformat(contract["start_date"]) + relativedelta(months=6)
    expected = client.post("/contracts/preview", json=contract_payload(inventory, duration_value=6)).json()
    final_total = expected["totals"]["final_total"]

    response = client.patch(f"/contracts/{contract['id']}", json={
        "end_date": end_date.isoformat(),
        "installments": [{"amount": final_total, "payment_type": "on_signing"}]
    })

    assert response.status_code == 200
    updated = response.json()
    assert updated["duration_value"] == 6
    assert updated["end_date"] == end_date.isoformat()
    assert updated["final_total"] == final_total


def test_update_rejects_zero_duration(client, inventory):
    contract = client.post("/contracts/", json=contract_payload(inventory)).json()

    assert client.patch(f"/contracts/{contract['id']}", json={"duration_value": 0}).status_code == 422
    assert client.get(f"/contracts/{contract['id']}").json()["duration_value"] == 3


def test_update_adds_a_billboard(client, inventory):
    contract = client.post("/contracts/", json=contract_payload([inventory[0]], discount_value=0)).json()

    response = client.patch(f"/contracts/{contract['id']}", json={
        "billboard_ids": inventory,
        "discount_value": 10,
        "installments": [{"amount": 3600, "payment_type": "on_signing"}]
    })

    assert response.status_code == 200
    assert response.json()["billboard_ids"] == inventory
    assert response.json()["final_total"] == 3600
    billboards = client.get("/billboards/").json()
    assert [b["contract_id"] for b in billboards] == [contract["id"], contract["id"]]
    assert all(b["status"] == "rented" for b in billboards)


def test_update_cannot_add_a_billboard_rented_elsewhere(client, inventory):
    first = client.post("/contracts/", json=contract_payload([inventory[0]])).json()
    other = client.post("/contracts/", json=contract_payload([inventory[1]], customer_name="Other")).json()

    response = client.patch(f"/contracts/{first['id']}", json={"billboard_ids": inventory})

    assert response.status_code == 400
    assert "not available" in response.json()["detail"]
    billboards = {b["id"]: b for b in client.get("/billboards/").json()}
    assert billboards[inventory[1]]["contract_id"] == other["id"]


def test_editing_a_renewed_contract_leaves_billboards_with_the_renewal(client, inventory):
    original = client.post("/contracts/", json=contract_payload(inventory)).json()
    renewed = client.post(f"/contracts/{original['id']}/renew", json={}).json()

    response = client.patch(f"/contracts/{original['id']}", json={"ad_type": "Banking"})

    assert response.status_code == 200
    assert response.json()["ad_type"] == "Banking"
    billboards = client.get("/billboards/").json()
    assert [b["contract_id"] for b in billboards] == [renewed["id"], renewed["id"]]
    assert all(b["customer_name"] == renewed["customer_name"] for b in billboards)


def test_editing_a_lapsed_contract_leaves_a_rebooked_billboard_alone(client, inventory):
    lapsed = client.post("/contracts/", json=contract_payload(
        [inventory[0]], start_date="2024-01-01", duration_value=1
    )).json()
    booking = client.post("/contracts/", json=contract_payload([inventory[0]], customer_name="Other")).json()

    response = client.patch(f"/contracts/{lapsed['id']}", json={"ad_type": "Banking"})

    assert response.status_code == 200
    billboard = client.get("/billboards/").json()[0]
    assert billboard["contract_id"] == booking["id"]
    assert billboard["customer_name"] == "Other"
    assert billboard["rent_end_date"] == booking["end_date"]
