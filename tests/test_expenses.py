"""
Tests for the operating-fee pool: contract fees, exclusions, withdrawals and closures.
"""
from datetime import date
from types import SimpleNamespace

import pytest

from adboard.contracts.models import Contract
from adboard.expenses.service import contract_fee


@pytest.mark.parametrize("rental,rate,fee", [
    (2800, 3, 84),
    (1250, 3, 38),
    (1234, 3, 37),
    (1000, 0, 0),
])
def test_contract_fee_is_rounded_half_up(rental, rate, fee):
    assert contract_fee(SimpleNamespace(rental_cost_only=rental, operating_fee_rate=rate)) == fee


@pytest.fixture
def contracts(db):
    rows = [
        Contract(contract_number=1, customer_name="Acme Trading", start_date=date(2024, 1, 10),
                 end_date=date(2024, 4, 10), rental_cost_only=2800, operating_fee_rate=3),
        Contract(contract_number=2, customer_name="Blue Sky", start_date=date(2024, 2, 5),
                 end_date=date(2024, 3, 5), rental_cost_only=1250, operating_fee_rate=3),
        Contract(contract_number=3, customer_name="Cedar Foods", start_date=date(2024, 3, 1),
                 end_date=date(2024, 9, 1), rental_cost_only=1000, operating_fee_rate=5),
    ]
    db.add_all(rows)
    db.commit()
    return [row.id for row in rows]


def test_pool_summary(client, contracts):
    pool = client.get("/expenses/pool").json()

    assert pool["total_contracts"] == 3
    assert pool["counted_contracts"] == 3
    assert pool["pool_total"] == 172
    assert pool["remaining"] == 172


def test_pool_contracts_newest_first(client, contracts):
    entries = client.get("/expenses/pool/contracts").json()

    assert [e["contract_number"] for e in entries] == [3, 2, 1]
    assert [e["fee"] for e in entries] == [50, 38, 84]
    assert not any(e["excluded"] or e["closed"] for e in entries)


def test_exclusion_toggles(client, contracts):
    response = client.put(f"/expenses/pool/contracts/{contracts[1]}/exclusion", json={"excluded": True})
    assert response.status_code == 200
    assert response.json()["pool_total"] == 134
    assert response.json()["counted_contracts"] == 2

    restored = client.put(f"/expenses/pool/contracts/{contracts[1]}/exclusion", json={"excluded": False}).json()
    assert restored["pool_total"] == 172


def test_exclusion_of_unknown_contract(client, contracts):
    assert client.put("/expenses/pool/contracts/99/exclusion", json={}).status_code == 404


def test_withdrawals_reduce_remaining_but_never_below_zero(client, contracts):
    first = client.post("/expenses/withdrawals", json={"amount": 100, "method": "cash", "withdrawn_on": "2024-05-01"})
    assert first.status_code == 201
    assert client.get("/expenses/pool").json()["remaining"] == 72

    client.post("/expenses/withdrawals", json={"amount": 500})
    pool = client.get("/expenses/pool").json()
    assert pool["total_withdrawn"] == 600
    assert pool["remaining"] == 0

    withdrawals = client.get("/expenses/withdrawals").json()
    assert len(withdrawals) == 2
    assert withdrawals[-1]["withdrawn_on"] == "2024-05-01"


def test_withdrawal_must_be_positive(client):
    assert client.post("/expenses/withdrawals", json={"amount": 0}).status_code == 422


def test_period_closure(client, contracts):
    payload = {"closure_type": "period", "period_start": "2024-01-01", "period_end": "2024-01-31"}
    response = client.post("/expenses/closures", json=payload)

    assert response.status_code == 201
    closure = response.json()
    assert closure["total_contracts"] == 1
    assert closure["total_amount"] == 84
    assert closure["remaining_balance"] == 84
    assert closure["contract_start"] is None

    pool = client.get("/expenses/pool").json()
    assert pool["pool_total"] == 88
    assert pool["counted_contracts"] == 2
    closed = {e["contract_number"]: e["closed"] for e in client.get("/expenses/pool/contracts").json()}
    assert closed == {1: True, 2: False, 3: False}

    again = client.post("/expenses/closures", json=payload)
    assert again.status_code == 400
    assert len(client.get("/expenses/closures").json()) == 1


def test_range_closure_skips_excluded_contracts(client, contracts):
    client.put(f"/expenses/pool/contracts/{contracts[2]}/exclusion", json={"excluded": True})

    closure = client.post("/expenses/closures", json={
        "closure_type": "contract_range", "contract_start": 2, "contract_end": 3, "notes": "Q1"
    }).json()

    assert closure["total_contracts"] == 1
    assert closure["total_amount"] == 38
    assert closure["notes"] == "Q1"
    assert client.get("/expenses/pool").json()["pool_total"] == 84


@pytest.mark.parametrize("payload", [
    {"closure_type": "period", "period_start": "2024-01-31", "period_end": "2024-01-31"},
    {"closure_type": "period", "period_start": "2024-01-01"},
    {"closure_type": "contract_range", "contract_start": 3, "contract_end": 2},
    {"closure_type": "contract_range", "contract_start": 1},
])
def test_closure_bounds_are_validated(client, contracts, payload):
    assert client.post("/expenses/closures", json=payload).status_code == 422
