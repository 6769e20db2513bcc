"""
Tests for the customer ledger: payments, balances and statements.
"""
from datetime import date, datetime
from types import SimpleNamespace

import pytest

from adboard.billing.models import EntryType
from adboard.billing.service import credits_total, remaining_after_payment
from adboard.contracts.models import Contract
from adboard.customers.models import Customer


def entry(id, amount, when, entry_type=EntryType.RECEIPT):
    return SimpleNamespace(id=id, amount=amount, paid_at=when, entry_type=entry_type)


PAYMENTS = [
    entry(2, 300, datetime(2024, 3, 1)),
    entry(1, 200, datetime(2024, 2, 1)),
    entry(3, 500, datetime(2024, 3, 1), EntryType.INVOICE),
    entry(4, 900, datetime(2024, 4, 1), EntryType.ACCOUNT_PAYMENT),
]


def test_credits_total_ignores_debits():
    assert credits_total(PAYMENTS) == 1400


@pytest.mark.parametrize("payment_id,remaining", [
    (1, 800),
    (2, 500),
    (3, 500),
    (4, 0),
    (99, 1000),
])
def test_remaining_after_payment(payment_id, remaining):
    assert remaining_after_payment(payment_id, PAYMENTS, 1000) == remaining


@pytest.fixture
def account(db):
    customer = Customer(name="Acme Trading")
    other = Customer(name="Other Co")
    db.add_all([customer, other])
    db.flush()
    contract = Contract(
        contract_number=1,
        customer_id=customer.id,
        customer_name=customer.name,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 4, 1),
        final_total=1000
    )
    db.add(contract)
    db.commit()
    return SimpleNamespace(customer_id=customer.id, other_id=other.id, contract_id=contract.id)


def test_payment_takes_customer_from_contract(client, account):
    response = client.post("/billing/payments", json={"contract_id": account.contract_id, "amount": 400})

    assert response.status_code == 201
    assert response.json()["customer_id"] == account.customer_id
    assert response.json()["entry_type"] == "receipt"

    balance = client.get(f"/billing/contracts/{account.contract_id}/balance").json()
    assert balance == {"contract_id": account.contract_id, "total": 1000, "paid": 400, "remaining": 600}


def test_overpayment_floors_remaining(client, account):
    client.post("/billing/payments", json={"contract_id": account.contract_id, "amount": 1500})
    balance = client.get(f"/billing/contracts/{account.contract_id}/balance").json()

    assert balance["remaining"] == 0


def test_payment_for_another_customers_contract(client, account):
    response = client.post("/billing/payments", json={
        "customer_id": account.other_id,
        "contract_id": account.contract_id,
        "amount": 100
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Contract belongs to another customer"


def test_payment_requires_an_owner(client):
    assert client.post("/billing/payments", json={"amount": 100}).status_code == 422


def test_unknown_contract(client, account):
    response = client.post("/billing/payments", json={"contract_id": 999, "amount": 100})
    assert response.status_code == 400


def test_customer_statement(client, account):
    client.post("/billing/payments", json={
        "contract_id": account.contract_id, "amount": 400, "paid_at": "2024-02-01T10:00:00"
    })
    client.post("/billing/payments", json={
        "customer_id": account.customer_id,
        "amount": 200,
        "entry_type": "invoice",
        "reference": "Extra printing",
        "paid_at": "2024-03-01T10:00:00"
    })

    statement = client.get(f"/billing/customers/{account.customer_id}/statement").json()

    assert statement["total_debits"] == 1200
    assert statement["total_credits"] == 400
    assert statement["balance"] == 800
    assert [e["balance"] for e in statement["entries"]] == [1000, 600, 800]
    assert statement["entries"][0]["entry_type"] == "contract"
    assert statement["entries"][2]["description"] == "Extra printing"


def test_statement_for_missing_customer(client):
    assert client.get("/billing/customers/5/statement").status_code == 404
