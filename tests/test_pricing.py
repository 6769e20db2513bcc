"""
Unit tests for the pricing module.
Validates the fallback chain, daily derivation and size normalization.
"""
from types import SimpleNamespace

import pytest

from adboard.core.utils import canon_category, canon_level, canon_size, round_half_up
from adboard.pricing.models import DurationBucket
from adboard.pricing.schemas import DurationMode
from adboard.pricing.service import PricingResolver
from adboard.pricing.tables import NOT_FOUND, Found, PriceTable, StaticPriceTable


def price_row(size, level, category, bucket, price):
    return SimpleNamespace(size=size, level=level, customer_category=category, duration_bucket=bucket, unit_price=price)


@pytest.mark.parametrize("raw,expected", [
    ("4x12", "4x12"),
    ("12x4", "4x12"),
    ("12*4", "4x12"),
    ("4 × 12", "4x12"),
    ("3.5x10", "3.5x10"),
    ("kiosk", "kiosk"),
])
def test_canon_size(raw, expected):
    assert canon_size(raw) == expected


def test_canon_level_and_category_aliases():
    assert canon_level("b") == "B"
    assert canon_level(None) == "A"
    assert canon_category("شركات") == "corporate"
    assert canon_category("") == "regular"


@pytest.mark.parametrize("raw,expected", [
    ("Company", "corporate"),
    (" COMPANIES ", "corporate"),
    ("Normal", "regular"),
    ("City", "city"),
    ("Marketer", "marketer"),
])
def test_category_aliases_ignore_case(raw, expected):
    assert canon_category(raw) == expected


def test_round_half_up_is_commercial():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.125, 2) == 0.13


def test_table_lookup_matches_any_size_spelling():
    table = PriceTable([price_row("12x4", "a", "Regular", DurationBucket.THREE_MONTHS, 2100)])

    assert table.monthly("4x12", "A", "regular", 3) == Found(2100.0, "database")
    assert table.monthly("4x12", "A", "regular", 4) == NOT_FOUND
    assert table.daily("4x12", "A", "regular") == NOT_FOUND


def test_persisted_price_wins():
    table = PriceTable([price_row("4x12", "A", "regular", DurationBucket.ONE_MONTH, 950)])
    quote = PricingResolver(table).quote_months("4x12", "A", "regular", 1)

    assert quote.amount == 950
    assert quote.source == "database"


def test_static_table_used_on_persisted_miss():
    quote = PricingResolver().quote_months("4x12", "A", "regular", 3)

    # 800 monthly x 2.5 multiplier
    assert quote.amount == 2000
    assert quote.source == "static"


def test_own_monthly_price_after_both_tables_miss():
    quote = PricingResolver().quote_months("5x5", "A", "regular", 4, own_monthly_price=300)

    assert quote.unit_price == 300
    assert quote.amount == 1200
    assert quote.source == "billboard"


def test_every_source_missing_yields_zero():
    quote = PricingResolver().quote_months("5x5", "Z", "nobody", 4)

    assert quote.amount == 0
    assert quote.source == "none"


@pytest.mark.parametrize("months", [0, -3])
def test_non_positive_duration_is_zero(months):
    assert PricingResolver().quote_months("4x12", "A", "regular", months).amount == 0


def test_daily_rate_derived_from_monthly():
    table = PriceTable([price_row("4x12", "A", "regular", DurationBucket.ONE_MONTH, 3000)])
    quote = PricingResolver(table).daily_rate("4x12", "A", "regular")

    assert quote.unit_price == 100.00
    assert quote.source == "derived"


def test_explicit_daily_rate_preferred():
    table = PriceTable([
        price_row("4x12", "A", "regular", DurationBucket.ONE_DAY, 120),
        price_row("4x12", "A", "regular", DurationBucket.ONE_MONTH, 3000),
    ])
    quote = PricingResolver(table).quote_days("4x12", "A", "regular", 10)

    assert quote.unit_price == 120
    assert quote.amount == 1200


def test_static_daily_rate():
    quote = PricingResolver().quote_days("4x12", "A", "regular", 3)

    # 800 / 30 = 26.67 per day
    assert quote.unit_price == 26.67
    assert quote.amount == 80.01
    assert quote.source == "static"


def test_static_table_unknown_multiplier_scales_linearly():
    assert StaticPriceTable().monthly("4x12", "A", "regular", 4) == Found(3200.0, "static")


def test_estimate_total_over_billboards(billboard_factory):
    billboards = [billboard_factory(1, "4x12", "A"), billboard_factory(2, "12x4", "B")]
    total = PricingResolver().estimate_total(billboards, "regular", DurationMode.MONTHS, 1)

    assert total == 800 + 1200


def test_quote_endpoint_days_mode(client):
    response = client.put("/pricing/prices", json={
        "size": "12x4",
        "level": "A",
        "customer_category": "regular",
        "duration_bucket": "1_month",
        "unit_price": 3000
    })
    assert response.status_code == 200
    assert response.json()["size"] == "4x12"

    response = client.post("/pricing/quote", json={
        "size": "4x12",
        "level": "A",
        "customer_category": "regular",
        "duration_mode": "days",
        "duration_value": 5
    })
    assert response.status_code == 200
    data = response.json()
    assert data["unit_price"] == 100.0
    assert data["amount"] == 500.0
    assert data["source"] == "derived"


def test_price_upsert_replaces_and_delete(client):
    payload = {"size": "4x12", "level": "A", "customer_category": "city", "duration_bucket": "1_month", "unit_price": 500}
    first = client.put("/pricing/prices", json=payload).json()
    second = client.put("/pricing/prices", json={**payload, "unit_price": 650}).json()

    assert first["id"] == second["id"]
    assert client.get("/pricing/prices", params={"category": "city"}).json()[0]["unit_price"] == 650

    assert client.delete(f"/pricing/prices/{first['id']}").status_code == 204
    assert client.delete(f"/pricing/prices/{first['id']}").status_code == 404


def test_categories_include_custom_ones(client):
    client.put("/pricing/prices", json={
        "size": "4x12", "level": "A", "customer_category": "NGO", "duration_bucket": "1_month", "unit_price": 400
    })
    categories = client.get("/pricing/categories").json()["categories"]

    assert categories[:4] == ["regular", "city", "marketer", "corporate"]
    assert "ngo" in categories
