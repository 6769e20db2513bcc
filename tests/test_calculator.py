"""
Unit tests for the contract total calculator.
"""
import pytest

from adboard.contracts.calculator import calculate_contract_totals, calculate_discount
from adboard.contracts.models import DiscountType


def test_plain_total_without_extras():
    totals = calculate_contract_totals(estimated_total=4000)

    assert totals.base_total == 4000
    assert totals.discount_amount == 0
    assert totals.final_total == 4000
    assert totals.rental_cost_only == 4000


def test_manual_rent_overrides_estimate():
    totals = calculate_contract_totals(estimated_total=4000, rent_cost=3500)
    assert totals.base_total == 3500


def test_installation_is_carved_out_of_the_rent():
    totals = calculate_contract_totals(
        estimated_total=4000,
        discount_type=DiscountType.PERCENT,
        discount_value=10,
        installation_cost=800,
        operating_fee_rate=3
    )

    assert totals.discount_amount == 400
    assert totals.total_after_discount == 3600
    assert totals.rental_cost_only == 2800
    assert totals.final_total == 3600
    assert totals.operating_fee == 84


def test_operating_fee_not_added_to_final_total():
    with_fee = calculate_contract_totals(estimated_total=1000, operating_fee_rate=10)
    without_fee = calculate_contract_totals(estimated_total=1000, operating_fee_rate=0)

    assert with_fee.operating_fee == 100
    assert with_fee.final_total == without_fee.final_total == 1000


def test_amount_discount_is_clamped_to_base():
    totals = calculate_contract_totals(
        estimated_total=500,
        discount_type=DiscountType.AMOUNT,
        discount_value=800
    )

    assert totals.discount_amount == 500
    assert totals.total_after_discount == 0
    assert totals.rental_cost_only == 0


def test_percent_discount_is_clamped_to_100():
    totals = calculate_contract_totals(
        estimated_total=750,
        discount_type=DiscountType.PERCENT,
        discount_value=150
    )

    assert totals.discount_amount == 750
    assert totals.total_after_discount == 0


def test_final_total_never_below_installation_cost():
    totals = calculate_contract_totals(estimated_total=1000, installation_cost=1200)

    assert totals.rental_cost_only == 0
    assert totals.final_total == 1200


def test_print_cost_is_part_of_the_total():
    totals = calculate_contract_totals(estimated_total=2000, installation_cost=300, print_cost=200)

    assert totals.rental_cost_only == 1500
    assert totals.final_total == 2000


@pytest.mark.parametrize("discount_type,value,expected", [
    (DiscountType.PERCENT, 0, 0),
    (DiscountType.PERCENT, 12.5, 125),
    (DiscountType.PERCENT, -5, 0),
    (DiscountType.AMOUNT, 250, 250),
    (DiscountType.AMOUNT, -50, 0),
])
def test_calculate_discount(discount_type, value, expected):
    assert calculate_discount(1000, discount_type, value) == expected
