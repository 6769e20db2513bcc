"""
Contract total calculator.
Pure arithmetic over already-resolved inputs; nothing here touches the database.
"""
from adboard.contracts.models import DiscountType
from adboard.contracts.schemas import ContractTotals
from adboard.core.utils import round_money


def calculate_discount(base_total: float, discount_type: DiscountType, discount_value: float) -> float:
    """Percent discounts are clamped to 0..100; amount discounts never exceed the base total."""
    if not discount_value:
        return 0.0
    if discount_type == DiscountType.PERCENT:
        rate = min(max(discount_value, 0.0), 100.0)
        return round_money(base_total * rate / 100)
    return round_money(min(max(discount_value, 0.0), base_total))


def calculate_contract_totals(
    estimated_total: float,
    rent_cost: float = 0.0,
    discount_type: DiscountType = DiscountType.PERCENT,
    discount_value: float = 0.0,
    installation_cost: float = 0.0,
    operating_fee_rate: float = 0.0,
    print_cost: float = 0.0
) -> ContractTotals:
    """
    Combines rent, discount, installation and print costs into the payable total.

    base_total          = rent_cost if rent_cost > 0 else estimated_total
    total_after_discount = max(0, base_total - discount)
    rental_cost_only    = max(0, total_after_discount - installation_cost - print_cost)
    final_total         = rental_cost_only + installation_cost + print_cost
    operating_fee       = round(rental_cost_only * operating_fee_rate / 100, 2)

    The final total is never reduced below the installation and print costs.
    The operating fee is informational and is not part of final_total.
    """
    base_total = float(rent_cost) if rent_cost and rent_cost > 0 else float(estimated_total or 0.0)
    discount_amount = calculate_discount(base_total, discount_type, discount_value)
    total_after_discount = max(0.0, base_total - discount_amount)

    installation_cost = float(installation_cost or 0.0)
    print_cost = float(print_cost or 0.0)

    rental_cost_only = max(0.0, total_after_discount - installation_cost - print_cost)
    final_total = rental_cost_only + installation_cost + print_cost
    rate = float(operating_fee_rate or 0.0)
    operating_fee = round_money(rental_cost_only * rate / 100)

    return ContractTotals(
        base_total=round_money(base_total),
        discount_amount=discount_amount,
        total_after_discount=round_money(total_after_discount),
        rental_cost_only=round_money(rental_cost_only),
        installation_cost=round_money(installation_cost),
        print_cost=round_money(print_cost),
        final_total=round_money(final_total),
        operating_fee_rate=rate,
        operating_fee=operating_fee
    )
