"""
Installment scheduling.
Plans are plain lists of Installment; every operation returns a new list and leaves its input untouched.
"""
import math
from datetime import date, timedelta
from typing import Any, List, Mapping, Optional, Sequence

from dateutil.relativedelta import relativedelta

from adboard.contracts.schemas import Installment, InstallmentValidation, PaymentType
from adboard.core.config import settings
from adboard.core.utils import round_money

MONTH_STEPS = {
    PaymentType.MONTHLY: 1,
    PaymentType.BI_MONTHLY: 2,
    PaymentType.QUARTERLY: 3,
}


def calculate_due_date(
    payment_type: PaymentType,
    index: int,
    start_date: date,
    end_date: Optional[date] = None
) -> Optional[date]:
    """
    Due date for the installment at position `index`.
    Month offsets count from the start date and clamp to the end of shorter months
    (Jan 31 + 1 month -> Feb 28/29).
    """
    if payment_type == PaymentType.ON_SIGNING:
        return start_date
    if payment_type in MONTH_STEPS:
        return start_date + relativedelta(months=(index + 1) * MONTH_STEPS[payment_type])
    if payment_type == PaymentType.ON_INSTALLATION:
        return start_date + timedelta(days=settings.INSTALLATION_DUE_OFFSET_DAYS)
    if payment_type == PaymentType.END_OF_CONTRACT:
        return end_date
    return start_date


def _description(index: int, payment_type: PaymentType) -> str:
    if index == 0 and payment_type == PaymentType.ON_SIGNING:
        return "First payment on signing"
    return f"Installment {index + 1}"


def distribute_evenly(
    final_total: float,
    count: int,
    start_date: date,
    end_date: Optional[date] = None
) -> List[Installment]:
    """
    Splits the total into `count` installments (clamped to 1..MAX_INSTALLMENTS).
    Every installment but the last is the total divided evenly and floored to the cent;
    the last one absorbs the remainder so the plan sums to the total exactly.
    """
    if final_total < 0:
        raise ValueError("Cannot distribute a negative total")

    count = max(1, min(settings.MAX_INSTALLMENTS, int(count)))
    even = math.floor(final_total / count * 100) / 100

    plan = []
    for i in range(count):
        payment_type = PaymentType.ON_SIGNING if i == 0 else PaymentType.MONTHLY
        amount = round_money(final_total - even * (count - 1)) if i == count - 1 else even
        plan.append(Installment(
            amount=amount,
            payment_type=payment_type,
            description=_description(i, payment_type),
            due_date=calculate_due_date(payment_type, i, start_date, end_date)
        ))
    return plan


def default_plan(final_total: float, start_date: date, end_date: Optional[date] = None) -> List[Installment]:
    """A single on-signing payment for the whole total."""
    return distribute_evenly(final_total, 1, start_date, end_date)


def installments_total(installments: Sequence[Installment]) -> float:
    return round_money(sum(inst.amount for inst in installments))


def add_installment(
    installments: Sequence[Installment],
    final_total: float,
    start_date: date,
    end_date: Optional[date] = None
) -> List[Installment]:
    """Appends a monthly installment for whatever is still unallocated (0 when over-allocated)."""
    remaining = max(0.0, round_money(final_total - installments_total(installments)))
    index = len(installments)
    new = Installment(
        amount=remaining,
        payment_type=PaymentType.MONTHLY,
        description=_description(index, PaymentType.MONTHLY),
        due_date=calculate_due_date(PaymentType.MONTHLY, index, start_date, end_date)
    )
    return [inst.model_copy() for inst in installments] + [new]


def remove_installment(installments: Sequence[Installment], index: int) -> List[Installment]:
    if index < 0 or index >= len(installments):
        raise ValueError(f"Installment {index} does not exist")
    return [inst.model_copy() for i, inst in enumerate(installments) if i != index]


def update_installment(
    installments: Sequence[Installment],
    index: int,
    changes: Mapping[str, Any],
    start_date: date,
    end_date: Optional[date] = None
) -> List[Installment]:
    """
    Applies field changes to one installment.
    A new payment type recomputes that installment's due date unless a due date is given explicitly.
    """
    if index < 0 or index >= len(installments):
        raise ValueError(f"Installment {index} does not exist")

    plan = [inst.model_copy() for inst in installments]
    current = plan[index]
    updated = Installment(**{**current.model_dump(), **dict(changes)})

    if "payment_type" in changes and "due_date" not in changes and updated.payment_type != current.payment_type:
        updated.due_date = calculate_due_date(updated.payment_type, index, start_date, end_date)

    plan[index] = updated
    return plan


def validate_installments(
    installments: Sequence[Installment],
    final_total: float,
    tolerance: Optional[float] = None
) -> InstallmentValidation:
    """Soft pre-save check: the plan must be non-empty and sum to the total within the tolerance."""
    if not installments:
        return InstallmentValidation(is_valid=False, message="Add at least one installment to the contract")

    limit = settings.INSTALLMENT_TOLERANCE if tolerance is None else tolerance
    total = installments_total(installments)
    if abs(total - final_total) > limit:
        return InstallmentValidation(
            is_valid=False,
            message=f"Installments total {total:.2f} does not match the contract total {final_total:.2f}"
        )

    return InstallmentValidation(is_valid=True, message="")
