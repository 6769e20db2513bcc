"""
Date rules shared by contracts and billboards.
A contract runs through the whole of its end date; it is expired from the following day.
"""
from datetime import date
from typing import Optional

from adboard.core.config import settings


def _today(today: Optional[date]) -> date:
    return today or date.today()


def is_contract_expired(end_date: Optional[date], today: Optional[date] = None) -> bool:
    if end_date is None:
        return False
    return end_date < _today(today)


def is_contract_active(start_date: Optional[date], end_date: Optional[date], today: Optional[date] = None) -> bool:
    if start_date is None or end_date is None:
        return False
    return start_date <= _today(today) <= end_date


def days_until_expiry(end_date: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """Days left before the end date (0 on the last day, negative once expired)."""
    if end_date is None:
        return None
    return (end_date - _today(today)).days


def is_near_expiry(end_date: Optional[date], today: Optional[date] = None, threshold: Optional[int] = None) -> bool:
    days = days_until_expiry(end_date, today)
    if days is None:
        return False
    limit = settings.NEAR_EXPIRY_DAYS if threshold is None else threshold
    return 0 <= days <= limit


def duration_in_months(start_date: date, end_date: date) -> int:
    """Whole-month length of a date range, at least 1 (30-day months)."""
    days = max(1, abs((end_date - start_date).days))
    return max(1, round(days / settings.DAYS_PER_MONTH))
