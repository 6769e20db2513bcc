from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Tuple
import re

_DIMENSIONS = re.compile(r"^\s*(\d+(?:[.,]\d+)?)\s*[x*×\-\s]\s*(\d+(?:[.,]\d+)?)\s*$", re.IGNORECASE)

LEVEL_ALIASES = {
    "a": "A",
    "normal": "A",
    "regular": "A",
    "standard": "A",
    "عادي": "A",
    "b": "B",
    "premium": "B",
    "excellent": "B",
    "ممتاز": "B",
    "s": "S",
    "vip": "S",
    "special": "S",
}

CATEGORY_ALIASES = {
    "عادي": "regular",
    "normal": "regular",
    "المدينة": "city",
    "مسوق": "marketer",
    "شركات": "corporate",
    "company": "corporate",
    "companies": "corporate",
}


def _format_dimension(value: float) -> str:
    return str(int(value)) if value == int(value) else f"{value:g}"


def parse_dimensions(size: Any) -> Optional[Tuple[float, float]]:
    """
    Extracts (width, height) from a size label such as "4x12", "12*4" or "4 × 12".
    Returns None when the label is not a two-dimension size.
    """
    if size is None:
        return None
    match = _DIMENSIONS.match(str(size))
    if not match:
        return None
    first, second = (float(part.replace(",", ".")) for part in match.groups())
    return first, second


def canon_size(size: Any) -> str:
    """
    Canonical size key: dimensions sorted ascending, joined with "x".
    "12x4", "4*12" and "4 × 12" all become "4x12".
    """
    dims = parse_dimensions(size)
    if dims is None:
        return str(size or "").strip().lower()
    low, high = sorted(dims)
    return f"{_format_dimension(low)}x{_format_dimension(high)}"


def canon_level(level: Any) -> str:
    raw = str(level or "").strip()
    if not raw:
        return "A"
    return LEVEL_ALIASES.get(raw.lower(), raw.upper())


def canon_category(category: Any) -> str:
    raw = str(category or "").strip()
    if not raw:
        return "regular"
    return CATEGORY_ALIASES.get(raw.lower(), raw.lower())


def round_half_up(value: float, digits: int = 0) -> float:
    """Commercial rounding (0.5 always rounds away from zero), unlike the built-in banker's round."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def round_money(value: float) -> float:
    return round_half_up(float(value or 0.0), 2)


def format_currency(value: float, symbol: str) -> str:
    """Formats an amount with thousands separators, e.g. 12,500.00 LYD."""
    return f"{float(value or 0.0):,.2f} {symbol}"


def parse_date(value: Any) -> Optional[date]:
    """
    Lenient date parsing for imported records.
    Accepts date/datetime objects, ISO strings and DD/MM/YYYY; anything else yields None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%Y/%m/%d", "%d-%m-%Y"):
        try:
            return datetime.strptime(text[:10], fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None
