"""
Price sources for rental lookups.
A lookup never raises: it answers Found(price) or NotFound, and callers walk an explicit fallback chain.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Tuple, Union

from adboard.core.config import settings
from adboard.core.utils import canon_category, canon_level, canon_size, round_half_up
from adboard.pricing.models import DurationBucket, bucket_for_months


@dataclass(frozen=True)
class Found:
    price: float
    source: str


@dataclass(frozen=True)
class NotFound:
    pass


PriceLookup = Union[Found, NotFound]
NOT_FOUND = NotFound()

PriceKey = Tuple[str, str, str, DurationBucket]

# Base monthly prices: size -> level -> customer category
STATIC_BASE_PRICES: Dict[str, Dict[str, Dict[str, float]]] = {
    "4x12": {
        "A": {"regular": 800, "city": 600, "marketer": 700, "corporate": 750},
        "B": {"regular": 1200, "city": 900, "marketer": 1050, "corporate": 1125},
        "S": {"regular": 1600, "city": 1200, "marketer": 1400, "corporate": 1500},
    },
    "6x18": {
        "A": {"regular": 1500, "city": 1125, "marketer": 1312, "corporate": 1406},
        "B": {"regular": 2250, "city": 1687, "marketer": 1968, "corporate": 2109},
        "S": {"regular": 3000, "city": 2250, "marketer": 2625, "corporate": 2812},
    },
    "8x24": {
        "A": {"regular": 2400, "city": 1800, "marketer": 2100, "corporate": 2250},
        "B": {"regular": 3600, "city": 2700, "marketer": 3150, "corporate": 3375},
        "S": {"regular": 4800, "city": 3600, "marketer": 4200, "corporate": 4500},
    },
}

# Long rentals are discounted relative to N x the monthly price
STATIC_MONTH_MULTIPLIERS: Dict[int, float] = {1: 1, 2: 1.8, 3: 2.5, 6: 4.5, 12: 8}

DEFAULT_CATEGORIES = ["regular", "city", "marketer", "corporate"]


def daily_from_monthly(monthly_price: float) -> float:
    return round_half_up(monthly_price / settings.DAYS_PER_MONTH, 2)


class PriceTable:
    """
    Snapshot of the persisted price list, indexed by canonical key.
    Built from ORM rows (or any object exposing the same attributes).
    """

    source = "database"

    def __init__(self, rows: Iterable[Any] = ()):
        self._index: Dict[PriceKey, float] = {}
        for row in rows:
            key = (
                canon_size(row.size),
                canon_level(row.level),
                canon_category(row.customer_category),
                DurationBucket(row.duration_bucket),
            )
            self._index[key] = float(row.unit_price)

    def __len__(self) -> int:
        return len(self._index)

    def lookup(self, size: Any, level: Any, category: Any, bucket: DurationBucket) -> PriceLookup:
        key = (canon_size(size), canon_level(level), canon_category(category), bucket)
        price = self._index.get(key)
        if price is None:
            return NOT_FOUND
        return Found(price, self.source)

    def monthly(self, size: Any, level: Any, category: Any, months: int) -> PriceLookup:
        bucket = bucket_for_months(months)
        if bucket is None:
            return NOT_FOUND
        return self.lookup(size, level, category, bucket)

    def daily(self, size: Any, level: Any, category: Any) -> PriceLookup:
        return self.lookup(size, level, category, DurationBucket.ONE_DAY)

    def categories(self) -> list:
        return sorted({key[2] for key in self._index})


class StaticPriceTable:
    """Built-in price list used when the persisted table has no answer."""

    source = "static"

    def __init__(self, base_prices: Dict[str, Dict[str, Dict[str, float]]] = STATIC_BASE_PRICES):
        self.base_prices = base_prices

    def _base(self, size: Any, level: Any, category: Any):
        return (
            self.base_prices
            .get(canon_size(size), {})
            .get(canon_level(level), {})
            .get(canon_category(category))
        )

    def monthly(self, size: Any, level: Any, category: Any, months: int) -> PriceLookup:
        if months <= 0:
            return NOT_FOUND
        base = self._base(size, level, category)
        if not base:
            return NOT_FOUND
        multiplier = STATIC_MONTH_MULTIPLIERS.get(months, months)
        return Found(round_half_up(base * multiplier), self.source)

    def daily(self, size: Any, level: Any, category: Any) -> PriceLookup:
        monthly = self.monthly(size, level, category, 1)
        if isinstance(monthly, NotFound):
            return NOT_FOUND
        return Found(daily_from_monthly(monthly.price), self.source)
