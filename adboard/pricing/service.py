"""
Business logic for rental pricing.
Resolves per-billboard prices through the fallback chain
persisted table -> static table -> billboard's own price -> 0, and manages the persisted price list.
"""
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from sqlalchemy.orm import Session

from adboard.core.logger import audit_log, logger
from adboard.core.utils import canon_category, canon_level, canon_size, round_money
from adboard.pricing.models import PriceRow
from adboard.pricing.schemas import DurationMode, PriceRowUpsert
from adboard.pricing.tables import (
    DEFAULT_CATEGORIES,
    Found,
    NotFound,
    PriceTable,
    StaticPriceTable,
    daily_from_monthly,
)


@dataclass(frozen=True)
class PriceQuote:
    unit_price: float
    amount: float
    source: str


NO_PRICE = PriceQuote(0.0, 0.0, "none")


class PricingResolver:
    """
    Answers "how much does this billboard cost for this duration" and never raises.
    Billboards are any objects exposing `size`, `level` and `price` (own monthly price).
    """

    def __init__(self, table: Optional[PriceTable] = None, static: Optional[StaticPriceTable] = None):
        self.table = table if table is not None else PriceTable()
        self.static = static if static is not None else StaticPriceTable()

    def quote_months(self, size: Any, level: Any, category: Any, months: int, own_monthly_price: float = 0.0) -> PriceQuote:
        if months <= 0:
            return NO_PRICE

        lookup = self.table.monthly(size, level, category, months)
        if isinstance(lookup, NotFound):
            lookup = self.static.monthly(size, level, category, months)
        if isinstance(lookup, Found):
            return PriceQuote(lookup.price, lookup.price, lookup.source)

        own = float(own_monthly_price or 0.0)
        if own > 0:
            return PriceQuote(own, round_money(own * months), "billboard")

        logger.info(f"No rental price for size={size} level={level} category={category} months={months}")
        return NO_PRICE

    def daily_rate(self, size: Any, level: Any, category: Any) -> PriceQuote:
        lookup = self.table.daily(size, level, category)
        if isinstance(lookup, Found):
            return PriceQuote(lookup.price, lookup.price, lookup.source)

        monthly = self.table.monthly(size, level, category, 1)
        if isinstance(monthly, Found):
            daily = daily_from_monthly(monthly.price)
            return PriceQuote(daily, daily, "derived")

        lookup = self.static.daily(size, level, category)
        if isinstance(lookup, Found):
            return PriceQuote(lookup.price, lookup.price, lookup.source)

        return NO_PRICE

    def quote_days(self, size: Any, level: Any, category: Any, days: int) -> PriceQuote:
        if days <= 0:
            return NO_PRICE
        daily = self.daily_rate(size, level, category)
        return PriceQuote(daily.unit_price, round_money(daily.unit_price * days), daily.source)

    def quote(self, billboard: Any, category: Any, mode: DurationMode, value: int) -> PriceQuote:
        if mode == DurationMode.DAYS:
            return self.quote_days(billboard.size, billboard.level, category, value)
        return self.quote_months(billboard.size, billboard.level, category, value, getattr(billboard, "price", 0.0))

    def estimate_total(self, billboards: Iterable[Any], category: Any, mode: DurationMode, value: int) -> float:
        """Sum of per-billboard prices for the contract duration; 0 for non-positive durations."""
        if value <= 0:
            return 0.0
        return round_money(sum(self.quote(b, category, mode, value).amount for b in billboards))


def list_prices(
    db: Session,
    size: Optional[str] = None,
    level: Optional[str] = None,
    category: Optional[str] = None
) -> List[PriceRow]:
    query = db.query(PriceRow)
    if size:
        query = query.filter(PriceRow.size == canon_size(size))
    if level:
        query = query.filter(PriceRow.level == canon_level(level))
    if category:
        query = query.filter(PriceRow.customer_category == canon_category(category))
    return query.order_by(PriceRow.size, PriceRow.level, PriceRow.customer_category).all()


def upsert_price(db: Session, data: PriceRowUpsert) -> PriceRow:
    """Creates or replaces the price for a (size, level, category, bucket) key."""
    row = db.query(PriceRow).filter(
        PriceRow.size == data.size,
        PriceRow.level == data.level,
        PriceRow.customer_category == data.customer_category,
        PriceRow.duration_bucket == data.duration_bucket
    ).first()

    if row:
        row.unit_price = data.unit_price
    else:
        row = PriceRow(**data.model_dump())
        db.add(row)

    db.commit()
    db.refresh(row)

    audit_log(
        action="price_upserted",
        user="admin",
        resource=f"price_id={row.id}",
        details=data.model_dump(mode="json")
    )
    return row


def delete_price(db: Session, price_id: int) -> Optional[PriceRow]:
    row = db.query(PriceRow).filter(PriceRow.id == price_id).first()
    if row:
        db.delete(row)
        db.commit()
        audit_log(action="price_deleted", user="admin", resource=f"price_id={price_id}")
    return row


def load_price_table(db: Session) -> PriceTable:
    return PriceTable(db.query(PriceRow).all())


def customer_categories(table: PriceTable) -> List[str]:
    """Built-in categories first, then any extra category found in the price list."""
    extra = [c for c in table.categories() if c not in DEFAULT_CATEGORIES]
    return DEFAULT_CATEGORIES + extra
