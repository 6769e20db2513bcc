"""
Data models for the rental price list.
One price per (size, level, customer category, duration bucket).
"""
import enum
from typing import Optional

from sqlalchemy import Enum, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from adboard.core.database import Base, get_enum_values


class DurationBucket(str, enum.Enum):
    """Fixed rental durations that carry their own price column."""
    ONE_DAY = "1_day"
    ONE_MONTH = "1_month"
    TWO_MONTHS = "2_months"
    THREE_MONTHS = "3_months"
    SIX_MONTHS = "6_months"
    TWELVE_MONTHS = "12_months"


MONTH_BUCKETS = {
    1: DurationBucket.ONE_MONTH,
    2: DurationBucket.TWO_MONTHS,
    3: DurationBucket.THREE_MONTHS,
    6: DurationBucket.SIX_MONTHS,
    12: DurationBucket.TWELVE_MONTHS,
}


def bucket_for_months(months: int) -> Optional[DurationBucket]:
    """Returns the price bucket for a month count, or None when no column exists for it."""
    return MONTH_BUCKETS.get(months)


class PriceRow(Base):
    """Entity representing a single unit price in the price list."""

    __tablename__ = "pricing"
    __table_args__ = (
        UniqueConstraint("size", "level", "customer_category", "duration_bucket", name="uq_pricing_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    size: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    level: Mapped[str] = mapped_column(String(20), nullable=False)
    customer_category: Mapped[str] = mapped_column(String(50), nullable=False)
    duration_bucket: Mapped[DurationBucket] = mapped_column(
        Enum(DurationBucket, values_callable=get_enum_values),
        nullable=False
    )
    unit_price: Mapped[float] = mapped_column(Float, nullable=False)

    def __repr__(self):
        return (
            f"<PriceRow(size={self.size}, level={self.level}, "
            f"category={self.customer_category}, bucket={self.duration_bucket}, price={self.unit_price})>"
        )
