import sys
import os

# Add project root to python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from adboard.core.database import SessionLocal, init_db
from adboard.core.logger import logger
from adboard.installation.models import SizeSpec
from adboard.pricing.models import MONTH_BUCKETS, DurationBucket, PriceRow
from adboard.pricing.tables import STATIC_BASE_PRICES, STATIC_MONTH_MULTIPLIERS, daily_from_monthly
from adboard.core.utils import parse_dimensions, round_half_up

# Installation fee per size (two faces)
DEFAULT_INSTALLATION_PRICES = {"4x12": 400.0, "6x18": 700.0, "8x24": 1000.0}


def seed_prices(db):
    """Fills the price list from the built-in table; existing cells are left untouched."""
    existing = {
        (row.size, row.level, row.customer_category, row.duration_bucket)
        for row in db.query(PriceRow).all()
    }

    added = 0
    for size, levels in STATIC_BASE_PRICES.items():
        for level, categories in levels.items():
            for category, monthly in categories.items():
                cells = {DurationBucket.ONE_DAY: daily_from_monthly(monthly)}
                for months, bucket in MONTH_BUCKETS.items():
                    cells[bucket] = round_half_up(monthly * STATIC_MONTH_MULTIPLIERS[months])

                for bucket, price in cells.items():
                    if (size, level, category, bucket) in existing:
                        continue
                    db.add(PriceRow(
                        size=size,
                        level=level,
                        customer_category=category,
                        duration_bucket=bucket,
                        unit_price=price
                    ))
                    added += 1

    db.commit()
    logger.info(f"Price rows added: {added}")


def seed_sizes(db):
    existing = {s.name for s in db.query(SizeSpec).all()}

    added = 0
    for order, (name, price) in enumerate(DEFAULT_INSTALLATION_PRICES.items(), start=1):
        if name in existing:
            continue
        width, height = sorted(parse_dimensions(name))
        db.add(SizeSpec(name=name, width=width, height=height, installation_price=price, sort_order=order))
        added += 1

    db.commit()
    logger.info(f"Sizes added: {added}")


if __name__ == "__main__":
    logger.info("Seeding lookup tables...")
    init_db()
    session = SessionLocal()
    try:
        seed_prices(session)
        seed_sizes(session)
    finally:
        session.close()
    logger.info("Seeding completed.")
