"""
Process-wide cache of the lookup tables: price list, size catalogue and the
distinct values used to fill admin forms.
One instance lives on app.state; it is loaded at startup (or on first use) and replaced on refresh.
"""
import threading
from typing import Any, Dict, List, Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from adboard.billboards.models import Billboard
from adboard.contracts.models import Contract
from adboard.core.database import get_db
from adboard.core.logger import logger
from adboard.installation.service import load_size_prices
from adboard.pricing.service import PricingResolver, customer_categories, load_price_table
from adboard.pricing.tables import PriceTable


def _distinct(db: Session, column) -> List[str]:
    return sorted({value for (value,) in db.query(column).distinct().all() if value})


class LookupState:
    def __init__(self):
        self._lock = threading.Lock()
        self.reset()

    def reset(self) -> None:
        self.price_table: PriceTable = PriceTable()
        self.size_prices: Dict[str, Optional[float]] = {}
        self.categories: List[str] = []
        self.levels: List[str] = []
        self.sizes: List[str] = []
        self.cities: List[str] = []
        self.ad_types: List[str] = []
        self.loaded = False

    def load(self, db: Session) -> None:
        price_table = load_price_table(db)
        size_prices = load_size_prices(db)
        levels = _distinct(db, Billboard.level)
        sizes = sorted(set(size_prices) | set(_distinct(db, Billboard.size)))
        cities = _distinct(db, Billboard.city)
        ad_types = _distinct(db, Contract.ad_type)

        with self._lock:
            self.price_table = price_table
            self.size_prices = size_prices
            self.categories = customer_categories(price_table)
            self.levels = levels
            self.sizes = sizes
            self.cities = cities
            self.ad_types = ad_types
            self.loaded = True

        logger.info(f"Lookup tables loaded: prices={len(price_table)} sizes={len(sizes)} cities={len(cities)}")

    def ensure_loaded(self, db: Session) -> None:
        if not self.loaded:
            self.load(db)

    def refresh(self, db: Session) -> None:
        self.load(db)

    def resolver(self) -> PricingResolver:
        return PricingResolver(self.price_table)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "prices": len(self.price_table),
            "categories": self.categories,
            "levels": self.levels,
            "sizes": self.sizes,
            "cities": self.cities,
            "ad_types": self.ad_types,
        }


def get_lookups(request: Request, db: Session = Depends(get_db)) -> LookupState:
    """FastAPI dependency returning the application's lookup tables, loading them on first use."""
    state: LookupState = request.app.state.lookups
    state.ensure_loaded(db)
    return state
