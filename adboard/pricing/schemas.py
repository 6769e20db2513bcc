"""
Pydantic schemas for the price list and price quotes.
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from adboard.core.utils import canon_category, canon_level, canon_size
from adboard.pricing.models import DurationBucket


class DurationMode(str, Enum):
    MONTHS = "months"
    DAYS = "days"


class PriceRowUpsert(BaseModel):
    """Create-or-replace payload for one price list cell."""
    size: str = Field(..., min_length=1, description="Billboard size, any separator (e.g. 12x4)")
    level: str = Field(..., min_length=1, description="Billboard level (A, B, S)")
    customer_category: str = Field(..., min_length=1, description="Pricing category")
    duration_bucket: DurationBucket
    unit_price: float = Field(..., ge=0, description="Price for the whole bucket duration")

    @field_validator("size")
    @classmethod
    def normalize_size(cls, v: str) -> str:
        return canon_size(v)

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        return canon_level(v)

    @field_validator("customer_category")
    @classmethod
    def normalize_category(cls, v: str) -> str:
        return canon_category(v)


class PriceRowResponse(BaseModel):
    id: int
    size: str
    level: str
    customer_category: str
    duration_bucket: DurationBucket
    unit_price: float

    model_config = ConfigDict(from_attributes=True)


class QuoteRequest(BaseModel):
    """Single billboard price quote."""
    size: str
    level: Optional[str] = None
    customer_category: str = "regular"
    duration_mode: DurationMode = DurationMode.MONTHS
    duration_value: int = Field(..., ge=0, description="Months or days depending on duration_mode")
    own_monthly_price: float = Field(default=0.0, ge=0, description="Billboard's own monthly price, last fallback")


class QuoteResponse(BaseModel):
    unit_price: float = Field(..., description="Period price (months mode) or daily rate (days mode)")
    amount: float = Field(..., description="Total for the requested duration")
    source: str = Field(..., description="database, static, derived, billboard or none")


class CategoriesResponse(BaseModel):
    categories: List[str]
