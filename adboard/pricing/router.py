"""
FastAPI Router for the rental price list and price quotes.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from adboard.core.database import get_db
from adboard.core.state import LookupState, get_lookups
from adboard.pricing.schemas import (
    CategoriesResponse,
    DurationMode,
    PriceRowResponse,
    PriceRowUpsert,
    QuoteRequest,
    QuoteResponse,
)
from adboard.pricing.service import customer_categories, delete_price, list_prices, upsert_price

router = APIRouter(tags=["Pricing"])


@router.get("/prices", response_model=List[PriceRowResponse])
def get_prices(
    size: Optional[str] = None,
    level: Optional[str] = None,
    category: Optional[str] = None,
    db: Session = Depends(get_db)
):
    return list_prices(db, size, level, category)


@router.put("/prices", response_model=PriceRowResponse)
def put_price(
    data: PriceRowUpsert,
    db: Session = Depends(get_db),
    state: LookupState = Depends(get_lookups)
):
    row = upsert_price(db, data)
    state.refresh(db)
    return row


@router.delete("/prices/{price_id}", status_code=204)
def remove_price(
    price_id: int,
    db: Session = Depends(get_db),
    state: LookupState = Depends(get_lookups)
):
    if not delete_price(db, price_id):
        raise HTTPException(status_code=404, detail="Price not found")
    state.refresh(db)
    return


@router.post("/quote", response_model=QuoteResponse)
def quote_price(
    data: QuoteRequest,
    state: LookupState = Depends(get_lookups)
) -> QuoteResponse:
    """
    Quotes one billboard price.

    Months mode walks database -> static table -> own monthly price -> 0.
    Days mode walks database daily -> database monthly / 30 -> static -> 0.
    """
    resolver = state.resolver()
    if data.duration_mode == DurationMode.DAYS:
        quote = resolver.quote_days(data.size, data.level, data.customer_category, data.duration_value)
    else:
        quote = resolver.quote_months(
            data.size, data.level, data.customer_category, data.duration_value, data.own_monthly_price
        )
    return QuoteResponse(unit_price=quote.unit_price, amount=quote.amount, source=quote.source)


@router.get("/categories", response_model=CategoriesResponse)
def get_categories(state: LookupState = Depends(get_lookups)) -> CategoriesResponse:
    return CategoriesResponse(categories=customer_categories(state.price_table))
