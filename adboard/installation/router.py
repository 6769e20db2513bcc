from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from adboard.billboards.service import get_billboards_by_ids
from adboard.core.database import get_db
from adboard.core.state import LookupState, get_lookups
from adboard.installation.schemas import (
    InstallationCostRequest,
    InstallationSummary,
    SizeSpecResponse,
    SizeSpecUpsert,
)
from adboard.installation.service import calculate_installation_cost, list_sizes, upsert_size

router = APIRouter(tags=["Installation"])


@router.post("/cost", response_model=InstallationSummary)
def installation_cost(
    data: InstallationCostRequest,
    db: Session = Depends(get_db),
    state: LookupState = Depends(get_lookups)
):
    try:
        billboards = get_billboards_by_ids(db, data.billboard_ids)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return calculate_installation_cost(billboards, state.size_prices)


@router.get("/sizes", response_model=List[SizeSpecResponse])
def get_sizes(db: Session = Depends(get_db)):
    return list_sizes(db)


@router.put("/sizes", response_model=SizeSpecResponse)
def put_size(
    data: SizeSpecUpsert,
    db: Session = Depends(get_db),
    state: LookupState = Depends(get_lookups)
):
    size = upsert_size(db, data)
    state.refresh(db)
    return size
