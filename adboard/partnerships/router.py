from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from adboard.core.database import get_db
from adboard.partnerships.schemas import (
    BeneficiaryTotal,
    PartnershipCreate,
    PartnershipResponse,
    PartnershipUpdate,
    RentApplication,
    RentResult,
    RevenueSplit,
    SplitRequest,
    TransactionResponse,
)
from adboard.partnerships.service import (
    apply_rent,
    beneficiary_totals,
    calculate_split,
    create_partnership,
    get_partnership,
    list_partnerships,
    list_transactions,
    remove_partnership,
    update_partnership,
)

router = APIRouter(tags=["Shared billboards"])


@router.get("/", response_model=List[PartnershipResponse])
def get_partnerships(db: Session = Depends(get_db)):
    return list_partnerships(db)


@router.post("/", response_model=PartnershipResponse, status_code=201)
def add_partnership(data: PartnershipCreate, db: Session = Depends(get_db)):
    try:
        return create_partnership(db, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/split", response_model=RevenueSplit)
def preview_split(data: SplitRequest):
    """How a rent would be shared at a given remaining capital. Nothing is saved."""
    return calculate_split(data.capital_remaining, data.rent)


@router.get("/transactions", response_model=List[TransactionResponse])
def get_transactions(billboard_id: Optional[int] = None, db: Session = Depends(get_db)):
    return list_transactions(db, billboard_id)


@router.get("/beneficiaries", response_model=List[BeneficiaryTotal])
def get_beneficiaries(db: Session = Depends(get_db)):
    return beneficiary_totals(db)


@router.get("/{partnership_id}", response_model=PartnershipResponse)
def get_one(partnership_id: int, db: Session = Depends(get_db)):
    partnership = get_partnership(db, partnership_id)
    if not partnership:
        raise HTTPException(status_code=404, detail="Partnership not found")
    return partnership


@router.patch("/{partnership_id}", response_model=PartnershipResponse)
def patch(partnership_id: int, data: PartnershipUpdate, db: Session = Depends(get_db)):
    try:
        partnership = update_partnership(db, partnership_id, data)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    if not partnership:
        raise HTTPException(status_code=404, detail="Partnership not found")
    return partnership


@router.delete("/{partnership_id}", status_code=204)
def delete(partnership_id: int, db: Session = Depends(get_db)):
    if not remove_partnership(db, partnership_id):
        raise HTTPException(status_code=404, detail="Partnership not found")
    return Response(status_code=204)


@router.post("/{partnership_id}/rent", response_model=RentResult)
def post_rent(partnership_id: int, data: RentApplication, db: Session = Depends(get_db)):
    """
    Applies a rent payment: recovery phase 35/35 with 30% off the capital, then 50/50.

    - **400**: unknown contract
    - **404**: unknown partnership
    """
    partnership = get_partnership(db, partnership_id)
    if not partnership:
        raise HTTPException(status_code=404, detail="Partnership not found")
    try:
        return apply_rent(db, partnership, data)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
