from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from adboard.core.database import get_db
from adboard.expenses.schemas import (
    ClosureCreate,
    ClosureResponse,
    ExclusionRequest,
    PoolContract,
    PoolSummary,
    WithdrawalCreate,
    WithdrawalResponse,
)
from adboard.expenses.service import (
    close_period,
    list_closures,
    list_withdrawals,
    pool_contracts,
    pool_summary,
    record_withdrawal,
    set_exclusion,
)

router = APIRouter(tags=["Expenses"])


@router.get("/pool", response_model=PoolSummary)
def get_pool(db: Session = Depends(get_db)):
    """Operating fees collected from open contracts, minus withdrawals."""
    return pool_summary(db)


@router.get("/pool/contracts", response_model=List[PoolContract])
def get_pool_contracts(db: Session = Depends(get_db)):
    return pool_contracts(db)


@router.put("/pool/contracts/{contract_id}/exclusion", response_model=PoolSummary)
def put_exclusion(contract_id: int, data: ExclusionRequest, db: Session = Depends(get_db)):
    try:
        set_exclusion(db, contract_id, data.excluded)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return pool_summary(db)


@router.post("/withdrawals", response_model=WithdrawalResponse, status_code=201)
def add_withdrawal(data: WithdrawalCreate, db: Session = Depends(get_db)):
    return record_withdrawal(db, data)


@router.get("/withdrawals", response_model=List[WithdrawalResponse])
def get_withdrawals(db: Session = Depends(get_db)):
    return list_withdrawals(db)


@router.post("/closures", response_model=ClosureResponse, status_code=201)
def add_closure(data: ClosureCreate, db: Session = Depends(get_db)):
    """
    Closes a period (by contract start date) or a contract number range.

    - **400**: no open contract falls inside it
    - **422**: missing or inverted bounds
    """
    try:
        return close_period(db, data)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/closures", response_model=List[ClosureResponse])
def get_closures(db: Session = Depends(get_db)):
    return list_closures(db)
