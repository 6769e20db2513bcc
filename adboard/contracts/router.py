"""
FastAPI Router for contracts and installment planning.
"""
from typing import List, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from adboard.contracts.models import ContractStatus
from adboard.contracts.scheduler import (
    add_installment,
    calculate_due_date,
    distribute_evenly,
    remove_installment,
    update_installment,
    validate_installments,
)
from adboard.contracts.schemas import (
    ContractCreate,
    ContractPreview,
    ContractResponse,
    ContractStats,
    ContractUpdate,
    DistributeRequest,
    DueDateRequest,
    DueDateResponse,
    ExpireResult,
    Installment,
    InstallmentPlanRequest,
    InstallmentValidation,
    RemoveInstallmentRequest,
    RenewRequest,
    UpdateInstallmentRequest,
    ValidateInstallmentsRequest,
)
from adboard.contracts.service import (
    InvalidInstallmentPlan,
    contract_stats,
    create_contract,
    expire_contracts,
    get_contract,
    list_contracts,
    preview_contract,
    renew_contract,
    update_contract,
)
from adboard.core.database import get_db
from adboard.core.logger import get_logger_with_correlation
from adboard.core.state import LookupState, get_lookups

router = APIRouter(tags=["Contracts"])


def _business_error(e: ValueError) -> HTTPException:
    if isinstance(e, InvalidInstallmentPlan):
        return HTTPException(status_code=422, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


@router.post("/installments/distribute", response_model=List[Installment])
def distribute(data: DistributeRequest):
    """Even split of the total; the last installment absorbs the rounding remainder."""
    return distribute_evenly(data.final_total, data.count, data.start_date, data.end_date)


@router.post("/installments/due-date", response_model=DueDateResponse)
def due_date(data: DueDateRequest) -> DueDateResponse:
    return DueDateResponse(
        due_date=calculate_due_date(data.payment_type, data.index, data.start_date, data.end_date)
    )


@router.post("/installments/validate", response_model=InstallmentValidation)
def validate(data: ValidateInstallmentsRequest):
    return validate_installments(data.installments, data.final_total)


@router.post("/installments/add", response_model=List[Installment])
def add(data: InstallmentPlanRequest):
    return add_installment(data.installments, data.final_total, data.start_date, data.end_date)


@router.post("/installments/remove", response_model=List[Installment])
def remove(data: RemoveInstallmentRequest):
    try:
        return remove_installment(data.installments, data.index)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/installments/update", response_model=List[Installment])
def update(data: UpdateInstallmentRequest):
    try:
        return update_installment(
            data.installments,
            data.index,
            data.changes.model_dump(exclude_unset=True),
            data.start_date,
            data.end_date
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/preview", response_model=ContractPreview)
def preview(
    data: ContractCreate,
    db: Session = Depends(get_db),
    state: LookupState = Depends(get_lookups)
):
    """Prices and totals for a prospective contract. Nothing is saved."""
    try:
        return preview_contract(db, data, state)
    except ValueError as e:
        raise _business_error(e)


@router.post("/", response_model=ContractResponse, status_code=201)
def create(
    data: ContractCreate,
    db: Session = Depends(get_db),
    state: LookupState = Depends(get_lookups),
    x_correlation_id: Optional[str] = Header(default=None)
):
    """
    Creates a contract and rents its billboards.

    - **400**: unknown or unavailable billboards, inconsistent dates
    - **422**: installment plan does not match the final total
    """
    correlation_id = x_correlation_id or str(uuid4())
    logger = get_logger_with_correlation(correlation_id)

    try:
        logger.info(f"Creating contract for {data.customer_name}: billboards={data.billboard_ids}")
        contract = create_contract(db, data, state, correlation_id=correlation_id)
    except ValueError as e:
        db.rollback()
        logger.warning(f"Contract rejected: {e}")
        raise _business_error(e)

    logger.info(f"Contract created: id={contract.id}")
    return contract


@router.get("/", response_model=List[ContractResponse])
def get_contracts(
    status: Optional[ContractStatus] = None,
    customer_id: Optional[int] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db)
):
    return list_contracts(db, status, customer_id, search)


@router.get("/stats", response_model=ContractStats)
def stats(db: Session = Depends(get_db)):
    return contract_stats(db)


@router.post("/expire", response_model=ExpireResult)
def expire(db: Session = Depends(get_db)):
    return expire_contracts(db)


@router.get("/{contract_id}", response_model=ContractResponse)
def get_one(contract_id: int, db: Session = Depends(get_db)):
    contract = get_contract(db, contract_id)
    if not contract:
        raise HTTPException(status_code=404, detail="Contract not found")
    return contract


@router.patch("/{contract_id}", response_model=ContractResponse)
def patch(
    contract_id: int,
    data: ContractUpdate,
    db: Session = Depends(get_db),
    state: LookupState = Depends(get_lookups)
):
    try:
        contract = update_contract(db, contract_id, data, state)
    except ValueError as e:
        db.rollback()
        raise _business_error(e)
    if not contract:
        raise HTTPException(status_code=404, detail="Contract not found")
    return contract


@router.post("/{contract_id}/renew", response_model=ContractResponse, status_code=201)
def renew(
    contract_id: int,
    data: RenewRequest,
    db: Session = Depends(get_db),
    state: LookupState = Depends(get_lookups)
):
    try:
        contract = renew_contract(db, contract_id, data, state)
    except ValueError as e:
        db.rollback()
        raise _business_error(e)
    if not contract:
        raise HTTPException(status_code=404, detail="Contract not found")
    return contract
