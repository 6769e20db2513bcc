from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from adboard.billing.schemas import ContractBalance, CustomerStatement, PaymentCreate, PaymentResponse
from adboard.billing.service import contract_balance, customer_statement, record_payment
from adboard.contracts.service import get_contract
from adboard.core.database import get_db
from adboard.customers.service import get_customer

router = APIRouter(tags=["Billing"])


@router.post("/payments", response_model=PaymentResponse, status_code=201)
def add_payment(data: PaymentCreate, db: Session = Depends(get_db)):
    try:
        return record_payment(db, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/contracts/{contract_id}/balance", response_model=ContractBalance)
def get_contract_balance(contract_id: int, db: Session = Depends(get_db)):
    contract = get_contract(db, contract_id)
    if not contract:
        raise HTTPException(status_code=404, detail="Contract not found")
    return contract_balance(db, contract)


@router.get("/customers/{customer_id}/statement", response_model=CustomerStatement)
def get_statement(customer_id: int, db: Session = Depends(get_db)):
    customer = get_customer(db, customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer_statement(db, customer)
