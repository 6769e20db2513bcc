"""
FastAPI Router serving printable HTML documents.
"""
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from adboard.billboards.models import Billboard
from adboard.billing.models import Payment
from adboard.billing.service import contract_payments, customer_statement, get_payment, remaining_after_payment
from adboard.contracts.service import contract_billboard_ids, get_contract
from adboard.core.database import get_db
from adboard.customers.service import get_customer
from adboard.documents.renderer import DocumentKind, render_contract_document, render_receipt

router = APIRouter(tags=["Documents"])


@router.get("/contracts/{contract_id}/{kind}", response_class=HTMLResponse)
def contract_document(kind: DocumentKind, contract_id: int, db: Session = Depends(get_db)):
    contract = get_contract(db, contract_id)
    if not contract:
        raise HTTPException(status_code=404, detail="Contract not found")

    ids = contract_billboard_ids(contract)
    found = {b.id: b for b in db.query(Billboard).filter(Billboard.id.in_(ids)).all()} if ids else {}
    billboards = [found[i] for i in ids if i in found]

    return HTMLResponse(content=render_contract_document(kind, contract, billboards))


@router.get("/payments/{payment_id}/receipt", response_class=HTMLResponse)
def payment_receipt(payment_id: int, db: Session = Depends(get_db)):
    payment = get_payment(db, payment_id)
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")

    customer = get_customer(db, payment.customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")

    contract = get_contract(db, payment.contract_id) if payment.contract_id else None
    if contract:
        remaining = remaining_after_payment(payment.id, contract_payments(db, contract.id), contract.final_total)
    else:
        statement = customer_statement(db, customer)
        payments = db.query(Payment).filter(Payment.customer_id == customer.id).all()
        remaining = remaining_after_payment(payment.id, payments, statement.total_debits)

    return HTMLResponse(content=render_receipt(payment, customer, contract, remaining))
