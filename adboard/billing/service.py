"""
Customer ledger: payments, contract balances and account statements.
"""
from datetime import datetime, time
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from adboard.billing.models import CREDIT_TYPES, DEBIT_TYPES, Payment
from adboard.billing.schemas import ContractBalance, CustomerStatement, PaymentCreate, StatementEntry
from adboard.contracts.models import Contract
from adboard.core.logger import audit_log, logger
from adboard.core.utils import round_money
from adboard.customers.models import Customer


def _chronological(payments: Sequence[Payment]) -> List[Payment]:
    return sorted(payments, key=lambda p: (p.paid_at, p.id))


def credits_total(payments: Sequence[Payment]) -> float:
    return round_money(sum(p.amount for p in payments if p.entry_type in CREDIT_TYPES))


def remaining_after_payment(payment_id: int, payments: Sequence[Payment], total_debits: float) -> float:
    """
    Balance left once `payment_id` and every earlier credit are applied.
    An unknown payment leaves the whole debit outstanding.
    """
    ordered = _chronological(payments)
    position = next((i for i, p in enumerate(ordered) if p.id == payment_id), None)
    if position is None:
        return round_money(total_debits)
    return max(0.0, round_money(total_debits - credits_total(ordered[:position + 1])))


def record_payment(db: Session, data: PaymentCreate) -> Payment:
    """Appends a ledger entry. Raises ValueError for unknown customers or contracts."""
    customer_id = data.customer_id
    if data.contract_id is not None:
        contract = db.query(Contract).filter(Contract.id == data.contract_id).first()
        if not contract:
            raise ValueError(f"Contract {data.contract_id} not found")
        if customer_id is None:
            customer_id = contract.customer_id
        elif contract.customer_id not in (None, customer_id):
            raise ValueError("Contract belongs to another customer")

    if customer_id is None or not db.query(Customer.id).filter(Customer.id == customer_id).first():
        raise ValueError(f"Customer {customer_id} not found")

    values = data.model_dump(exclude={"customer_id", "paid_at"})
    payment = Payment(customer_id=customer_id, **values)
    if data.paid_at is not None:
        payment.paid_at = data.paid_at
    db.add(payment)
    db.commit()
    db.refresh(payment)

    logger.info(f"Payment recorded: id={payment.id} type={payment.entry_type.value} amount={payment.amount}")
    audit_log(
        action="payment_recorded",
        user="admin",
        resource=f"payment_id={payment.id}",
        details={"customer_id": customer_id, "contract_id": data.contract_id, "amount": payment.amount}
    )
    return payment


def get_payment(db: Session, payment_id: int) -> Optional[Payment]:
    return db.query(Payment).filter(Payment.id == payment_id).first()


def contract_payments(db: Session, contract_id: int) -> List[Payment]:
    return _chronological(db.query(Payment).filter(Payment.contract_id == contract_id).all())


def contract_balance(db: Session, contract: Contract) -> ContractBalance:
    """Credits booked against the contract, with the remainder floored at 0."""
    total = round_money(contract.final_total)
    paid = credits_total(contract_payments(db, contract.id))
    return ContractBalance(
        contract_id=contract.id,
        total=total,
        paid=paid,
        remaining=max(0.0, round_money(total - paid))
    )


def customer_statement(db: Session, customer: Customer) -> CustomerStatement:
    """
    Chronological account of a customer: each contract and each invoice/debt entry is a debit,
    each receipt/account payment a credit.
    """
    contracts = db.query(Contract).filter(Contract.customer_id == customer.id).all()
    payments = db.query(Payment).filter(Payment.customer_id == customer.id).all()

    rows = []
    for contract in contracts:
        rows.append((
            datetime.combine(contract.start_date, time.min),
            f"Contract #{contract.contract_number}",
            "contract",
            contract.id,
            contract.final_total,
            0.0
        ))
    for payment in payments:
        debit = payment.amount if payment.entry_type in DEBIT_TYPES else 0.0
        credit = payment.amount if payment.entry_type in CREDIT_TYPES else 0.0
        description = payment.reference or payment.entry_type.value.replace("_", " ").capitalize()
        rows.append((payment.paid_at, description, payment.entry_type.value, payment.contract_id, debit, credit))

    rows.sort(key=lambda row: row[0])

    entries = []
    balance = 0.0
    total_debits = total_credits = 0.0
    for when, description, entry_type, contract_id, debit, credit in rows:
        total_debits += debit
        total_credits += credit
        balance = round_money(balance + debit - credit)
        entries.append(StatementEntry(
            date=when,
            description=description,
            entry_type=entry_type,
            contract_id=contract_id,
            debit=round_money(debit),
            credit=round_money(credit),
            balance=balance
        ))

    return CustomerStatement(
        customer_id=customer.id,
        customer_name=customer.name,
        total_debits=round_money(total_debits),
        total_credits=round_money(total_credits),
        balance=round_money(total_debits - total_credits),
        entries=entries
    )
