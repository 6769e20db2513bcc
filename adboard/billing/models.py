"""
Append-only customer ledger.
Credits (receipts, account payments) reduce what a customer owes; debits (invoices, debts) add to it.
"""
import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Enum, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from adboard.core.database import Base, get_enum_values


class EntryType(str, enum.Enum):
    RECEIPT = "receipt"
    ACCOUNT_PAYMENT = "account_payment"
    INVOICE = "invoice"
    DEBT = "debt"


CREDIT_TYPES = (EntryType.RECEIPT, EntryType.ACCOUNT_PAYMENT)
DEBIT_TYPES = (EntryType.INVOICE, EntryType.DEBT)


class Payment(Base):
    """Entity representing one ledger entry."""

    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id"), nullable=False, index=True)
    contract_id: Mapped[Optional[int]] = mapped_column(ForeignKey("contracts.id"), nullable=True, index=True)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    entry_type: Mapped[EntryType] = mapped_column(
        Enum(EntryType, values_callable=get_enum_values),
        nullable=False,
        default=EntryType.RECEIPT
    )
    method: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    paid_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<Payment(id={self.id}, type={self.entry_type}, amount={self.amount})>"
