from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from adboard.billing.models import EntryType


class PaymentCreate(BaseModel):
    """Ledger entry payload. The customer is taken from the contract when omitted."""
    customer_id: Optional[int] = None
    contract_id: Optional[int] = None
    amount: float = Field(..., gt=0)
    entry_type: EntryType = EntryType.RECEIPT
    method: Optional[str] = Field(default=None, max_length=50)
    reference: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = None
    paid_at: Optional[datetime] = None

    @model_validator(mode="after")
    def require_owner(self) -> "PaymentCreate":
        if self.customer_id is None and self.contract_id is None:
            raise ValueError("Either customer_id or contract_id is required")
        return self


class PaymentResponse(BaseModel):
    id: int
    customer_id: int
    contract_id: Optional[int]
    amount: float
    entry_type: EntryType
    method: Optional[str]
    reference: Optional[str]
    notes: Optional[str]
    paid_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ContractBalance(BaseModel):
    contract_id: int
    total: float
    paid: float
    remaining: float


class StatementEntry(BaseModel):
    date: datetime
    description: str
    entry_type: str
    contract_id: Optional[int] = None
    debit: float = 0.0
    credit: float = 0.0
    balance: float = Field(..., description="Running balance after this entry")


class CustomerStatement(BaseModel):
    customer_id: int
    customer_name: str
    total_debits: float
    total_credits: float
    balance: float
    entries: List[StatementEntry]
