from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from adboard.expenses.models import ClosureType


class WithdrawalCreate(BaseModel):
    amount: float = Field(..., gt=0)
    withdrawn_on: Optional[date] = Field(default=None, description="Defaults to today")
    method: Optional[str] = Field(default=None, max_length=50)
    note: Optional[str] = None


class WithdrawalResponse(BaseModel):
    id: int
    amount: float
    withdrawn_on: date
    method: Optional[str]
    note: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class ExclusionRequest(BaseModel):
    excluded: bool = True


class ClosureCreate(BaseModel):
    """A period closure needs both dates, a range closure both contract numbers; start must precede end."""
    closure_type: ClosureType
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    contract_start: Optional[int] = Field(default=None, ge=1)
    contract_end: Optional[int] = Field(default=None, ge=1)
    closure_date: Optional[date] = Field(default=None, description="Defaults to today")
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_bounds(self) -> "ClosureCreate":
        if self.closure_type == ClosureType.PERIOD:
            if self.period_start is None or self.period_end is None:
                raise ValueError("period_start and period_end are required for a period closure")
            if self.period_start >= self.period_end:
                raise ValueError("period_start must be before period_end")
        else:
            if self.contract_start is None or self.contract_end is None:
                raise ValueError("contract_start and contract_end are required for a contract range closure")
            if self.contract_start >= self.contract_end:
                raise ValueError("contract_start must be lower than contract_end")
        return self


class ClosureResponse(BaseModel):
    id: int
    closure_type: ClosureType
    period_start: Optional[date]
    period_end: Optional[date]
    contract_start: Optional[int]
    contract_end: Optional[int]
    closure_date: date
    total_contracts: int
    total_amount: float
    total_withdrawn: float
    remaining_balance: float
    notes: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PoolContract(BaseModel):
    """One contract's contribution to the pool."""
    contract_id: int
    contract_number: int
    customer_name: str
    start_date: date
    rental_cost_only: float
    operating_fee_rate: float
    fee: float
    excluded: bool
    closed: bool


class PoolSummary(BaseModel):
    total_contracts: int
    counted_contracts: int
    pool_total: float
    total_withdrawn: float
    remaining: float = Field(..., description="Pool minus withdrawals, never below 0")
