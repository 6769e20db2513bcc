"""
Pydantic schemas for contracts, their cost breakdown and installment plans.
"""
import json
from datetime import date, datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from adboard.contracts.models import ContractStatus, DiscountType
from adboard.core.utils import canon_category
from adboard.installation.schemas import InstallationLine, InstallationSummary
from adboard.pricing.schemas import DurationMode


class PaymentType(str, Enum):
    ON_SIGNING = "on_signing"
    MONTHLY = "monthly"
    BI_MONTHLY = "bi_monthly"
    QUARTERLY = "quarterly"
    ON_INSTALLATION = "on_installation"
    END_OF_CONTRACT = "end_of_contract"


class Installment(BaseModel):
    """One scheduled partial payment of the contract total."""
    amount: float = Field(..., ge=0, description="Installment amount")
    payment_type: PaymentType = PaymentType.MONTHLY
    description: str = ""
    due_date: Optional[date] = None


class InstallmentValidation(BaseModel):
    is_valid: bool
    message: str = ""


class ContractTotals(BaseModel):
    """Cost breakdown of a contract. The operating fee is reported, never added to final_total."""
    base_total: float
    discount_amount: float
    total_after_discount: float
    rental_cost_only: float
    installation_cost: float
    print_cost: float = 0.0
    final_total: float
    operating_fee_rate: float
    operating_fee: float


class DistributeRequest(BaseModel):
    final_total: float = Field(..., ge=0)
    count: int = Field(..., description="Number of installments, clamped to 1..6")
    start_date: date
    end_date: Optional[date] = None


class DueDateRequest(BaseModel):
    payment_type: PaymentType
    index: int = Field(default=0, ge=0)
    start_date: date
    end_date: Optional[date] = None


class DueDateResponse(BaseModel):
    due_date: Optional[date]


class ValidateInstallmentsRequest(BaseModel):
    installments: List[Installment] = Field(default_factory=list)
    final_total: float = Field(..., ge=0)


class InstallmentPlanRequest(BaseModel):
    """Current plan plus the contract context needed to derive due dates."""
    installments: List[Installment] = Field(default_factory=list)
    final_total: float = Field(default=0.0, ge=0)
    start_date: date
    end_date: Optional[date] = None


class RemoveInstallmentRequest(InstallmentPlanRequest):
    index: int = Field(..., ge=0)


class InstallmentChanges(BaseModel):
    amount: Optional[float] = Field(default=None, ge=0)
    payment_type: Optional[PaymentType] = None
    description: Optional[str] = None
    due_date: Optional[date] = None


class UpdateInstallmentRequest(InstallmentPlanRequest):
    index: int = Field(..., ge=0)
    changes: InstallmentChanges


class ContractCreate(BaseModel):
    """Contract creation (and preview) payload."""
    customer_id: Optional[int] = None
    customer_name: str = Field(..., min_length=1, max_length=150)
    ad_type: Optional[str] = None
    pricing_category: str = "regular"
    billboard_ids: List[int] = Field(..., min_length=1)
    start_date: date
    end_date: Optional[date] = Field(default=None, description="Derived from the duration when omitted")
    duration_mode: DurationMode = DurationMode.MONTHS
    duration_value: int = Field(default=1, ge=1, description="Ignored when end_date is given; derived from the dates")
    rent_cost: float = Field(default=0.0, ge=0, description="Manual rent total, overrides the estimate when > 0")
    discount_type: DiscountType = DiscountType.PERCENT
    discount_value: float = Field(default=0.0, ge=0)
    print_price_per_meter: float = Field(default=0.0, ge=0)
    operating_fee_rate: Optional[float] = Field(default=None, ge=0, le=100)
    installments: Optional[List[Installment]] = None

    @field_validator("pricing_category")
    @classmethod
    def normalize_category(cls, v: str) -> str:
        return canon_category(v)

    @field_validator("customer_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Customer name cannot be blank")
        return v


class ContractUpdate(BaseModel):
    customer_name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    ad_type: Optional[str] = None
    pricing_category: Optional[str] = None
    billboard_ids: Optional[List[int]] = Field(default=None, min_length=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration_mode: Optional[DurationMode] = None
    duration_value: Optional[int] = Field(default=None, ge=1)
    rent_cost: Optional[float] = Field(default=None, ge=0)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[float] = Field(default=None, ge=0)
    print_price_per_meter: Optional[float] = Field(default=None, ge=0)
    operating_fee_rate: Optional[float] = Field(default=None, ge=0, le=100)
    installments: Optional[List[Installment]] = None

    @field_validator("pricing_category")
    @classmethod
    def normalize_category(cls, v: Optional[str]) -> Optional[str]:
        return canon_category(v) if v is not None else v


class RenewRequest(BaseModel):
    start_date: Optional[date] = Field(default=None, description="Defaults to today")
    end_date: Optional[date] = Field(default=None, description="Defaults to the original duration in months")
    keep_cost: bool = Field(default=True, description="Carry the original rent total instead of re-estimating")


class BillboardPriceLine(BaseModel):
    billboard_id: int
    name: str
    size: str
    level: str
    unit_price: float
    amount: float
    source: str


class ContractPreview(BaseModel):
    end_date: date
    duration_value: int
    lines: List[BillboardPriceLine]
    estimated_total: float
    installation: InstallationSummary
    totals: ContractTotals


class ContractResponse(BaseModel):
    id: int
    contract_number: int
    customer_id: Optional[int]
    customer_name: str
    ad_type: Optional[str]
    pricing_category: str
    start_date: date
    end_date: date
    duration_mode: DurationMode
    duration_value: int
    estimated_total: float
    rent_cost: float
    base_rent_total: float
    discount_type: DiscountType
    discount_value: float
    discount_amount: float
    installation_cost: float
    installation_details: List[InstallationLine]
    print_price_per_meter: float
    print_cost: float
    operating_fee_rate: float
    operating_fee: float
    rental_cost_only: float
    final_total: float
    billboard_ids: List[int]
    installments: List[Installment]
    status: ContractStatus
    renewed_from_id: Optional[int]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("billboard_ids", "installments", "installation_details", mode="before")
    @classmethod
    def parse_json(cls, v: Any) -> Any:
        if isinstance(v, str):
            return json.loads(v or "[]")
        return v


class ExpireResult(BaseModel):
    expired_contracts: List[int]
    released_billboards: List[int]


class ContractStats(BaseModel):
    total: int
    active: int
    expired: int
    near_expiry: int
    total_value: float
