import json
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from adboard.partnerships.models import SplitPhase, TransactionType


def _clean_partners(names: List[str]) -> List[str]:
    return list(dict.fromkeys(name.strip() for name in names if name and name.strip()))


class PartnershipCreate(BaseModel):
    billboard_id: int
    partner_companies: List[str] = Field(default_factory=list)
    capital: float = Field(default=0.0, ge=0, description="Partner capital invested in the billboard")
    capital_remaining: Optional[float] = Field(default=None, ge=0, description="Defaults to the full capital")

    @field_validator("partner_companies")
    @classmethod
    def normalize_partners(cls, v: List[str]) -> List[str]:
        return _clean_partners(v)


class PartnershipUpdate(BaseModel):
    partner_companies: Optional[List[str]] = None
    capital: Optional[float] = Field(default=None, ge=0)
    capital_remaining: Optional[float] = Field(default=None, ge=0)

    @field_validator("partner_companies")
    @classmethod
    def normalize_partners(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_partners(v) if v is not None else v


class PartnershipResponse(BaseModel):
    id: int
    billboard_id: int
    partner_companies: List[str]
    capital: float
    capital_remaining: float
    recovered: float = 0.0
    recovery_percent: int = Field(default=0, description="Share of the capital already recovered, 0..100")
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("partner_companies", mode="before")
    @classmethod
    def parse_json(cls, v: Any) -> Any:
        if isinstance(v, str):
            return json.loads(v or "[]")
        return v

    @model_validator(mode="after")
    def fill_progress(self) -> "PartnershipResponse":
        self.recovered = max(0.0, round(self.capital - self.capital_remaining, 2))
        self.recovery_percent = round(self.recovered / self.capital * 100) if self.capital > 0 else 0
        return self


class RentApplication(BaseModel):
    rent: float = Field(..., gt=0, description="Rent collected for the billboard")
    contract_id: Optional[int] = None


class SplitRequest(BaseModel):
    rent: float = Field(..., gt=0)
    capital_remaining: float = Field(default=0.0, ge=0)


class RevenueSplit(BaseModel):
    phase: SplitPhase
    rent: float
    company_share: float
    partner_share: float
    capital_deduction: float
    capital_remaining: float = Field(..., description="Capital left to recover after this rent")


class PartnerShare(BaseModel):
    beneficiary: str
    amount: float


class TransactionResponse(BaseModel):
    id: int
    billboard_id: int
    contract_id: Optional[int]
    beneficiary: str
    amount: float
    transaction_type: TransactionType
    phase: SplitPhase
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RentResult(BaseModel):
    split: RevenueSplit
    partner_shares: List[PartnerShare]
    transactions: List[TransactionResponse]


class BeneficiaryTotal(BaseModel):
    beneficiary: str
    rental_income: float
    capital_deduction: float
