from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from adboard.billboards.models import BillboardStatus, CleanupType
from adboard.core.utils import canon_level, canon_size


class BillboardCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    size: str = Field(..., min_length=1, description="Any separator accepted, stored as e.g. 4x12")
    level: str = "A"
    city: Optional[str] = None
    municipality: Optional[str] = None
    landmark: Optional[str] = None
    faces_count: int = Field(default=2, ge=1, le=4)
    price: float = Field(default=0.0, ge=0, description="Own monthly price, last pricing fallback")
    status: BillboardStatus = BillboardStatus.AVAILABLE
    billboard_type: Optional[str] = None
    image_url: Optional[str] = None
    coordinates: Optional[str] = None

    @field_validator("size")
    @classmethod
    def normalize_size(cls, v: str) -> str:
        return canon_size(v)

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        return canon_level(v)


class BillboardUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    size: Optional[str] = None
    level: Optional[str] = None
    city: Optional[str] = None
    municipality: Optional[str] = None
    landmark: Optional[str] = None
    faces_count: Optional[int] = Field(default=None, ge=1, le=4)
    price: Optional[float] = Field(default=None, ge=0)
    status: Optional[BillboardStatus] = None
    billboard_type: Optional[str] = None
    image_url: Optional[str] = None
    coordinates: Optional[str] = None

    @field_validator("size")
    @classmethod
    def normalize_size(cls, v: Optional[str]) -> Optional[str]:
        return canon_size(v) if v is not None else v

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: Optional[str]) -> Optional[str]:
        return canon_level(v) if v is not None else v


class BillboardRecord(BillboardCreate):
    """Canonical shape of an imported billboard, whatever its source spelling."""
    id: Optional[int] = None
    contract_id: Optional[int] = None
    customer_name: Optional[str] = None
    rent_start_date: Optional[date] = None
    rent_end_date: Optional[date] = None


class BillboardResponse(BaseModel):
    id: int
    name: str
    city: Optional[str]
    municipality: Optional[str]
    landmark: Optional[str]
    size: str
    level: str
    faces_count: int
    price: float
    status: BillboardStatus
    contract_id: Optional[int]
    customer_name: Optional[str]
    rent_start_date: Optional[date]
    rent_end_date: Optional[date]
    billboard_type: Optional[str]
    image_url: Optional[str]
    coordinates: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class ImportRowError(BaseModel):
    index: int
    message: str


class ImportResult(BaseModel):
    created: int = 0
    updated: int = 0
    errors: List[ImportRowError] = Field(default_factory=list)


class ProblemBillboard(BaseModel):
    billboard_id: int
    name: str
    contract_id: Optional[int]
    customer_name: Optional[str]
    rent_start_date: Optional[date]
    rent_end_date: Optional[date]
    issue_type: str = Field(..., description="expired, future_dates or invalid_dates")
    days_past_end: int = 0


class CleanupResult(BaseModel):
    cleaned: int
    billboard_ids: List[int]


class CleanupLogResponse(BaseModel):
    id: int
    cleanup_date: datetime
    billboards_cleaned: int
    cleanup_type: CleanupType
    notes: Optional[str]

    model_config = ConfigDict(from_attributes=True)
