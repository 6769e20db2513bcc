from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    company: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=30)
    email: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Customer name cannot be blank")
        return v


class CustomerResponse(BaseModel):
    id: int
    name: str
    company: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DuplicateMember(BaseModel):
    id: int
    name: str
    contracts_count: int
    similarity: float = Field(..., description="Similarity to the group's first member (0..1)")


class DuplicateGroup(BaseModel):
    members: List[DuplicateMember]
    contracts_count: int


class MergeRequest(BaseModel):
    keep_id: int
    merge_ids: List[int] = Field(..., min_length=1)


class MergeResult(BaseModel):
    customer: CustomerResponse
    merged_ids: List[int]
    contracts_moved: int
    payments_moved: int
