from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from adboard.core.utils import canon_size


class InstallationLine(BaseModel):
    billboard_id: int
    billboard_name: str
    size: str
    faces: int
    base_price: float = Field(..., description="Registered installation price for the size")
    installation_price: float = Field(..., description="Price charged after the face adjustment")


class InstallationSummary(BaseModel):
    total_installation_cost: float
    details: List[InstallationLine]


class InstallationCostRequest(BaseModel):
    billboard_ids: List[int] = Field(default_factory=list)


class SizeSpecUpsert(BaseModel):
    name: str = Field(..., min_length=1)
    installation_price: Optional[float] = Field(default=None, ge=0)
    sort_order: int = 999

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        return canon_size(v)


class SizeSpecResponse(BaseModel):
    id: int
    name: str
    width: Optional[float]
    height: Optional[float]
    installation_price: Optional[float]
    sort_order: int

    model_config = ConfigDict(from_attributes=True)
