from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List


class AllowedDomainCreate(BaseModel):
    domain: str = Field(..., min_length=1, max_length=253)


class AllowedDomainBulkCreate(BaseModel):
    domains: List[str] = Field(..., min_length=1)


class AllowedDomainUpdate(BaseModel):
    domain: Optional[str] = Field(None, min_length=1, max_length=253)
    is_active: Optional[bool] = None


class AllowedDomainResponse(BaseModel):
    id: int
    domain: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AllowedDomainList(BaseModel):
    domains: List[AllowedDomainResponse]
    total: int
    page: int
    page_size: int
