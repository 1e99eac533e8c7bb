from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List


class CommissionCreate(BaseModel):
    category_id: int
    rate: float = Field(..., ge=0, le=100, description="Commission rate must be between 0 and 100")
    description: Optional[str] = Field(None, max_length=500)


class CommissionUpdate(BaseModel):
    rate: Optional[float] = Field(None, ge=0, le=100)
    description: Optional[str] = Field(None, max_length=500)


class CommissionBulkCreate(BaseModel):
    commissions: List[CommissionCreate] = Field(..., min_length=1)


class DefaultRateUpdate(BaseModel):
    rate: float = Field(..., ge=0, le=100)


class CategoryRef(BaseModel):
    id: int
    name: str
    slug: str

    model_config = {"from_attributes": True}


class CommissionResponse(BaseModel):
    id: Optional[int] = None  # None for the synthetic default commission
    category_id: int
    rate: float
    description: Optional[str] = None
    is_default: bool = False
    category: Optional[CategoryRef] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CommissionList(BaseModel):
    commissions: List[CommissionResponse]
    total: int
    page: int
    page_size: int


class CommissionStats(BaseModel):
    total_commissions: int
    average_rate: float
    categories_with_commission: int
    categories_without_commission: int
    total_categories: int


class OrderCommission(BaseModel):
    order_id: int
    commission_amount: float


class ProductCommission(BaseModel):
    product_id: int
    rate: float
