"""Category and product schemas"""
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: Optional[str] = Field(None, max_length=500)
    is_active: bool = True


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, min_length=1, max_length=100, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None


class CategoryResponse(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class VariantCreate(BaseModel):
    sku: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    stock: int = Field(default=0, ge=0)


class VariantResponse(BaseModel):
    id: int
    sku: str
    price: float
    stock: int

    model_config = {"from_attributes": True}


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    category_id: Optional[int] = None
    variants: List[VariantCreate] = Field(..., min_length=1)


class ProductResponse(BaseModel):
    id: int
    seller_id: int
    category_id: Optional[int] = None
    name: str
    description: Optional[str] = None
    is_active: bool
    variants: List[VariantResponse] = []
    created_at: datetime

    model_config = {"from_attributes": True}


class ProductList(BaseModel):
    products: List[ProductResponse]
    total: int
    page: int
    page_size: int
