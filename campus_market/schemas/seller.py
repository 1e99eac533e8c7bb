from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from campus_market.models.seller import SellerStatus


class SellerApply(BaseModel):
    store_name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    phone: Optional[str] = Field(None, max_length=50)
    payout_method: Optional[str] = Field(None, max_length=50)
    payout_account_title: Optional[str] = Field(None, max_length=255)
    payout_account_number: Optional[str] = Field(None, max_length=100)
    payout_bank_name: Optional[str] = Field(None, max_length=255)


class SellerUpdate(BaseModel):
    store_name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    phone: Optional[str] = Field(None, max_length=50)
    payout_method: Optional[str] = Field(None, max_length=50)
    payout_account_title: Optional[str] = Field(None, max_length=255)
    payout_account_number: Optional[str] = Field(None, max_length=100)
    payout_bank_name: Optional[str] = Field(None, max_length=255)


class SellerReject(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)


class SellerResponse(BaseModel):
    id: int
    user_id: int
    store_name: str
    description: Optional[str] = None
    phone: Optional[str] = None
    status: SellerStatus
    rejection_reason: Optional[str] = None
    payout_method: Optional[str] = None
    payout_account_title: Optional[str] = None
    payout_account_number: Optional[str] = None
    payout_bank_name: Optional[str] = None
    average_rating: float = 0.0
    review_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SellerList(BaseModel):
    sellers: List[SellerResponse]
    total: int
    page: int
    page_size: int
