from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, List
from campus_market.models.withdrawal import WithdrawalStatus


class WithdrawalDetails(BaseModel):
    account_holder: Optional[str] = None
    account_number: Optional[str] = None
    bank_name: Optional[str] = None
    routing_number: Optional[str] = None
    swift_code: Optional[str] = None


class WithdrawalCreate(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    method: str = Field(default="BANK_TRANSFER", max_length=50)
    details: Optional[WithdrawalDetails] = None


class WithdrawalReject(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class WithdrawalResponse(BaseModel):
    id: int
    wallet_id: int
    seller_id: int
    amount: float
    method: str
    details: Optional[Dict] = None
    status: WithdrawalStatus
    failure_reason: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class WithdrawalList(BaseModel):
    withdrawals: List[WithdrawalResponse]
    total: int
    page: int
    page_size: int


class WithdrawalStats(BaseModel):
    total_withdrawn: float
    pending_count: int
    processing_count: int
    completed_count: int
    failed_count: int
    pending_amount: float
    completed_amount: float
