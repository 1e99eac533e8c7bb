from pydantic import BaseModel, field_serializer
from datetime import datetime
from typing import Optional, Dict, List


class WalletBalance(BaseModel):
    balance: float
    available_balance: float
    pending_balance: float
    currency: str

    model_config = {"from_attributes": True}


class WalletResponse(WalletBalance):
    id: int
    seller_id: int
    created_at: datetime
    updated_at: datetime


class WalletTransactionResponse(BaseModel):
    id: int
    wallet_id: int
    order_id: Optional[int] = None
    withdrawal_id: Optional[int] = None
    type: str
    status: str
    amount: float
    hold_until: Optional[datetime] = None
    description: Optional[str] = None
    extra_data: Optional[Dict] = None
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_serializer('type', 'status', when_used='always')
    def serialize_enum(self, value):
        """Convert enum to string value"""
        if hasattr(value, 'value'):
            return value.value
        return str(value) if value else value


class WalletTransactionList(BaseModel):
    transactions: List[WalletTransactionResponse]
    total: int
    page: int
    page_size: int


class WalletList(BaseModel):
    wallets: List[WalletResponse]
    total: int
    page: int
    page_size: int
