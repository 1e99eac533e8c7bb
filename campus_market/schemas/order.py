"""Order schemas"""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import List
from campus_market.models.order import OrderStatus, PaymentMethod


class OrderItemCreate(BaseModel):
    variant_id: int
    quantity: int = Field(default=1, ge=1)


class OrderCreate(BaseModel):
    items: List[OrderItemCreate] = Field(..., min_length=1)
    payment_method: PaymentMethod = PaymentMethod.CARD


class OrderItemResponse(BaseModel):
    id: int
    variant_id: int
    quantity: int
    price: float

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    id: int
    order_number: str
    buyer_id: int
    seller_id: int
    amount: float
    status: OrderStatus
    payment_method: PaymentMethod
    items: List[OrderItemResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OrderList(BaseModel):
    orders: List[OrderResponse]
    total: int
    page: int
    page_size: int
