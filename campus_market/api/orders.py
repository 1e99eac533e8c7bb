"""Checkout and order status endpoints"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from campus_market.database import get_db
from campus_market.api.deps import get_current_user
from campus_market.models.user import User
from campus_market.models.order import OrderStatus
from campus_market.services.order_service import order_service
from campus_market.schemas.order import OrderCreate, OrderResponse, OrderList
from typing import List, Optional
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/", response_model=List[OrderResponse], status_code=status.HTTP_201_CREATED)
async def create_orders(
    data: OrderCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Check out a cart.
    One order is created per seller in the cart.
    """
    return await order_service.create_orders(db, current_user, data)


@router.get("/", response_model=OrderList)
async def list_orders(
    as_seller: bool = False,
    status: Optional[OrderStatus] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Purchases by default, sales with as_seller=true; admins see all orders"""
    orders, total = await order_service.list_orders(db, current_user, as_seller, status, skip, limit)
    return OrderList(
        orders=[OrderResponse.model_validate(o) for o in orders],
        total=total,
        page=skip // limit + 1,
        page_size=limit
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await order_service.get_order_details(db, order_id, current_user)


@router.put("/{order_id}/accept", response_model=OrderResponse)
async def accept_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await order_service.accept_order(db, order_id, current_user)


@router.put("/{order_id}/reject", response_model=OrderResponse)
async def reject_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await order_service.reject_order(db, order_id, current_user)


@router.put("/{order_id}/process", response_model=OrderResponse)
async def process_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await order_service.process_order(db, order_id, current_user)


@router.put("/{order_id}/ship", response_model=OrderResponse)
async def ship_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await order_service.ship_order(db, order_id, current_user)


@router.put("/{order_id}/deliver", response_model=OrderResponse)
async def deliver_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await order_service.deliver_order(db, order_id, current_user)


@router.put("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    order = await order_service.cancel_order(db, order_id, current_user)
    logger.info(f"Order {order.order_number} cancelled by user {current_user.id}")
    return order
