from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update
from sqlalchemy.orm import selectinload
from campus_market.models.order import Order, OrderItem, OrderStatus, PaymentMethod
from campus_market.models.product import ProductVariant
from campus_market.models.seller import SellerProfile, SellerStatus
from campus_market.models.user import User, UserRole
from campus_market.schemas.order import OrderCreate
from campus_market.services.wallet_service import wallet_service
from campus_market.core.errors import AppError
from campus_market.core.money import to_money
from collections import OrderedDict
from typing import Optional, List, Tuple
import logging

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.ACCEPTED, OrderStatus.REJECTED, OrderStatus.CANCELLED},
    OrderStatus.ACCEPTED: {OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
}


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, set())


def _is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN


class OrderService:
    """Checkout, order status flow and the wallet side effects of each step"""

    @staticmethod
    async def _get_order(db: AsyncSession, order_id: int, lock: bool = False) -> Order:
        query = select(Order).options(selectinload(Order.items)).where(Order.id == order_id)
        if lock:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await db.execute(query)
        order = result.scalar_one_or_none()
        if not order:
            raise AppError(404, "Order not found")
        return order

    @staticmethod
    async def _reload(db: AsyncSession, order_ids: List[int]) -> List[Order]:
        result = await db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.id.in_(order_ids))
            .order_by(Order.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    @staticmethod
    async def create_orders(db: AsyncSession, buyer: User, data: OrderCreate) -> List[Order]:
        """
        Check out a cart.

        Items are grouped by the seller of their product and one PENDING
        order is created per seller. Prices are captured from the variants
        and stock is taken immediately.
        """
        quantities = OrderedDict()
        for item in data.items:
            quantities[item.variant_id] = quantities.get(item.variant_id, 0) + item.quantity

        result = await db.execute(
            select(ProductVariant)
            .options(selectinload(ProductVariant.product))
            .where(ProductVariant.id.in_(list(quantities)))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        variants = {v.id: v for v in result.scalars().all()}
        trading = await OrderService._approved_sellers(db, {v.product.seller_id for v in variants.values()})

        by_seller = OrderedDict()
        for variant_id, quantity in quantities.items():
            variant = variants.get(variant_id)
            if not variant:
                raise AppError(404, f"Product variant not found: {variant_id}")
            product = variant.product
            if not product.is_active:
                raise AppError(400, f"Product is not available: {product.name}")
            if product.seller_id not in trading:
                raise AppError(400, f"Seller is not accepting orders: {product.name}")
            if product.seller_id == buyer.id:
                raise AppError(400, "You cannot order your own product")
            if variant.stock < quantity:
                raise AppError(
                    400,
                    f"Insufficient stock for {product.name} ({variant.sku}). "
                    f"Available: {variant.stock}, Requested: {quantity}"
                )
            by_seller.setdefault(product.seller_id, []).append((variant, quantity))

        orders = []
        for seller_id, lines in by_seller.items():
            items = []
            amount = to_money(0)
            for variant, quantity in lines:
                price = to_money(variant.price)
                amount += price * quantity
                variant.stock -= quantity
                items.append(OrderItem(variant_id=variant.id, quantity=quantity, price=price))

            order = Order(
                order_number=Order.generate_order_number(),
                buyer_id=buyer.id,
                seller_id=seller_id,
                amount=to_money(amount),
                status=OrderStatus.PENDING,
                payment_method=data.payment_method,
                items=items,
            )
            db.add(order)
            orders.append(order)

        await db.commit()
        for order in orders:
            logger.info(
                f"Order {order.order_number} created: buyer {buyer.id}, seller {order.seller_id}, "
                f"amount {order.amount}, {order.payment_method.value}"
            )
        return await OrderService._reload(db, [o.id for o in orders])

    @staticmethod
    async def _approved_sellers(db: AsyncSession, seller_ids) -> set:
        if not seller_ids:
            return set()
        result = await db.execute(
            select(SellerProfile.user_id).where(
                SellerProfile.user_id.in_(list(seller_ids)),
                SellerProfile.status == SellerStatus.APPROVED
            )
        )
        return set(result.scalars().all())

    @staticmethod
    def _check_seller_or_admin(order: Order, user: User):
        if order.seller_id != user.id and not _is_admin(user):
            raise AppError(403, "Not authorized to update this order")

    @staticmethod
    def _transition(order: Order, new_status: OrderStatus):
        if not can_transition(order.status, new_status):
            raise AppError(
                400,
                f"Cannot change order status from {order.status.value} to {new_status.value}"
            )
        logger.info(f"Order {order.order_number}: {order.status.value} -> {new_status.value}")
        order.status = new_status

    @staticmethod
    async def _restore_stock(db: AsyncSession, order: Order):
        for item in order.items:
            await db.execute(
                update(ProductVariant)
                .where(ProductVariant.id == item.variant_id)
                .values(stock=ProductVariant.stock + item.quantity)
            )

    @staticmethod
    async def _update_status(db: AsyncSession, order_id: int, user: User, new_status: OrderStatus) -> Order:
        order = await OrderService._get_order(db, order_id, lock=True)
        OrderService._check_seller_or_admin(order, user)
        OrderService._transition(order, new_status)
        await db.commit()
        return (await OrderService._reload(db, [order.id]))[0]

    @staticmethod
    async def accept_order(db: AsyncSession, order_id: int, user: User) -> Order:
        """Accept a pending order; prepaid orders are credited to the seller's wallet"""
        order = await OrderService._get_order(db, order_id, lock=True)
        OrderService._check_seller_or_admin(order, user)
        if not _is_admin(user) and not await OrderService._approved_sellers(db, {user.id}):
            raise AppError(403, "Seller account is not active")
        OrderService._transition(order, OrderStatus.ACCEPTED)

        if order.payment_method != PaymentMethod.CASH_ON_DELIVERY:
            await wallet_service.credit_order(db, order)

        await db.commit()
        return (await OrderService._reload(db, [order.id]))[0]

    @staticmethod
    async def process_order(db: AsyncSession, order_id: int, user: User) -> Order:
        return await OrderService._update_status(db, order_id, user, OrderStatus.PROCESSING)

    @staticmethod
    async def ship_order(db: AsyncSession, order_id: int, user: User) -> Order:
        return await OrderService._update_status(db, order_id, user, OrderStatus.SHIPPED)

    @staticmethod
    async def deliver_order(db: AsyncSession, order_id: int, user: User) -> Order:
        """Mark delivered; cash on delivery orders are credited here"""
        order = await OrderService._get_order(db, order_id, lock=True)
        OrderService._check_seller_or_admin(order, user)
        OrderService._transition(order, OrderStatus.DELIVERED)

        if order.payment_method == PaymentMethod.CASH_ON_DELIVERY:
            await wallet_service.credit_order(db, order)

        await db.commit()
        return (await OrderService._reload(db, [order.id]))[0]

    @staticmethod
    async def reject_order(db: AsyncSession, order_id: int, user: User) -> Order:
        order = await OrderService._get_order(db, order_id, lock=True)
        OrderService._check_seller_or_admin(order, user)
        OrderService._transition(order, OrderStatus.REJECTED)

        await wallet_service.reverse_hold(db, order)
        await OrderService._restore_stock(db, order)
        await db.commit()
        return (await OrderService._reload(db, [order.id]))[0]

    @staticmethod
    async def cancel_order(db: AsyncSession, order_id: int, user: User) -> Order:
        """
        Cancel an order. Buyers may only cancel their own PENDING orders;
        the seller or an admin may cancel until it ships.
        A hold that has not been released yet is reversed.
        """
        order = await OrderService._get_order(db, order_id, lock=True)

        if order.seller_id != user.id and not _is_admin(user):
            if order.buyer_id != user.id:
                raise AppError(403, "Not authorized to cancel this order")
            if order.status != OrderStatus.PENDING:
                raise AppError(400, "Only pending orders can be cancelled")

        OrderService._transition(order, OrderStatus.CANCELLED)

        reversal = await wallet_service.reverse_hold(db, order)
        if reversal is not None:
            logger.info(f"Order {order.order_number} cancelled, hold reversed ({reversal.amount})")
        await OrderService._restore_stock(db, order)
        await db.commit()
        return (await OrderService._reload(db, [order.id]))[0]

    @staticmethod
    async def get_order_details(db: AsyncSession, order_id: int, user: User) -> Order:
        order = await OrderService._get_order(db, order_id)
        if user.id not in (order.buyer_id, order.seller_id) and not _is_admin(user):
            raise AppError(403, "Not authorized to view this order")
        return order

    @staticmethod
    async def list_orders(
        db: AsyncSession,
        user: User,
        as_seller: bool = False,
        status: Optional[OrderStatus] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Order], int]:
        """
        Buyers see their purchases, sellers (as_seller) their sales.
        Admins see every order unless they ask for their own sales.
        """
        query = select(Order)
        if as_seller:
            query = query.where(Order.seller_id == user.id)
        elif not _is_admin(user):
            query = query.where(Order.buyer_id == user.id)
        if status:
            query = query.where(Order.status == status)

        total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
        result = await db.execute(
            query.options(selectinload(Order.items))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total


order_service = OrderService()
