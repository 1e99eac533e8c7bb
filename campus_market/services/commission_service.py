from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
from campus_market.models.commission import Commission
from campus_market.models.category import Category
from campus_market.models.order import Order, OrderItem
from campus_market.models.product import Product, ProductVariant
from campus_market.schemas.commission import CommissionCreate
from campus_market.services.settings_service import settings_service, DEFAULT_COMMISSION_RATE_KEY
from campus_market.config import settings as config
from campus_market.core.errors import AppError
from campus_market.core.money import to_money
from decimal import Decimal
from typing import Optional, List, Tuple
import logging

logger = logging.getLogger(__name__)


def _check_rate(rate: float, label: str = "Commission rate"):
    if rate < 0 or rate > 100:
        raise AppError(400, f"{label} must be between 0 and 100")


class CommissionService:
    """Per-category commission rates and order commission calculation"""

    @staticmethod
    async def get_default_rate(db: AsyncSession) -> float:
        return await settings_service.get_setting_float(
            db, DEFAULT_COMMISSION_RATE_KEY, config.DEFAULT_COMMISSION_RATE
        )

    @staticmethod
    async def set_default_rate(db: AsyncSession, rate: float) -> float:
        _check_rate(rate, "Default commission rate")
        await settings_service.set_setting(db, DEFAULT_COMMISSION_RATE_KEY, str(rate))
        logger.info(f"Default commission rate set to {rate}%")
        return rate

    @staticmethod
    async def find_by_category(db: AsyncSession, category_id: int) -> Optional[Commission]:
        result = await db.execute(
            select(Commission)
            .options(selectinload(Commission.category))
            .where(Commission.category_id == category_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_commission_by_category(db: AsyncSession, category_id: int):
        """Commission for a category, or a synthetic record carrying the default rate"""
        commission = await CommissionService.find_by_category(db, category_id)
        if commission:
            return commission

        return {
            "id": None,
            "category_id": category_id,
            "rate": await CommissionService.get_default_rate(db),
            "description": "Default commission rate",
            "is_default": True,
            "category": None,
        }

    @staticmethod
    async def get_commission(db: AsyncSession, commission_id: int) -> Commission:
        result = await db.execute(
            select(Commission)
            .options(selectinload(Commission.category))
            .where(Commission.id == commission_id)
        )
        commission = result.scalar_one_or_none()
        if not commission:
            raise AppError(404, "Commission not found")
        return commission

    @staticmethod
    async def _validate_new(db: AsyncSession, data: CommissionCreate):
        _check_rate(data.rate)

        category = await db.execute(select(Category.id).where(Category.id == data.category_id))
        if not category.first():
            raise AppError(404, f"Category not found: {data.category_id}")

        if await CommissionService.find_by_category(db, data.category_id):
            raise AppError(400, f"Commission already exists for category: {data.category_id}")

    @staticmethod
    async def create_commission(db: AsyncSession, data: CommissionCreate) -> Commission:
        await CommissionService._validate_new(db, data)

        commission = Commission(**data.model_dump())
        db.add(commission)
        await db.commit()
        logger.info(f"Commission {data.rate}% set for category {data.category_id}")
        return await CommissionService.get_commission(db, commission.id)

    @staticmethod
    async def bulk_create_commissions(db: AsyncSession, items: List[CommissionCreate]) -> List[Commission]:
        """Validate every entry first, then insert them all together"""
        seen = set()
        for item in items:
            if item.category_id in seen:
                raise AppError(400, f"Duplicate category in request: {item.category_id}")
            seen.add(item.category_id)
            await CommissionService._validate_new(db, item)

        created = [Commission(**item.model_dump()) for item in items]
        db.add_all(created)
        await db.commit()
        logger.info(f"Created {len(created)} commissions")

        result = await db.execute(
            select(Commission)
            .options(selectinload(Commission.category))
            .where(Commission.id.in_([c.id for c in created]))
            .order_by(Commission.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def update_commission(
        db: AsyncSession,
        category_id: int,
        rate: Optional[float] = None,
        description: Optional[str] = None
    ) -> Commission:
        if rate is not None:
            _check_rate(rate)

        commission = await CommissionService.find_by_category(db, category_id)
        if not commission:
            raise AppError(404, "Commission not found for this category")

        if rate is not None:
            commission.rate = rate
        if description is not None:
            commission.description = description

        await db.commit()
        return await CommissionService.get_commission(db, commission.id)

    @staticmethod
    async def delete_commission(db: AsyncSession, category_id: int) -> Commission:
        commission = await CommissionService.find_by_category(db, category_id)
        if not commission:
            raise AppError(404, "Commission not found for this category")

        await db.delete(commission)
        await db.commit()
        logger.info(f"Commission removed for category {category_id}")
        return commission

    @staticmethod
    async def list_commissions(
        db: AsyncSession, skip: int = 0, limit: int = 20
    ) -> Tuple[List[Commission], int]:
        total = (await db.execute(select(func.count(Commission.id)))).scalar() or 0
        result = await db.execute(
            select(Commission)
            .options(selectinload(Commission.category))
            .order_by(Commission.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    @staticmethod
    async def categories_without_commission(db: AsyncSession) -> List[Category]:
        result = await db.execute(
            select(Category)
            .outerjoin(Commission, Commission.category_id == Category.id)
            .where(Commission.id.is_(None))
            .order_by(Category.name)
        )
        return list(result.scalars().all())

    @staticmethod
    async def categories_with_commission(db: AsyncSession) -> List[Commission]:
        result = await db.execute(
            select(Commission).options(selectinload(Commission.category)).order_by(Commission.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def commission_stats(db: AsyncSession) -> dict:
        stats = await db.execute(select(func.count(Commission.id), func.avg(Commission.rate)))
        total_commissions, average_rate = stats.one()
        total_categories = (await db.execute(select(func.count(Category.id)))).scalar() or 0

        return {
            "total_commissions": total_commissions or 0,
            "average_rate": float(average_rate or 0),
            "categories_with_commission": total_commissions or 0,
            "categories_without_commission": total_categories - (total_commissions or 0),
            "total_categories": total_categories,
        }

    @staticmethod
    async def rate_for_category(db: AsyncSession, category_id: Optional[int], default_rate: float) -> float:
        if category_id is None:
            return default_rate
        commission = await CommissionService.find_by_category(db, category_id)
        return commission.rate if commission else default_rate

    @staticmethod
    async def calculate_order_commission(db: AsyncSession, order_id: int) -> Decimal:
        """
        Sum of price * quantity * rate / 100 over the order's items,
        rate taken from the item's category (default rate when uncategorised).
        Rounded to cents once, after summing.
        """
        order = await db.execute(select(Order.id).where(Order.id == order_id))
        if not order.first():
            raise AppError(404, "Order not found")

        rows = await db.execute(
            select(OrderItem.price, OrderItem.quantity, Product.category_id)
            .join(ProductVariant, OrderItem.variant_id == ProductVariant.id)
            .join(Product, ProductVariant.product_id == Product.id)
            .where(OrderItem.order_id == order_id)
        )

        default_rate = await CommissionService.get_default_rate(db)
        rates = {}
        total = Decimal("0")
        for price, quantity, category_id in rows.all():
            if category_id not in rates:
                rates[category_id] = await CommissionService.rate_for_category(db, category_id, default_rate)
            rate = Decimal(str(rates[category_id]))
            total += Decimal(price) * quantity * rate / Decimal(100)

        return to_money(total)

    @staticmethod
    async def calculate_product_commission(db: AsyncSession, product_id: int) -> float:
        """Rate (%) that applies to sales of this product"""
        result = await db.execute(select(Product.category_id).where(Product.id == product_id))
        row = result.first()
        if not row:
            raise AppError(404, "Product not found")

        default_rate = await CommissionService.get_default_rate(db)
        return await CommissionService.rate_for_category(db, row.category_id, default_rate)


commission_service = CommissionService()
