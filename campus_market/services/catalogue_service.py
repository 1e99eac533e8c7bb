from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload
from campus_market.models.category import Category
from campus_market.models.product import Product, ProductVariant
from campus_market.models.seller import SellerProfile, SellerStatus
from campus_market.models.user import User
from campus_market.schemas.catalogue import CategoryCreate, CategoryUpdate, ProductCreate
from campus_market.core.errors import AppError
from typing import Optional, List, Tuple
import logging

logger = logging.getLogger(__name__)


class CatalogueService:
    """Categories (admin) and seller product listings"""

    @staticmethod
    async def get_category(db: AsyncSession, category_id: int) -> Category:
        result = await db.execute(select(Category).where(Category.id == category_id))
        category = result.scalar_one_or_none()
        if not category:
            raise AppError(404, "Category not found")
        return category

    @staticmethod
    async def list_categories(db: AsyncSession, is_active: Optional[bool] = None) -> List[Category]:
        query = select(Category).order_by(Category.name)
        if is_active is not None:
            query = query.where(Category.is_active == is_active)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def _ensure_unique(db: AsyncSession, name: Optional[str], slug: Optional[str], exclude_id: int = 0):
        conditions = []
        if name:
            conditions.append(Category.name == name)
        if slug:
            conditions.append(Category.slug == slug)
        if not conditions:
            return
        result = await db.execute(select(Category.id).where(or_(*conditions), Category.id != exclude_id))
        if result.first():
            raise AppError(400, "Category with this name or slug already exists")

    @staticmethod
    async def create_category(db: AsyncSession, data: CategoryCreate) -> Category:
        await CatalogueService._ensure_unique(db, data.name, data.slug)
        category = Category(**data.model_dump())
        db.add(category)
        await db.commit()
        await db.refresh(category)
        logger.info(f"Category created: {category.name}")
        return category

    @staticmethod
    async def update_category(db: AsyncSession, category_id: int, data: CategoryUpdate) -> Category:
        category = await CatalogueService.get_category(db, category_id)
        await CatalogueService._ensure_unique(db, data.name, data.slug, exclude_id=category_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(category, field, value)
        await db.commit()
        await db.refresh(category)
        return category

    @staticmethod
    async def delete_category(db: AsyncSession, category_id: int):
        category = await CatalogueService.get_category(db, category_id)
        in_use = await db.execute(select(func.count(Product.id)).where(Product.category_id == category_id))
        if in_use.scalar():
            raise AppError(400, "Category has products and cannot be deleted")
        # The category commission, if any, goes with it
        await db.delete(category)
        await db.commit()
        logger.info(f"Category deleted: {category.name}")

    @staticmethod
    async def get_product(db: AsyncSession, product_id: int) -> Product:
        result = await db.execute(
            select(Product).options(selectinload(Product.variants)).where(Product.id == product_id)
        )
        product = result.scalar_one_or_none()
        if not product:
            raise AppError(404, "Product not found")
        return product

    @staticmethod
    async def create_product(db: AsyncSession, seller: User, data: ProductCreate) -> Product:
        if data.category_id is not None:
            await CatalogueService.get_category(db, data.category_id)

        skus = [v.sku for v in data.variants]
        if len(set(skus)) != len(skus):
            raise AppError(400, "Variant SKUs must be unique")
        taken = await db.execute(select(ProductVariant.sku).where(ProductVariant.sku.in_(skus)))
        taken_skus = list(taken.scalars().all())
        if taken_skus:
            raise AppError(400, f"SKU already in use: {', '.join(taken_skus)}")

        product = Product(
            seller_id=seller.id,
            category_id=data.category_id,
            name=data.name,
            description=data.description,
            variants=[ProductVariant(**v.model_dump()) for v in data.variants],
        )
        db.add(product)
        await db.commit()
        logger.info(f"Product {product.id} created by seller {seller.id}")
        return await CatalogueService.get_product(db, product.id)

    @staticmethod
    async def list_products(
        db: AsyncSession,
        skip: int = 0,
        limit: int = 50,
        category_id: Optional[int] = None,
        seller_id: Optional[int] = None,
        active_only: bool = True
    ) -> Tuple[List[Product], int]:
        query = select(Product)
        if active_only:
            # Only products of sellers who may currently trade
            query = (
                query.join(SellerProfile, SellerProfile.user_id == Product.seller_id)
                .where(Product.is_active == True, SellerProfile.status == SellerStatus.APPROVED)
            )
        if category_id is not None:
            query = query.where(Product.category_id == category_id)
        if seller_id is not None:
            query = query.where(Product.seller_id == seller_id)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await db.execute(count_query)).scalar() or 0

        result = await db.execute(
            query.options(selectinload(Product.variants))
            .order_by(Product.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total


catalogue_service = CatalogueService()
