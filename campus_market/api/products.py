from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from campus_market.database import get_db
from campus_market.api.deps import get_current_seller
from campus_market.models.user import User
from campus_market.services.catalogue_service import catalogue_service
from campus_market.schemas.catalogue import ProductCreate, ProductResponse, ProductList
from typing import Optional

router = APIRouter()


def _product_list(products, total, skip, limit) -> ProductList:
    return ProductList(
        products=[ProductResponse.model_validate(p) for p in products],
        total=total,
        page=skip // limit + 1,
        page_size=limit
    )


@router.get("/", response_model=ProductList)
async def list_products(
    category_id: Optional[int] = None,
    seller_id: Optional[int] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    """Public catalogue of active products"""
    products, total = await catalogue_service.list_products(
        db, skip, limit, category_id=category_id, seller_id=seller_id
    )
    return _product_list(products, total, skip, limit)


@router.get("/mine", response_model=ProductList)
async def list_my_products(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    seller: User = Depends(get_current_seller),
    db: AsyncSession = Depends(get_db)
):
    products, total = await catalogue_service.list_products(
        db, skip, limit, seller_id=seller.id, active_only=False
    )
    return _product_list(products, total, skip, limit)


@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    seller: User = Depends(get_current_seller),
    db: AsyncSession = Depends(get_db)
):
    return await catalogue_service.create_product(db, seller, data)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    return await catalogue_service.get_product(db, product_id)
