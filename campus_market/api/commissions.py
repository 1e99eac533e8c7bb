"""Admin commission management"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from campus_market.database import get_db
from campus_market.api.deps import get_current_admin
from campus_market.services.commission_service import commission_service
from campus_market.schemas.catalogue import CategoryResponse
from campus_market.schemas.commission import (
    CommissionCreate,
    CommissionUpdate,
    CommissionBulkCreate,
    CommissionResponse,
    CommissionList,
    CommissionStats,
    DefaultRateUpdate,
    OrderCommission,
    ProductCommission,
)
from typing import List

router = APIRouter(dependencies=[Depends(get_current_admin)])


@router.post("/", response_model=CommissionResponse, status_code=status.HTTP_201_CREATED)
async def create_commission(data: CommissionCreate, db: AsyncSession = Depends(get_db)):
    return await commission_service.create_commission(db, data)


@router.get("/", response_model=CommissionList)
async def list_commissions(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    commissions, total = await commission_service.list_commissions(db, skip, limit)
    return CommissionList(
        commissions=[CommissionResponse.model_validate(c) for c in commissions],
        total=total,
        page=skip // limit + 1,
        page_size=limit
    )


@router.get("/stats", response_model=CommissionStats)
async def get_commission_stats(db: AsyncSession = Depends(get_db)):
    return await commission_service.commission_stats(db)


@router.get("/default-rate", response_model=DefaultRateUpdate)
async def get_default_rate(db: AsyncSession = Depends(get_db)):
    return DefaultRateUpdate(rate=await commission_service.get_default_rate(db))


@router.put("/default-rate", response_model=DefaultRateUpdate)
async def set_default_rate(data: DefaultRateUpdate, db: AsyncSession = Depends(get_db)):
    """Rate applied to categories without their own commission"""
    return DefaultRateUpdate(rate=await commission_service.set_default_rate(db, data.rate))


@router.get("/categories/without", response_model=List[CategoryResponse])
async def get_categories_without_commission(db: AsyncSession = Depends(get_db)):
    return await commission_service.categories_without_commission(db)


@router.get("/categories/with", response_model=List[CommissionResponse])
async def get_categories_with_commission(db: AsyncSession = Depends(get_db)):
    return await commission_service.categories_with_commission(db)


@router.post("/bulk", response_model=List[CommissionResponse], status_code=status.HTTP_201_CREATED)
async def bulk_create_commissions(data: CommissionBulkCreate, db: AsyncSession = Depends(get_db)):
    return await commission_service.bulk_create_commissions(db, data.commissions)


@router.get("/id/{commission_id}", response_model=CommissionResponse)
async def get_commission(commission_id: int, db: AsyncSession = Depends(get_db)):
    return await commission_service.get_commission(db, commission_id)


@router.get("/category/{category_id}", response_model=CommissionResponse)
async def get_commission_by_category(category_id: int, db: AsyncSession = Depends(get_db)):
    """Falls back to the default rate when the category has no commission"""
    return await commission_service.get_commission_by_category(db, category_id)


@router.put("/category/{category_id}", response_model=CommissionResponse)
async def update_commission(
    category_id: int,
    data: CommissionUpdate,
    db: AsyncSession = Depends(get_db)
):
    return await commission_service.update_commission(db, category_id, data.rate, data.description)


@router.delete("/category/{category_id}")
async def delete_commission(category_id: int, db: AsyncSession = Depends(get_db)):
    await commission_service.delete_commission(db, category_id)
    return {"message": "Commission deleted"}


@router.get("/calculate/order/{order_id}", response_model=OrderCommission)
async def calculate_order_commission(order_id: int, db: AsyncSession = Depends(get_db)):
    amount = await commission_service.calculate_order_commission(db, order_id)
    return OrderCommission(order_id=order_id, commission_amount=float(amount))


@router.get("/calculate/product/{product_id}", response_model=ProductCommission)
async def calculate_product_commission(product_id: int, db: AsyncSession = Depends(get_db)):
    rate = await commission_service.calculate_product_commission(db, product_id)
    return ProductCommission(product_id=product_id, rate=rate)
