from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from campus_market.database import get_db
from campus_market.api.deps import get_current_admin
from campus_market.models.user import User
from campus_market.services.catalogue_service import catalogue_service
from campus_market.schemas.catalogue import CategoryCreate, CategoryUpdate, CategoryResponse
from typing import List, Optional

router = APIRouter()


@router.get("/", response_model=List[CategoryResponse])
async def list_categories(
    is_active: Optional[bool] = None,
    db: AsyncSession = Depends(get_db)
):
    return await catalogue_service.list_categories(db, is_active)


@router.post("/", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await catalogue_service.create_category(db, data)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await catalogue_service.update_category(db, category_id, data)


@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    await catalogue_service.delete_category(db, category_id)
    return {"message": "Category deleted"}
