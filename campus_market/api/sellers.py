from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from campus_market.database import get_db
from campus_market.api.deps import get_current_user, get_current_admin
from campus_market.models.user import User
from campus_market.models.seller import SellerStatus
from campus_market.services.seller_service import seller_service
from campus_market.schemas.seller import (
    SellerApply,
    SellerUpdate,
    SellerReject,
    SellerResponse,
    SellerList,
)
from typing import Optional

router = APIRouter()


@router.post("/apply", response_model=SellerResponse, status_code=status.HTTP_201_CREATED)
async def apply_as_seller(
    data: SellerApply,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Submit a seller application; an admin reviews it before selling is allowed"""
    return await seller_service.apply(db, current_user, data)


@router.get("/me", response_model=SellerResponse)
async def get_my_seller_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await seller_service.get_my_profile(db, current_user.id)


@router.put("/me", response_model=SellerResponse)
async def update_my_seller_profile(
    data: SellerUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await seller_service.update_my_profile(db, current_user.id, data)


@router.get("/", response_model=SellerList)
async def list_sellers(
    status: Optional[SellerStatus] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    sellers, total = await seller_service.list_sellers(db, status, skip, limit)
    return SellerList(
        sellers=[SellerResponse.model_validate(s) for s in sellers],
        total=total,
        page=skip // limit + 1,
        page_size=limit
    )


@router.put("/{profile_id}/approve", response_model=SellerResponse)
async def approve_seller(
    profile_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await seller_service.approve(db, profile_id)


@router.put("/{profile_id}/reject", response_model=SellerResponse)
async def reject_seller(
    profile_id: int,
    data: SellerReject,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await seller_service.reject(db, profile_id, data.reason)


@router.put("/{profile_id}/suspend", response_model=SellerResponse)
async def suspend_seller(
    profile_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await seller_service.suspend(db, profile_id)
