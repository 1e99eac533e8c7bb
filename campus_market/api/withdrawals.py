from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from campus_market.database import get_db
from campus_market.api.deps import get_current_user, get_current_seller, get_current_admin
from campus_market.models.user import User, UserRole
from campus_market.models.withdrawal import WithdrawalStatus
from campus_market.services.withdrawal_service import withdrawal_service
from campus_market.schemas.withdrawal import (
    WithdrawalCreate,
    WithdrawalReject,
    WithdrawalResponse,
    WithdrawalList,
    WithdrawalStats,
)
from typing import Optional

router = APIRouter()


def _withdrawal_list(withdrawals, total, skip, limit) -> WithdrawalList:
    return WithdrawalList(
        withdrawals=[WithdrawalResponse.model_validate(w) for w in withdrawals],
        total=total,
        page=skip // limit + 1,
        page_size=limit
    )


# Seller endpoints

@router.post("/request", response_model=WithdrawalResponse, status_code=status.HTTP_201_CREATED)
async def request_withdrawal(
    data: WithdrawalCreate,
    seller: User = Depends(get_current_seller),
    db: AsyncSession = Depends(get_db)
):
    """
    Request a payout from the available balance.
    The wallet is debited when an admin approves the request.
    """
    return await withdrawal_service.request_withdrawal(db, seller, data)


@router.get("/my-withdrawals", response_model=WithdrawalList)
async def get_my_withdrawals(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    seller: User = Depends(get_current_seller),
    db: AsyncSession = Depends(get_db)
):
    withdrawals, total = await withdrawal_service.list_for_seller(db, seller.id, skip, limit)
    return _withdrawal_list(withdrawals, total, skip, limit)


@router.get("/my-withdrawals/stats", response_model=WithdrawalStats)
async def get_my_withdrawal_stats(
    seller: User = Depends(get_current_seller),
    db: AsyncSession = Depends(get_db)
):
    return await withdrawal_service.seller_stats(db, seller.id)


# Admin endpoints

@router.get("/all", response_model=WithdrawalList)
async def list_all_withdrawals(
    status: Optional[WithdrawalStatus] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    withdrawals, total = await withdrawal_service.list_all(db, status, skip, limit)
    return _withdrawal_list(withdrawals, total, skip, limit)


@router.get("/stats/all", response_model=WithdrawalStats)
async def get_withdrawal_stats(
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await withdrawal_service.stats(db)


@router.get("/{withdrawal_id}", response_model=WithdrawalResponse)
async def get_withdrawal(
    withdrawal_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Sellers can only see their own withdrawals"""
    seller_id = None if current_user.role == UserRole.ADMIN else current_user.id
    return await withdrawal_service.get_details(db, withdrawal_id, seller_id)


@router.put("/{withdrawal_id}/approve", response_model=WithdrawalResponse)
async def approve_withdrawal(
    withdrawal_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await withdrawal_service.approve(db, withdrawal_id)


@router.put("/{withdrawal_id}/reject", response_model=WithdrawalResponse)
async def reject_withdrawal(
    withdrawal_id: int,
    data: Optional[WithdrawalReject] = None,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    reason = data.reason if data else None
    return await withdrawal_service.reject(db, withdrawal_id, reason)


@router.put("/{withdrawal_id}/process", response_model=WithdrawalResponse)
async def process_withdrawal(
    withdrawal_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await withdrawal_service.mark_processing(db, withdrawal_id)


@router.post("/{withdrawal_id}/complete-payout", response_model=WithdrawalResponse)
async def complete_payout(
    withdrawal_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await withdrawal_service.complete_payout(db, withdrawal_id)
