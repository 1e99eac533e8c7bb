from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from campus_market.database import get_db
from campus_market.api.deps import get_current_seller, get_current_admin
from campus_market.models.user import User
from campus_market.services.wallet_service import wallet_service
from campus_market.schemas.wallet import (
    WalletBalance,
    WalletResponse,
    WalletTransactionResponse,
    WalletTransactionList,
    WalletList,
)

router = APIRouter()


@router.get("/my-wallet", response_model=WalletResponse)
async def get_my_wallet(
    seller: User = Depends(get_current_seller),
    db: AsyncSession = Depends(get_db)
):
    return await wallet_service.get_seller_wallet(db, seller.id)


@router.get("/my-wallet/balance", response_model=WalletBalance)
async def get_my_balance(
    seller: User = Depends(get_current_seller),
    db: AsyncSession = Depends(get_db)
):
    """Total, available (withdrawable) and pending (on hold) amounts"""
    return await wallet_service.get_balance(db, seller.id)


@router.get("/my-wallet/transactions", response_model=WalletTransactionList)
async def get_my_transactions(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    seller: User = Depends(get_current_seller),
    db: AsyncSession = Depends(get_db)
):
    wallet = await wallet_service.get_seller_wallet(db, seller.id)
    transactions, total = await wallet_service.list_transactions(db, wallet.id, skip, limit)
    return WalletTransactionList(
        transactions=[WalletTransactionResponse.model_validate(t) for t in transactions],
        total=total,
        page=skip // limit + 1,
        page_size=limit
    )


@router.get("/all", response_model=WalletList)
async def list_wallets(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    wallets, total = await wallet_service.list_wallets(db, skip, limit)
    return WalletList(
        wallets=[WalletResponse.model_validate(w) for w in wallets],
        total=total,
        page=skip // limit + 1,
        page_size=limit
    )
