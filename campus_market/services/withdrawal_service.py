from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from campus_market.models.withdrawal import Withdrawal, WithdrawalStatus
from campus_market.models.user import User
from campus_market.schemas.withdrawal import WithdrawalCreate
from campus_market.services.wallet_service import wallet_service
from campus_market.services.seller_service import seller_service
from campus_market.config import settings
from campus_market.core.datetime_utils import utc_now
from campus_market.core.errors import AppError
from campus_market.core.money import to_money
from decimal import Decimal
from typing import Optional, List, Tuple
import logging

logger = logging.getLogger(__name__)

OPEN_STATUSES = (WithdrawalStatus.PENDING, WithdrawalStatus.PROCESSING)


class WithdrawalService:
    """Seller payout requests and their admin review"""

    @staticmethod
    async def _get(db: AsyncSession, withdrawal_id: int, lock: bool = False) -> Withdrawal:
        query = select(Withdrawal).where(Withdrawal.id == withdrawal_id)
        if lock:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await db.execute(query)
        withdrawal = result.scalar_one_or_none()
        if not withdrawal:
            raise AppError(404, "Withdrawal not found")
        return withdrawal

    @staticmethod
    async def _open_amount(db: AsyncSession, wallet_id: int) -> Decimal:
        result = await db.execute(
            select(func.coalesce(func.sum(Withdrawal.amount), 0))
            .where(Withdrawal.wallet_id == wallet_id, Withdrawal.status.in_(OPEN_STATUSES))
        )
        return to_money(result.scalar() or 0)

    @staticmethod
    async def _default_details(db: AsyncSession, seller_id: int) -> dict:
        profile = await seller_service.get_by_user_id(db, seller_id)
        if not profile:
            return {}
        return {
            "account_holder": profile.payout_account_title,
            "account_number": profile.payout_account_number,
            "bank_name": profile.payout_bank_name,
        }

    @staticmethod
    async def request_withdrawal(db: AsyncSession, seller: User, data: WithdrawalCreate) -> Withdrawal:
        """
        Create a PENDING withdrawal request.

        Nothing is debited yet, but the amount must fit in the available
        balance minus whatever is already requested and still open.
        """
        amount = to_money(data.amount)
        if amount <= 0:
            raise AppError(400, "Withdrawal amount must be greater than 0")
        if amount < to_money(settings.MIN_WITHDRAWAL_AMOUNT):
            raise AppError(400, f"Minimum withdrawal amount is {to_money(settings.MIN_WITHDRAWAL_AMOUNT)}")

        wallet = await wallet_service.get_or_create_wallet(db, seller.id)
        wallet = await wallet_service.lock_wallet(db, wallet.id)

        available = to_money(wallet.available_balance - await WithdrawalService._open_amount(db, wallet.id))
        if available < amount:
            raise AppError(
                400,
                f"Insufficient available balance. Available: {available}, Requested: {amount}"
            )

        if data.details:
            details = data.details.model_dump(exclude_none=True)
        else:
            details = await WithdrawalService._default_details(db, seller.id)

        withdrawal = Withdrawal(
            wallet_id=wallet.id,
            seller_id=seller.id,
            amount=amount,
            method=data.method,
            details=details,
            status=WithdrawalStatus.PENDING,
        )
        db.add(withdrawal)
        await db.commit()
        await db.refresh(withdrawal)

        logger.info(f"Withdrawal {withdrawal.id} requested by seller {seller.id}: {amount}")
        return withdrawal

    @staticmethod
    async def _settle(db: AsyncSession, withdrawal: Withdrawal) -> Withdrawal:
        # Debit and status change commit together
        await wallet_service.debit_for_withdrawal(db, withdrawal)
        withdrawal.status = WithdrawalStatus.COMPLETED
        withdrawal.processed_at = utc_now()
        withdrawal.failure_reason = None
        await db.commit()
        await db.refresh(withdrawal)
        logger.info(f"Withdrawal {withdrawal.id} completed: {withdrawal.amount} paid to seller {withdrawal.seller_id}")
        return withdrawal

    @staticmethod
    async def approve(db: AsyncSession, withdrawal_id: int) -> Withdrawal:
        withdrawal = await WithdrawalService._get(db, withdrawal_id, lock=True)
        if withdrawal.status not in OPEN_STATUSES:
            raise AppError(400, "Withdrawal is not in pending status")
        return await WithdrawalService._settle(db, withdrawal)

    @staticmethod
    async def mark_processing(db: AsyncSession, withdrawal_id: int) -> Withdrawal:
        withdrawal = await WithdrawalService._get(db, withdrawal_id, lock=True)
        if withdrawal.status != WithdrawalStatus.PENDING:
            raise AppError(400, "Withdrawal is not in pending status")

        withdrawal.status = WithdrawalStatus.PROCESSING
        await db.commit()
        await db.refresh(withdrawal)
        logger.info(f"Withdrawal {withdrawal.id} is processing")
        return withdrawal

    @staticmethod
    async def complete_payout(db: AsyncSession, withdrawal_id: int) -> Withdrawal:
        """Payout provider callback stand-in: settle a PROCESSING withdrawal"""
        withdrawal = await WithdrawalService._get(db, withdrawal_id, lock=True)
        if withdrawal.status != WithdrawalStatus.PROCESSING:
            raise AppError(400, "Withdrawal must be in processing status")
        return await WithdrawalService._settle(db, withdrawal)

    @staticmethod
    async def reject(db: AsyncSession, withdrawal_id: int, reason: Optional[str] = None) -> Withdrawal:
        withdrawal = await WithdrawalService._get(db, withdrawal_id, lock=True)
        if withdrawal.status not in OPEN_STATUSES:
            raise AppError(400, "Withdrawal is not in pending status")

        withdrawal.status = WithdrawalStatus.FAILED
        withdrawal.failure_reason = reason
        withdrawal.processed_at = utc_now()
        await db.commit()
        await db.refresh(withdrawal)
        logger.info(f"Withdrawal {withdrawal.id} rejected: {reason}")
        return withdrawal

    @staticmethod
    async def get_details(db: AsyncSession, withdrawal_id: int, seller_id: Optional[int] = None) -> Withdrawal:
        withdrawal = await WithdrawalService._get(db, withdrawal_id)
        if seller_id is not None and withdrawal.seller_id != seller_id:
            raise AppError(403, "You are not authorized to view this withdrawal")
        return withdrawal

    @staticmethod
    async def _list(db: AsyncSession, query, skip: int, limit: int) -> Tuple[List[Withdrawal], int]:
        total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
        result = await db.execute(query.order_by(Withdrawal.created_at.desc()).offset(skip).limit(limit))
        return list(result.scalars().all()), total

    @staticmethod
    async def list_for_seller(
        db: AsyncSession, seller_id: int, skip: int = 0, limit: int = 20
    ) -> Tuple[List[Withdrawal], int]:
        query = select(Withdrawal).where(Withdrawal.seller_id == seller_id)
        return await WithdrawalService._list(db, query, skip, limit)

    @staticmethod
    async def list_all(
        db: AsyncSession,
        status: Optional[WithdrawalStatus] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Withdrawal], int]:
        query = select(Withdrawal)
        if status:
            query = query.where(Withdrawal.status == status)
        return await WithdrawalService._list(db, query, skip, limit)

    @staticmethod
    async def list_pending(db: AsyncSession) -> List[Withdrawal]:
        result = await db.execute(
            select(Withdrawal)
            .where(Withdrawal.status == WithdrawalStatus.PENDING)
            .order_by(Withdrawal.created_at, Withdrawal.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def _stats(db: AsyncSession, seller_id: Optional[int] = None) -> dict:
        query = select(
            Withdrawal.status,
            func.count(Withdrawal.id),
            func.coalesce(func.sum(Withdrawal.amount), 0),
        ).group_by(Withdrawal.status)
        if seller_id is not None:
            query = query.where(Withdrawal.seller_id == seller_id)

        counts = {status: 0 for status in WithdrawalStatus}
        sums = {status: Decimal("0") for status in WithdrawalStatus}
        for status, count, total in (await db.execute(query)).all():
            counts[status] = count
            sums[status] = to_money(total)

        return {
            "total_withdrawn": float(sums[WithdrawalStatus.COMPLETED]),
            "pending_count": counts[WithdrawalStatus.PENDING],
            "processing_count": counts[WithdrawalStatus.PROCESSING],
            "completed_count": counts[WithdrawalStatus.COMPLETED],
            "failed_count": counts[WithdrawalStatus.FAILED],
            "pending_amount": float(sums[WithdrawalStatus.PENDING]),
            "completed_amount": float(sums[WithdrawalStatus.COMPLETED]),
        }

    @staticmethod
    async def seller_stats(db: AsyncSession, seller_id: int) -> dict:
        return await WithdrawalService._stats(db, seller_id)

    @staticmethod
    async def stats(db: AsyncSession) -> dict:
        return await WithdrawalService._stats(db)


withdrawal_service = WithdrawalService()
