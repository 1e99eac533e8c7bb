"""
Seller wallet settlement.

Funds from an accepted order are credited as a HOLD that stays in
pending_balance for WALLET_HOLD_DAYS. The release sweep then moves them to
available_balance, which is what withdrawals are paid from.

Every mutation locks the wallet row first and writes exactly one ledger row
per event, keyed by idempotency_key, so replays are no-ops. Mutations flush
but do not commit; the caller commits together with its own status change.
The release sweep is the exception and commits each hold separately.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from campus_market.models.wallet import (
    Wallet,
    WalletTransaction,
    WalletTransactionType,
    WalletTransactionStatus,
)
from campus_market.models.order import Order
from campus_market.models.withdrawal import Withdrawal
from campus_market.services.commission_service import commission_service
from campus_market.config import settings
from campus_market.core.datetime_utils import utc_now, as_utc
from campus_market.core.errors import AppError
from campus_market.core.money import to_money
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional, List, Tuple
import logging

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


@dataclass
class CreditResult:
    wallet: Wallet
    transaction: WalletTransaction
    commission_amount: Decimal
    net_amount: Decimal
    hold_until: datetime
    created: bool


def hold_key(order_id: int) -> str:
    return f"hold:order:{order_id}"


def release_key(hold_id: int) -> str:
    return f"release:txn:{hold_id}"


def reversal_key(hold_id: int) -> str:
    return f"reversal:txn:{hold_id}"


def withdrawal_key(withdrawal_id: int) -> str:
    return f"withdrawal:{withdrawal_id}"


def _check_balances(wallet: Wallet):
    if wallet.balance != wallet.available_balance + wallet.pending_balance:
        raise RuntimeError(f"Wallet {wallet.id} balance does not equal available + pending")
    if min(wallet.balance, wallet.available_balance, wallet.pending_balance) < ZERO:
        raise RuntimeError(f"Wallet {wallet.id} has a negative balance")


class WalletService:
    """Wallet balances and the hold/release/debit ledger"""

    @staticmethod
    async def get_by_seller(db: AsyncSession, seller_id: int) -> Optional[Wallet]:
        result = await db.execute(select(Wallet).where(Wallet.seller_id == seller_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_or_create_wallet(db: AsyncSession, seller_id: int) -> Wallet:
        """Return the seller's wallet, adding an empty one to the session if missing"""
        wallet = await WalletService.get_by_seller(db, seller_id)
        if wallet:
            return wallet

        wallet = Wallet(
            seller_id=seller_id,
            balance=ZERO,
            available_balance=ZERO,
            pending_balance=ZERO,
            currency=settings.WALLET_CURRENCY,
        )
        db.add(wallet)
        await db.flush()
        logger.info(f"Created wallet {wallet.id} for seller {seller_id}")
        return wallet

    @staticmethod
    async def get_seller_wallet(db: AsyncSession, seller_id: int) -> Wallet:
        wallet = await WalletService.get_by_seller(db, seller_id)
        if wallet:
            return wallet
        wallet = await WalletService.get_or_create_wallet(db, seller_id)
        await db.commit()
        return wallet

    @staticmethod
    async def get_balance(db: AsyncSession, seller_id: int) -> dict:
        wallet = await WalletService.get_seller_wallet(db, seller_id)
        return {
            "balance": wallet.balance,
            "available_balance": wallet.available_balance,
            "pending_balance": wallet.pending_balance,
            "currency": wallet.currency,
        }

    @staticmethod
    async def lock_wallet(db: AsyncSession, wallet_id: int) -> Wallet:
        result = await db.execute(
            select(Wallet)
            .where(Wallet.id == wallet_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        wallet = result.scalar_one_or_none()
        if not wallet:
            raise AppError(404, "Wallet not found")
        return wallet

    @staticmethod
    async def _lock_transaction(db: AsyncSession, transaction_id: int) -> WalletTransaction:
        result = await db.execute(
            select(WalletTransaction)
            .where(WalletTransaction.id == transaction_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    @staticmethod
    async def find_by_key(db: AsyncSession, key: str) -> Optional[WalletTransaction]:
        result = await db.execute(
            select(WalletTransaction).where(WalletTransaction.idempotency_key == key)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def credit_order(db: AsyncSession, order: Order) -> CreditResult:
        """
        Credit the seller for an accepted order.

        net = amount - commission goes into balance and pending_balance as a
        PENDING HOLD that matures after WALLET_HOLD_DAYS. Calling it again for
        the same order returns the existing hold unchanged.
        """
        wallet = await WalletService.get_or_create_wallet(db, order.seller_id)
        wallet = await WalletService.lock_wallet(db, wallet.id)

        existing = await WalletService.find_by_key(db, hold_key(order.id))
        if existing:
            logger.info(f"Order {order.order_number} already credited to wallet {wallet.id}, skipping")
            extra = existing.extra_data or {}
            return CreditResult(
                wallet=wallet,
                transaction=existing,
                commission_amount=to_money(extra.get("commission_amount", "0")),
                net_amount=to_money(existing.amount),
                hold_until=existing.hold_until,
                created=False,
            )

        order_amount = to_money(order.amount)
        commission = await commission_service.calculate_order_commission(db, order.id)
        net = max(order_amount - commission, ZERO)
        hold_until = utc_now() + timedelta(days=settings.WALLET_HOLD_DAYS)

        transaction = WalletTransaction(
            wallet_id=wallet.id,
            order_id=order.id,
            type=WalletTransactionType.HOLD,
            status=WalletTransactionStatus.PENDING,
            amount=net,
            hold_until=hold_until,
            idempotency_key=hold_key(order.id),
            description=f"Order payment held for {settings.WALLET_HOLD_DAYS} days - Order {order.order_number}",
            extra_data={
                "order_id": order.id,
                "order_amount": str(order_amount),
                "commission_amount": str(commission),
                "net_amount": str(net),
                "hold_days": settings.WALLET_HOLD_DAYS,
            },
        )
        db.add(transaction)

        wallet.balance = to_money(wallet.balance + net)
        wallet.pending_balance = to_money(wallet.pending_balance + net)
        _check_balances(wallet)
        await db.flush()

        logger.info(
            f"Held {net} for order {order.order_number} in wallet {wallet.id} "
            f"(commission {commission}, until {hold_until.isoformat()}); "
            f"pending={wallet.pending_balance} available={wallet.available_balance}"
        )
        return CreditResult(
            wallet=wallet,
            transaction=transaction,
            commission_amount=commission,
            net_amount=net,
            hold_until=hold_until,
            created=True,
        )

    @staticmethod
    async def release_held_funds(db: AsyncSession, now: Optional[datetime] = None) -> List[WalletTransaction]:
        """
        Move every matured hold from pending to available.

        Each hold is released and committed on its own; a failing hold is
        rolled back and logged without stopping the sweep.
        Returns the holds that were released by this call.
        """
        now = now or utc_now()
        due = await db.execute(
            select(WalletTransaction.id, WalletTransaction.wallet_id)
            .where(
                WalletTransaction.type == WalletTransactionType.HOLD,
                WalletTransaction.status == WalletTransactionStatus.PENDING,
                WalletTransaction.hold_until <= now,
            )
            .order_by(WalletTransaction.hold_until, WalletTransaction.id)
        )

        released_ids = []
        for hold_id, wallet_id in due.all():
            try:
                wallet = await WalletService.lock_wallet(db, wallet_id)
                hold = await WalletService._lock_transaction(db, hold_id)
                if hold.status != WalletTransactionStatus.PENDING or as_utc(hold.hold_until) > now:
                    # Released, reversed or rescheduled since the sweep started
                    await db.rollback()
                    continue

                amount = to_money(hold.amount)
                wallet.pending_balance = to_money(wallet.pending_balance - amount)
                wallet.available_balance = to_money(wallet.available_balance + amount)
                _check_balances(wallet)

                hold.status = WalletTransactionStatus.COMPLETED
                db.add(WalletTransaction(
                    wallet_id=wallet.id,
                    order_id=hold.order_id,
                    type=WalletTransactionType.RELEASE,
                    status=WalletTransactionStatus.COMPLETED,
                    amount=amount,
                    idempotency_key=release_key(hold.id),
                    description=f"Funds released from hold - Transaction {hold.id}",
                    extra_data={
                        "original_transaction_id": hold.id,
                        "released_at": now.isoformat(),
                    },
                ))
                await db.commit()
                released_ids.append(hold_id)
                logger.info(
                    f"Released {amount} from hold {hold_id} in wallet {wallet_id}; "
                    f"pending={wallet.pending_balance} available={wallet.available_balance}"
                )
            except Exception:
                await db.rollback()
                logger.exception(f"Failed to release hold {hold_id} in wallet {wallet_id}")

        if not released_ids:
            return []

        result = await db.execute(
            select(WalletTransaction)
            .where(WalletTransaction.id.in_(released_ids))
            .order_by(WalletTransaction.hold_until, WalletTransaction.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    @staticmethod
    async def reverse_hold(db: AsyncSession, order: Order) -> Optional[WalletTransaction]:
        """
        Cancel the order's hold if it has not been released yet.
        Released funds are left alone. Returns the REVERSAL row or None.
        """
        hold = await WalletService.find_by_key(db, hold_key(order.id))
        if not hold:
            return None

        wallet = await WalletService.lock_wallet(db, hold.wallet_id)
        hold = await WalletService._lock_transaction(db, hold.id)
        if hold.status != WalletTransactionStatus.PENDING:
            logger.info(f"Hold {hold.id} for order {order.order_number} is {hold.status.value}, not reversing")
            return None

        existing = await WalletService.find_by_key(db, reversal_key(hold.id))
        if existing:
            return existing

        amount = to_money(hold.amount)
        wallet.pending_balance = to_money(wallet.pending_balance - amount)
        wallet.balance = to_money(wallet.balance - amount)
        _check_balances(wallet)
        hold.status = WalletTransactionStatus.CANCELLED

        reversal = WalletTransaction(
            wallet_id=wallet.id,
            order_id=order.id,
            type=WalletTransactionType.REVERSAL,
            status=WalletTransactionStatus.COMPLETED,
            amount=-amount,
            idempotency_key=reversal_key(hold.id),
            description=f"Hold reversed - Order {order.order_number}",
            extra_data={"original_transaction_id": hold.id},
        )
        db.add(reversal)
        await db.flush()

        logger.info(f"Reversed hold {hold.id} ({amount}) for order {order.order_number} in wallet {wallet.id}")
        return reversal

    @staticmethod
    async def debit_for_withdrawal(db: AsyncSession, withdrawal: Withdrawal) -> WalletTransaction:
        """Take an approved withdrawal out of available_balance"""
        wallet = await WalletService.lock_wallet(db, withdrawal.wallet_id)

        existing = await WalletService.find_by_key(db, withdrawal_key(withdrawal.id))
        if existing:
            return existing

        amount = to_money(withdrawal.amount)
        if wallet.available_balance < amount:
            raise AppError(400, "Insufficient available balance")

        wallet.balance = to_money(wallet.balance - amount)
        wallet.available_balance = to_money(wallet.available_balance - amount)
        _check_balances(wallet)

        transaction = WalletTransaction(
            wallet_id=wallet.id,
            withdrawal_id=withdrawal.id,
            type=WalletTransactionType.DEBIT,
            status=WalletTransactionStatus.COMPLETED,
            amount=-amount,
            idempotency_key=withdrawal_key(withdrawal.id),
            description=f"Withdrawal of {amount}",
            extra_data={"type": "withdrawal", "withdrawal_id": withdrawal.id, "amount": str(amount)},
        )
        db.add(transaction)
        await db.flush()

        logger.info(
            f"Debited {amount} from wallet {wallet.id} for withdrawal {withdrawal.id}; "
            f"available={wallet.available_balance}"
        )
        return transaction

    @staticmethod
    async def list_transactions(
        db: AsyncSession, wallet_id: int, skip: int = 0, limit: int = 20
    ) -> Tuple[List[WalletTransaction], int]:
        total_result = await db.execute(
            select(func.count(WalletTransaction.id)).where(WalletTransaction.wallet_id == wallet_id)
        )
        total = total_result.scalar() or 0

        result = await db.execute(
            select(WalletTransaction)
            .where(WalletTransaction.wallet_id == wallet_id)
            .order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    @staticmethod
    async def list_wallets(db: AsyncSession, skip: int = 0, limit: int = 20) -> Tuple[List[Wallet], int]:
        total = (await db.execute(select(func.count(Wallet.id)))).scalar() or 0
        result = await db.execute(
            select(Wallet).order_by(Wallet.created_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total


wallet_service = WalletService()
