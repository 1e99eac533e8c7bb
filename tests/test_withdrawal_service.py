"""
Tests for withdrawal requests and their review
"""
import pytest
from datetime import timedelta
from decimal import Decimal
from sqlalchemy import select

from campus_market.core.datetime_utils import utc_now
from campus_market.core.errors import AppError
from campus_market.models.wallet import Wallet, WalletTransaction, WalletTransactionType
from campus_market.models.withdrawal import WithdrawalStatus
from campus_market.schemas.withdrawal import WithdrawalCreate, WithdrawalDetails
from campus_market.services.wallet_service import wallet_service
from campus_market.services.withdrawal_service import withdrawal_service
from tests.conftest import place_order, make_seller


@pytest.fixture
async def funded_seller(db_session, buyer, seller, product):
    """Seller with 190.00 available (two orders of 100.00 at 5% commission, released)"""
    for _ in range(2):
        order = await place_order(db_session, buyer, product.variants[0].id)
        await wallet_service.credit_order(db_session, order)
    await db_session.commit()
    await wallet_service.release_held_funds(db_session, now=utc_now() + timedelta(days=8))
    return seller


async def _wallet(db, seller_id) -> Wallet:
    result = await db.execute(
        select(Wallet).where(Wallet.seller_id == seller_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


class TestRequestWithdrawal:

    async def test_request_creates_pending_without_debit(self, db_session, funded_seller):
        withdrawal = await withdrawal_service.request_withdrawal(
            db_session, funded_seller, WithdrawalCreate(amount=Decimal("50.00"))
        )

        assert withdrawal.status == WithdrawalStatus.PENDING
        assert withdrawal.amount == Decimal("50.00")
        assert withdrawal.method == "BANK_TRANSFER"
        wallet = await _wallet(db_session, funded_seller.id)
        assert wallet.available_balance == Decimal("190.00")

    async def test_details_default_to_seller_payout_profile(self, db_session, funded_seller):
        withdrawal = await withdrawal_service.request_withdrawal(
            db_session, funded_seller, WithdrawalCreate(amount=Decimal("10.00"))
        )

        assert withdrawal.details == {
            "account_holder": "Dorm Deals",
            "account_number": "PK00TEST0001",
            "bank_name": "Campus Bank",
        }

    async def test_explicit_details_are_kept(self, db_session, funded_seller):
        withdrawal = await withdrawal_service.request_withdrawal(
            db_session,
            funded_seller,
            WithdrawalCreate(
                amount=Decimal("10.00"),
                details=WithdrawalDetails(account_holder="Ali", account_number="123", bank_name="HBL"),
            )
        )

        assert withdrawal.details == {"account_holder": "Ali", "account_number": "123", "bank_name": "HBL"}

    async def test_request_above_available_fails(self, db_session, funded_seller):
        with pytest.raises(AppError) as exc:
            await withdrawal_service.request_withdrawal(
                db_session, funded_seller, WithdrawalCreate(amount=Decimal("190.01"))
            )

        assert exc.value.status_code == 400
        assert "Available: 190.00" in exc.value.message
        assert "Requested: 190.01" in exc.value.message

    async def test_open_requests_reserve_funds(self, db_session, funded_seller):
        await withdrawal_service.request_withdrawal(
            db_session, funded_seller, WithdrawalCreate(amount=Decimal("150.00"))
        )

        with pytest.raises(AppError) as exc:
            await withdrawal_service.request_withdrawal(
                db_session, funded_seller, WithdrawalCreate(amount=Decimal("50.00"))
            )
        assert "Available: 40.00" in exc.value.message

    async def test_below_minimum_fails(self, db_session, funded_seller):
        with pytest.raises(AppError) as exc:
            await withdrawal_service.request_withdrawal(
                db_session, funded_seller, WithdrawalCreate(amount=Decimal("0.50"))
            )

        assert exc.value.status_code == 400

    async def test_pending_funds_are_not_withdrawable(self, db_session, buyer, seller, product):
        order = await place_order(db_session, buyer, product.variants[0].id)
        await wallet_service.credit_order(db_session, order)
        await db_session.commit()

        with pytest.raises(AppError):
            await withdrawal_service.request_withdrawal(
                db_session, seller, WithdrawalCreate(amount=Decimal("10.00"))
            )


class TestReviewWithdrawal:

    async def _request(self, db, seller, amount="50.00"):
        return await withdrawal_service.request_withdrawal(db, seller, WithdrawalCreate(amount=Decimal(amount)))

    async def test_approve_debits_and_completes(self, db_session, funded_seller):
        withdrawal = await self._request(db_session, funded_seller)

        approved = await withdrawal_service.approve(db_session, withdrawal.id)

        assert approved.status == WithdrawalStatus.COMPLETED
        assert approved.processed_at is not None
        wallet = await _wallet(db_session, funded_seller.id)
        assert wallet.available_balance == Decimal("140.00")
        assert wallet.balance == Decimal("140.00")

        debits = await db_session.execute(
            select(WalletTransaction).where(WalletTransaction.type == WalletTransactionType.DEBIT)
        )
        debit = debits.scalar_one()
        assert debit.withdrawal_id == withdrawal.id
        assert debit.idempotency_key == f"withdrawal:{withdrawal.id}"

    async def test_approve_twice_fails(self, db_session, funded_seller):
        withdrawal = await self._request(db_session, funded_seller)
        await withdrawal_service.approve(db_session, withdrawal.id)

        with pytest.raises(AppError) as exc:
            await withdrawal_service.approve(db_session, withdrawal.id)

        assert exc.value.status_code == 400
        assert exc.value.message == "Withdrawal is not in pending status"
        wallet = await _wallet(db_session, funded_seller.id)
        assert wallet.available_balance == Decimal("140.00")

    async def test_process_then_complete_payout(self, db_session, funded_seller):
        withdrawal = await self._request(db_session, funded_seller)

        processing = await withdrawal_service.mark_processing(db_session, withdrawal.id)
        assert processing.status == WithdrawalStatus.PROCESSING

        completed = await withdrawal_service.complete_payout(db_session, withdrawal.id)
        assert completed.status == WithdrawalStatus.COMPLETED
        wallet = await _wallet(db_session, funded_seller.id)
        assert wallet.available_balance == Decimal("140.00")

    async def test_complete_payout_requires_processing(self, db_session, funded_seller):
        withdrawal = await self._request(db_session, funded_seller)

        with pytest.raises(AppError) as exc:
            await withdrawal_service.complete_payout(db_session, withdrawal.id)

        assert exc.value.message == "Withdrawal must be in processing status"

    async def test_reject_leaves_balance_untouched(self, db_session, funded_seller):
        withdrawal = await self._request(db_session, funded_seller)

        rejected = await withdrawal_service.reject(db_session, withdrawal.id, "Account title mismatch")

        assert rejected.status == WithdrawalStatus.FAILED
        assert rejected.failure_reason == "Account title mismatch"
        wallet = await _wallet(db_session, funded_seller.id)
        assert wallet.available_balance == Decimal("190.00")

        # The rejected amount is no longer reserved
        again = await self._request(db_session, funded_seller, "190.00")
        assert again.status == WithdrawalStatus.PENDING

    async def test_missing_withdrawal(self, db_session):
        with pytest.raises(AppError) as exc:
            await withdrawal_service.approve(db_session, 999)

        assert exc.value.status_code == 404

    async def test_details_of_other_seller_forbidden(self, db_session, funded_seller):
        withdrawal = await self._request(db_session, funded_seller)
        other = await make_seller(db_session, "other@uni.edu.pk", "Other Store")

        with pytest.raises(AppError) as exc:
            await withdrawal_service.get_details(db_session, withdrawal.id, other.id)

        assert exc.value.status_code == 403
        own = await withdrawal_service.get_details(db_session, withdrawal.id, funded_seller.id)
        assert own.id == withdrawal.id


class TestWithdrawalStats:

    async def test_stats_by_status(self, db_session, funded_seller):
        first = await withdrawal_service.request_withdrawal(
            db_session, funded_seller, WithdrawalCreate(amount=Decimal("30.00"))
        )
        second = await withdrawal_service.request_withdrawal(
            db_session, funded_seller, WithdrawalCreate(amount=Decimal("20.00"))
        )
        await withdrawal_service.request_withdrawal(
            db_session, funded_seller, WithdrawalCreate(amount=Decimal("10.00"))
        )
        await withdrawal_service.approve(db_session, first.id)
        await withdrawal_service.reject(db_session, second.id)

        stats = await withdrawal_service.seller_stats(db_session, funded_seller.id)

        assert stats == {
            "total_withdrawn": 30.0,
            "pending_count": 1,
            "processing_count": 0,
            "completed_count": 1,
            "failed_count": 1,
            "pending_amount": 10.0,
            "completed_amount": 30.0,
        }
        assert await withdrawal_service.stats(db_session) == stats

    async def test_list_pending_oldest_first(self, db_session, funded_seller):
        first = await withdrawal_service.request_withdrawal(
            db_session, funded_seller, WithdrawalCreate(amount=Decimal("30.00"))
        )
        second = await withdrawal_service.request_withdrawal(
            db_session, funded_seller, WithdrawalCreate(amount=Decimal("20.00"))
        )

        pending = await withdrawal_service.list_pending(db_session)

        assert [w.id for w in pending] == [first.id, second.id]

    async def test_list_all_filters_by_status(self, db_session, funded_seller):
        first = await withdrawal_service.request_withdrawal(
            db_session, funded_seller, WithdrawalCreate(amount=Decimal("30.00"))
        )
        await withdrawal_service.request_withdrawal(
            db_session, funded_seller, WithdrawalCreate(amount=Decimal("20.00"))
        )
        await withdrawal_service.approve(db_session, first.id)

        completed, total = await withdrawal_service.list_all(db_session, WithdrawalStatus.COMPLETED)

        assert total == 1
        assert completed[0].id == first.id
