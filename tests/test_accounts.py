"""
Tests for campus domains, registration, login and seller onboarding
"""
import pytest

from campus_market.core.errors import AppError
from campus_market.core.security import verify_token
from campus_market.models.seller import SellerStatus
from campus_market.models.wallet import Wallet
from campus_market.schemas.seller import SellerApply, SellerUpdate
from campus_market.services.allowed_domain_service import (
    allowed_domain_service,
    is_valid_domain,
    extract_domain,
)
from campus_market.services.seller_service import seller_service
from campus_market.services.user_service import user_service, issue_tokens
from sqlalchemy import select
from tests.conftest import TEST_PASSWORD, create_user


class TestDomainHelpers:

    @pytest.mark.parametrize("domain", ["uni.edu.pk", "nust.edu.pk", "a.b", "my-campus.org"])
    def test_valid_domains(self, domain):
        assert is_valid_domain(domain)

    @pytest.mark.parametrize("domain", ["", "-bad.com", ".leading.com", "spa ce.com", "under_score.com", "a" * 254])
    def test_invalid_domains(self, domain):
        assert not is_valid_domain(domain)

    def test_extract_domain(self):
        assert extract_domain("Student@UNI.edu.pk") == "uni.edu.pk"
        assert extract_domain("no-at-sign") is None
        assert extract_domain("two@@signs.com") is None


class TestAllowedDomains:

    async def test_create_lowercases(self, db_session):
        domain = await allowed_domain_service.create_domain(db_session, "  LUMS.edu.pk ")

        assert domain.domain == "lums.edu.pk"
        assert domain.is_active is True

    async def test_create_duplicate(self, db_session, campus_domain):
        with pytest.raises(AppError) as exc:
            await allowed_domain_service.create_domain(db_session, "UNI.EDU.PK")

        assert exc.value.status_code == 400

    async def test_bulk_is_all_or_nothing(self, db_session, campus_domain):
        with pytest.raises(AppError) as exc:
            await allowed_domain_service.bulk_create_domains(db_session, ["fast.edu.pk", "uni.edu.pk"])

        assert "uni.edu.pk" in exc.value.message
        domains, total = await allowed_domain_service.list_domains(db_session)
        assert total == 1

    async def test_bulk_rejects_repeats_in_request(self, db_session):
        with pytest.raises(AppError):
            await allowed_domain_service.bulk_create_domains(db_session, ["fast.edu.pk", "FAST.edu.pk"])

    async def test_bulk_create(self, db_session):
        created = await allowed_domain_service.bulk_create_domains(db_session, ["fast.edu.pk", "giki.edu.pk"])

        assert [d.domain for d in created] == ["fast.edu.pk", "giki.edu.pk"]

    async def test_update_to_existing_domain(self, db_session, campus_domain):
        other = await allowed_domain_service.create_domain(db_session, "fast.edu.pk")

        with pytest.raises(AppError):
            await allowed_domain_service.update_domain(db_session, other.id, domain="uni.edu.pk")

    async def test_validate_email_respects_active_flag(self, db_session, campus_domain):
        assert await allowed_domain_service.validate_email(db_session, "ali@uni.edu.pk") == (True, "uni.edu.pk")

        await allowed_domain_service.toggle_domain(db_session, campus_domain.id)

        assert await allowed_domain_service.validate_email(db_session, "ali@uni.edu.pk") == (False, "uni.edu.pk")
        assert await allowed_domain_service.list_active_domains(db_session) == []

    async def test_missing_domain(self, db_session):
        with pytest.raises(AppError) as exc:
            await allowed_domain_service.delete_domain(db_session, 404)

        assert exc.value.status_code == 404


class TestRegistrationAndLogin:

    async def test_register_with_campus_email(self, db_session, campus_domain):
        user = await user_service.register(db_session, "Ali@Uni.edu.pk", "Ali", TEST_PASSWORD)

        assert user.email == "ali@uni.edu.pk"
        assert user.password_hash != TEST_PASSWORD
        assert user.is_seller is False

    async def test_register_outside_campus(self, db_session, campus_domain):
        with pytest.raises(AppError) as exc:
            await user_service.register(db_session, "ali@gmail.com", "Ali", TEST_PASSWORD)

        assert exc.value.status_code == 403

    async def test_register_duplicate(self, db_session, campus_domain):
        await user_service.register(db_session, "ali@uni.edu.pk", "Ali", TEST_PASSWORD)

        with pytest.raises(AppError) as exc:
            await user_service.register(db_session, "ALI@uni.edu.pk", "Ali", TEST_PASSWORD)

        assert exc.value.status_code == 409

    async def test_login(self, db_session, buyer):
        user = await user_service.authenticate(db_session, "buyer@uni.edu.pk", TEST_PASSWORD)

        assert user.id == buyer.id

    async def test_login_wrong_password(self, db_session, buyer):
        with pytest.raises(AppError) as exc:
            await user_service.authenticate(db_session, "buyer@uni.edu.pk", "wrong-password")

        assert exc.value.status_code == 400
        assert exc.value.message == "Email or password is incorrect."

    async def test_login_inactive(self, db_session, buyer):
        buyer.is_active = False
        await db_session.commit()

        with pytest.raises(AppError) as exc:
            await user_service.authenticate(db_session, "buyer@uni.edu.pk", TEST_PASSWORD)

        assert exc.value.status_code == 403

    async def test_tokens_and_refresh(self, db_session, buyer):
        tokens = issue_tokens(buyer)

        access = verify_token(tokens["access_token"], "access")
        assert access["user_id"] == buyer.id
        assert access["role"] == "user"
        # An access token is not accepted as a refresh token
        assert verify_token(tokens["access_token"], "refresh") is None

        user = await user_service.refresh(db_session, tokens["refresh_token"])
        assert user.id == buyer.id

        with pytest.raises(AppError) as exc:
            await user_service.refresh(db_session, tokens["access_token"])
        assert exc.value.status_code == 401


class TestSellerOnboarding:

    async def _apply(self, db, user):
        return await seller_service.apply(db, user, SellerApply(store_name="Hostel Snacks"))

    async def test_apply_starts_pending(self, db_session, buyer):
        profile = await self._apply(db_session, buyer)

        assert profile.status == SellerStatus.PENDING
        assert profile.user_id == buyer.id

    async def test_apply_twice(self, db_session, buyer):
        await self._apply(db_session, buyer)

        with pytest.raises(AppError) as exc:
            await self._apply(db_session, buyer)

        assert exc.value.status_code == 400

    async def test_approve_makes_seller_and_wallet(self, db_session, buyer):
        profile = await self._apply(db_session, buyer)

        approved = await seller_service.approve(db_session, profile.id)

        assert approved.status == SellerStatus.APPROVED
        await db_session.refresh(buyer)
        assert buyer.is_seller is True
        wallet = (await db_session.execute(select(Wallet).where(Wallet.seller_id == buyer.id))).scalar_one()
        assert wallet.balance == 0

    async def test_approve_twice(self, db_session, buyer):
        profile = await self._apply(db_session, buyer)
        await seller_service.approve(db_session, profile.id)

        with pytest.raises(AppError) as exc:
            await seller_service.approve(db_session, profile.id)

        assert exc.value.status_code == 400

    async def test_suspend_revokes_seller_flag(self, db_session, seller):
        profile = await seller_service.get_my_profile(db_session, seller.id)

        suspended = await seller_service.suspend(db_session, profile.id)

        assert suspended.status == SellerStatus.SUSPENDED
        await db_session.refresh(seller)
        assert seller.is_seller is False

    async def test_update_after_rejection_resubmits(self, db_session, buyer):
        profile = await self._apply(db_session, buyer)
        await seller_service.reject(db_session, profile.id, "Store name is unclear")

        updated = await seller_service.update_my_profile(
            db_session, buyer.id, SellerUpdate(store_name="Hostel Snacks Block C")
        )

        assert updated.status == SellerStatus.PENDING
        assert updated.rejection_reason is None
        assert updated.store_name == "Hostel Snacks Block C"

    async def test_list_by_status(self, db_session, seller):
        other = await create_user(db_session, "applicant@uni.edu.pk")
        await self._apply(db_session, other)

        pending, total = await seller_service.list_sellers(db_session, SellerStatus.PENDING)

        assert total == 1
        assert pending[0].user_id == other.id
