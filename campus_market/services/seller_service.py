from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from campus_market.models.seller import SellerProfile, SellerStatus
from campus_market.models.user import User
from campus_market.schemas.seller import SellerApply, SellerUpdate
from campus_market.services.wallet_service import wallet_service
from campus_market.core.errors import AppError
from typing import Optional, List, Tuple
import logging

logger = logging.getLogger(__name__)


class SellerService:
    """Seller onboarding: application, review and profile upkeep"""

    @staticmethod
    async def get_by_user_id(db: AsyncSession, user_id: int) -> Optional[SellerProfile]:
        result = await db.execute(select(SellerProfile).where(SellerProfile.user_id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_profile(db: AsyncSession, profile_id: int) -> SellerProfile:
        result = await db.execute(select(SellerProfile).where(SellerProfile.id == profile_id))
        profile = result.scalar_one_or_none()
        if not profile:
            raise AppError(404, "Seller profile not found")
        return profile

    @staticmethod
    async def apply(db: AsyncSession, user: User, data: SellerApply) -> SellerProfile:
        """Submit a seller application for admin review"""
        if await SellerService.get_by_user_id(db, user.id):
            raise AppError(
                400,
                "You already have a seller profile. Please update your existing profile instead."
            )
        if user.is_seller:
            raise AppError(400, "You are already a seller")

        profile = SellerProfile(user_id=user.id, status=SellerStatus.PENDING, **data.model_dump())
        db.add(profile)
        await db.commit()
        await db.refresh(profile)
        logger.info(f"Seller application submitted by user {user.id}: {profile.store_name}")
        return profile

    @staticmethod
    async def get_my_profile(db: AsyncSession, user_id: int) -> SellerProfile:
        profile = await SellerService.get_by_user_id(db, user_id)
        if not profile:
            raise AppError(404, "Seller profile not found")
        return profile

    @staticmethod
    async def update_my_profile(db: AsyncSession, user_id: int, data: SellerUpdate) -> SellerProfile:
        profile = await SellerService.get_my_profile(db, user_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(profile, field, value)

        # Editing a rejected application resubmits it
        if profile.status == SellerStatus.REJECTED:
            profile.status = SellerStatus.PENDING
            profile.rejection_reason = None
            logger.info(f"Seller profile {profile.id} resubmitted after rejection")

        await db.commit()
        await db.refresh(profile)
        return profile

    @staticmethod
    async def list_sellers(
        db: AsyncSession,
        status: Optional[SellerStatus] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[SellerProfile], int]:
        query = select(SellerProfile)
        if status:
            query = query.where(SellerProfile.status == status)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await db.execute(count_query)).scalar() or 0

        result = await db.execute(query.order_by(SellerProfile.created_at.desc()).offset(skip).limit(limit))
        return list(result.scalars().all()), total

    @staticmethod
    async def _set_status(
        db: AsyncSession,
        profile_id: int,
        status: SellerStatus,
        is_seller: bool,
        reason: Optional[str] = None
    ) -> SellerProfile:
        profile = await SellerService.get_profile(db, profile_id)
        if profile.status == status:
            raise AppError(400, f"Seller is already {status.value.lower()}")

        user_result = await db.execute(select(User).where(User.id == profile.user_id))
        user = user_result.scalar_one()

        profile.status = status
        profile.rejection_reason = reason
        user.is_seller = is_seller
        if status == SellerStatus.APPROVED:
            await wallet_service.get_or_create_wallet(db, user.id)

        await db.commit()
        await db.refresh(profile)
        logger.info(f"Seller profile {profile.id} (user {user.id}) is now {status.value}")
        return profile

    @staticmethod
    async def approve(db: AsyncSession, profile_id: int) -> SellerProfile:
        return await SellerService._set_status(db, profile_id, SellerStatus.APPROVED, True)

    @staticmethod
    async def reject(db: AsyncSession, profile_id: int, reason: str) -> SellerProfile:
        return await SellerService._set_status(db, profile_id, SellerStatus.REJECTED, False, reason)

    @staticmethod
    async def suspend(db: AsyncSession, profile_id: int) -> SellerProfile:
        return await SellerService._set_status(db, profile_id, SellerStatus.SUSPENDED, False)


seller_service = SellerService()
