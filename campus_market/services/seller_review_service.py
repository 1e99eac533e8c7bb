from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from campus_market.models.order import Order, OrderStatus
from campus_market.models.seller import SellerProfile, SellerStatus
from campus_market.models.seller_review import SellerReview
from campus_market.models.user import User, UserRole
from campus_market.schemas.seller_review import SellerReviewCreate
from campus_market.core.errors import AppError
from typing import List, Tuple
import logging

logger = logging.getLogger(__name__)


class SellerReviewService:
    """Buyer reviews of sellers and the rating kept on the seller profile"""

    @staticmethod
    async def _get_seller(db: AsyncSession, seller_id: int) -> User:
        result = await db.execute(select(User).where(User.id == seller_id))
        seller = result.scalar_one_or_none()
        if not seller or not seller.is_seller:
            raise AppError(404, "Seller not found")
        return seller

    @staticmethod
    async def _get_profile(db: AsyncSession, seller_id: int) -> SellerProfile:
        result = await db.execute(
            select(SellerProfile)
            .where(SellerProfile.user_id == seller_id)
            .execution_options(populate_existing=True)
        )
        profile = result.scalar_one_or_none()
        if not profile:
            raise AppError(404, "Seller profile not found")
        return profile

    @staticmethod
    async def _check_order(db: AsyncSession, order_id: int, reviewer: User, seller_id: int):
        result = await db.execute(select(Order).where(Order.id == order_id))
        order = result.scalar_one_or_none()
        if not order:
            raise AppError(404, "Order not found")
        if order.buyer_id != reviewer.id:
            raise AppError(403, "You can only review sellers for orders you placed")
        if order.seller_id != seller_id:
            raise AppError(400, "Order does not belong to this seller")
        if order.status != OrderStatus.DELIVERED:
            raise AppError(400, "You can only review sellers after order completion")

    @staticmethod
    async def _update_rating(db: AsyncSession, seller_id: int):
        stats = await db.execute(
            select(func.avg(SellerReview.rating), func.count(SellerReview.id))
            .where(SellerReview.seller_id == seller_id)
        )
        average, count = stats.one()

        profile = await SellerReviewService._get_profile(db, seller_id)
        profile.average_rating = round(float(average or 0), 2)
        profile.review_count = count or 0

    @staticmethod
    async def create_review(db: AsyncSession, reviewer: User, data: SellerReviewCreate) -> SellerReview:
        """
        Review a seller, optionally tied to one of the reviewer's delivered
        orders. One review per seller, or per seller and order when an
        order is given.
        """
        if not 1 <= data.rating <= 5:
            raise AppError(400, "Rating must be an integer between 1 and 5")

        await SellerReviewService._get_seller(db, data.seller_id)
        profile = await SellerReviewService._get_profile(db, data.seller_id)
        if profile.status != SellerStatus.APPROVED:
            raise AppError(400, "Cannot review a seller that is not approved")

        if reviewer.id == data.seller_id:
            raise AppError(400, "Sellers cannot review themselves")
        if reviewer.is_seller:
            raise AppError(403, "Sellers cannot review other sellers. Only buyers can submit reviews.")

        if data.order_id is not None:
            await SellerReviewService._check_order(db, data.order_id, reviewer, data.seller_id)

        duplicate = select(SellerReview.id).where(
            SellerReview.reviewer_id == reviewer.id,
            SellerReview.seller_id == data.seller_id
        )
        if data.order_id is not None:
            duplicate = duplicate.where(SellerReview.order_id == data.order_id)
        if (await db.execute(duplicate)).first():
            suffix = " for this order" if data.order_id is not None else ""
            raise AppError(400, f"You have already reviewed this seller{suffix}")

        review = SellerReview(
            seller_id=data.seller_id,
            reviewer_id=reviewer.id,
            order_id=data.order_id,
            rating=data.rating,
            comment=data.comment,
        )
        db.add(review)
        await db.flush()
        await SellerReviewService._update_rating(db, data.seller_id)
        await db.commit()
        await db.refresh(review)

        logger.info(f"Seller {data.seller_id} reviewed by user {reviewer.id}: {data.rating}/5")
        return review

    @staticmethod
    async def list_for_seller(
        db: AsyncSession,
        seller_id: int,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[SellerReview], int]:
        await SellerReviewService._get_seller(db, seller_id)

        query = select(SellerReview).where(SellerReview.seller_id == seller_id)
        total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
        result = await db.execute(
            query.order_by(SellerReview.created_at.desc(), SellerReview.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    @staticmethod
    async def delete_review(db: AsyncSession, review_id: int, user: User):
        result = await db.execute(select(SellerReview).where(SellerReview.id == review_id))
        review = result.scalar_one_or_none()
        if not review:
            raise AppError(404, "Review not found")
        if review.reviewer_id != user.id and user.role != UserRole.ADMIN:
            raise AppError(403, "You are not authorized to delete this review")

        seller_id = review.seller_id
        await db.delete(review)
        await db.flush()
        await SellerReviewService._update_rating(db, seller_id)
        await db.commit()
        logger.info(f"Review {review_id} of seller {seller_id} deleted by user {user.id}")

    @staticmethod
    async def get_rating(db: AsyncSession, seller_id: int) -> dict:
        profile = await SellerReviewService._get_profile(db, seller_id)
        return {
            "seller_id": seller_id,
            "average_rating": profile.average_rating,
            "review_count": profile.review_count,
        }


seller_review_service = SellerReviewService()
