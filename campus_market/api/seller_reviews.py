from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from campus_market.database import get_db
from campus_market.api.deps import get_current_user
from campus_market.models.user import User
from campus_market.services.seller_review_service import seller_review_service
from campus_market.schemas.seller_review import (
    SellerReviewCreate,
    SellerReviewResponse,
    SellerReviewList,
    SellerRating,
)

router = APIRouter()


@router.post("/", response_model=SellerReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_seller_review(
    data: SellerReviewCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Rate a seller; only buyers may review"""
    return await seller_review_service.create_review(db, current_user, data)


@router.get("/seller/{seller_id}", response_model=SellerReviewList)
async def list_seller_reviews(
    seller_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    reviews, total = await seller_review_service.list_for_seller(db, seller_id, skip, limit)
    return SellerReviewList(
        reviews=[SellerReviewResponse.model_validate(r) for r in reviews],
        total=total,
        page=skip // limit + 1,
        page_size=limit
    )


@router.get("/seller/{seller_id}/rating", response_model=SellerRating)
async def get_seller_rating(seller_id: int, db: AsyncSession = Depends(get_db)):
    return await seller_review_service.get_rating(db, seller_id)


@router.delete("/{review_id}")
async def delete_seller_review(
    review_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await seller_review_service.delete_review(db, review_id, current_user)
    return {"message": "Review deleted"}
