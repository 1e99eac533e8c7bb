from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List


class SellerReviewCreate(BaseModel):
    seller_id: int
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5")
    comment: Optional[str] = Field(None, max_length=2000)
    order_id: Optional[int] = None


class SellerReviewResponse(BaseModel):
    id: int
    seller_id: int
    reviewer_id: int
    order_id: Optional[int] = None
    rating: int
    comment: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class SellerReviewList(BaseModel):
    reviews: List[SellerReviewResponse]
    total: int
    page: int
    page_size: int


class SellerRating(BaseModel):
    seller_id: int
    average_rating: float
    review_count: int
