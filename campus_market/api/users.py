from fastapi import APIRouter, Depends
from campus_market.api.deps import get_current_user
from campus_market.models.user import User
from campus_market.schemas.user import UserResponse

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information"""
    return current_user
