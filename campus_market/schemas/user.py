from pydantic import BaseModel, EmailStr
from datetime import datetime
from campus_market.models.user import UserRole
from campus_market.schemas.auth import Token


class UserResponse(BaseModel):
    id: int
    email: EmailStr
    name: str
    role: UserRole
    is_seller: bool
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(Token):
    user: UserResponse
