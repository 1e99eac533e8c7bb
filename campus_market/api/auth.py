from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from campus_market.database import get_db
from campus_market.config import settings
from campus_market.core.rate_limit import limiter
from campus_market.services.user_service import user_service, issue_tokens
from campus_market.schemas.auth import RegisterRequest, LoginRequest, RefreshRequest, Token
from campus_market.schemas.user import AuthResponse, UserResponse
import logging

logger = logging.getLogger(__name__)
router = APIRouter()


def _auth_response(user) -> AuthResponse:
    return AuthResponse(user=UserResponse.model_validate(user), **issue_tokens(user))


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_AUTH)
async def register(
    request: Request,
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db)
):
    """Register with a campus e-mail address"""
    user = await user_service.register(db, data.email, data.name, data.password)
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
@limiter.limit(settings.RATE_LIMIT_AUTH)
async def login(
    request: Request,
    data: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    user = await user_service.authenticate(db, data.email, data.password)
    logger.info(f"User logged in: {user.email}")
    return _auth_response(user)


@router.post("/refresh", response_model=Token)
async def refresh_token(
    data: RefreshRequest,
    db: AsyncSession = Depends(get_db)
):
    """Exchange a refresh token for a new token pair"""
    user = await user_service.refresh(db, data.refresh_token)
    return Token(**issue_tokens(user))
