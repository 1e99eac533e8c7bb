from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from campus_market.models.user import User
from campus_market.core.errors import AppError
from campus_market.core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    verify_password,
    verify_token,
)
from campus_market.config import settings
from campus_market.services.allowed_domain_service import allowed_domain_service
from typing import Optional
import logging

logger = logging.getLogger(__name__)


def issue_tokens(user: User) -> dict:
    claims = {"user_id": user.id, "role": user.role.value}
    return {
        "access_token": create_access_token(claims),
        "refresh_token": create_refresh_token(claims),
        "token_type": "bearer",
    }


class UserService:
    """Registration, login and user lookups"""

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
        """Get user by ID"""
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Optional[User]:
        """Get user by email"""
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def register(db: AsyncSession, email: str, name: str, password: str) -> User:
        """Create a user account; the e-mail must belong to a campus domain"""
        email = email.lower()

        if settings.ENFORCE_ALLOWED_DOMAINS:
            is_valid, domain = await allowed_domain_service.validate_email(db, email)
            if not is_valid:
                logger.warning(f"Registration rejected for domain {domain}")
                raise AppError(403, f"Email domain {domain or ''} is not allowed for registration.")

        if await UserService.get_by_email(db, email):
            raise AppError(409, "User with this email already exists")

        user = User(email=email, name=name, password_hash=get_password_hash(password))
        db.add(user)
        await db.commit()
        await db.refresh(user)
        logger.info(f"User registered: {user.email}")
        return user

    @staticmethod
    async def authenticate(db: AsyncSession, email: str, password: str) -> User:
        user = await UserService.get_by_email(db, email)
        if not user or not verify_password(password, user.password_hash):
            raise AppError(400, "Email or password is incorrect.")
        if not user.is_active:
            raise AppError(403, "Account is disabled")
        return user

    @staticmethod
    async def refresh(db: AsyncSession, refresh_token: str) -> User:
        payload = verify_token(refresh_token, "refresh")
        if not payload or not payload.get("user_id"):
            raise AppError(401, "Session expired. Please log in again.")

        user = await UserService.get_by_id(db, payload["user_id"])
        if not user or not user.is_active:
            raise AppError(401, "Session expired. Please log in again.")
        return user


user_service = UserService()
