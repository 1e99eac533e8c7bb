"""
Script to create an admin user, or promote an existing one

Usage:
    python scripts/create_admin.py <email> [password]

Example:
    python scripts/create_admin.py admin@uni.edu.pk 'a-strong-password'

The password is only needed when the account does not exist yet.
Campus domain rules do not apply to accounts created here.
"""
import asyncio
import sys
from sqlalchemy import select
from campus_market.database import init_db, close_db, async_session_maker
from campus_market.models.user import User, UserRole
from campus_market.core.security import create_access_token, get_password_hash
from campus_market.config import settings


async def make_admin(email: str, password: str = None):
    """Make user admin by email"""
    print("Connecting to database...")
    print(f"   Database: {settings.DATABASE_URL.split('@')[-1] if '@' in settings.DATABASE_URL else 'local'}")

    await init_db()

    async with async_session_maker() as session:
        result = await session.execute(select(User).where(User.email == email.lower()))
        user = result.scalar_one_or_none()

        if not user:
            if not password:
                print(f"User with email {email} not found!")
                print("Pass a password to create the account")
                return
            user = User(
                email=email.lower(),
                name=email.split("@")[0],
                password_hash=get_password_hash(password),
            )
            session.add(user)

        user.role = UserRole.ADMIN
        await session.commit()
        await session.refresh(user)

        print(f"User {user.email} is now ADMIN")
        print(f"   ID: {user.id}")
        print(f"   Name: {user.name}")

        token = create_access_token({"user_id": user.id, "role": user.role.value})
        print("\nAccess token for Swagger UI:")
        print(f"   Bearer {token}")

    await close_db()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python scripts/create_admin.py <email> [password]")
        sys.exit(1)

    asyncio.run(make_admin(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None))
