"""
Pytest configuration and fixtures shared by all tests
"""
import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-at-least-32-characters-long"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENFORCE_ALLOWED_DOMAINS"] = "true"
os.environ["WALLET_HOLD_DAYS"] = "7"
os.environ["DEFAULT_COMMISSION_RATE"] = "5.0"

import pytest
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from campus_market.database import Base, get_db
from campus_market.core.security import get_password_hash
from campus_market.models.user import User, UserRole
from campus_market.models.allowed_domain import AllowedDomain
from campus_market.models.category import Category
from campus_market.models.order import PaymentMethod
from campus_market.schemas.catalogue import ProductCreate, VariantCreate
from campus_market.schemas.order import OrderCreate, OrderItemCreate
from campus_market.schemas.seller import SellerApply
from campus_market.services.user_service import issue_tokens
from campus_market.services.seller_service import seller_service
from campus_market.services.catalogue_service import catalogue_service
from campus_market.services.order_service import order_service

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "correct-horse-battery"

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
    echo=False
)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app, sharing the test session; lifespan is not run"""
    from campus_market.main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def shared_session_maker(db_session: AsyncSession):
    """Stand-in for async_session_maker that hands out the test session"""

    @asynccontextmanager
    async def _session():
        yield db_session

    return _session


async def create_user(
    db: AsyncSession,
    email: str,
    name: str = "Test User",
    role: UserRole = UserRole.USER
) -> User:
    user = User(email=email, name=name, password_hash=get_password_hash(TEST_PASSWORD), role=role)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {issue_tokens(user)['access_token']}"}


async def make_seller(db: AsyncSession, email: str, store_name: str = "Dorm Deals") -> User:
    """Registered user with an approved seller profile and an empty wallet"""
    user = await create_user(db, email, name=store_name)
    profile = await seller_service.apply(
        db,
        user,
        SellerApply(
            store_name=store_name,
            payout_method="BANK_TRANSFER",
            payout_account_title=store_name,
            payout_account_number="PK00TEST0001",
            payout_bank_name="Campus Bank",
        )
    )
    await seller_service.approve(db, profile.id)
    await db.refresh(user)
    return user


async def make_product(
    db: AsyncSession,
    seller: User,
    sku: str,
    price: str = "100.00",
    stock: int = 10,
    category_id: int = None
):
    return await catalogue_service.create_product(
        db,
        seller,
        ProductCreate(
            name=f"Product {sku}",
            category_id=category_id,
            variants=[VariantCreate(sku=sku, price=Decimal(price), stock=stock)],
        )
    )


async def place_order(
    db: AsyncSession,
    buyer: User,
    variant_id: int,
    quantity: int = 1,
    payment_method: PaymentMethod = PaymentMethod.CARD
):
    orders = await order_service.create_orders(
        db,
        buyer,
        OrderCreate(
            items=[OrderItemCreate(variant_id=variant_id, quantity=quantity)],
            payment_method=payment_method,
        )
    )
    return orders[0]


@pytest.fixture
async def campus_domain(db_session: AsyncSession) -> AllowedDomain:
    domain = AllowedDomain(domain="uni.edu.pk", is_active=True)
    db_session.add(domain)
    await db_session.commit()
    await db_session.refresh(domain)
    return domain


@pytest.fixture
async def buyer(db_session: AsyncSession) -> User:
    return await create_user(db_session, "buyer@uni.edu.pk", name="Buyer")


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "admin@uni.edu.pk", name="Admin", role=UserRole.ADMIN)


@pytest.fixture
async def seller(db_session: AsyncSession) -> User:
    return await make_seller(db_session, "seller@uni.edu.pk")


@pytest.fixture
async def category(db_session: AsyncSession) -> Category:
    category = Category(name="Books", slug="books")
    db_session.add(category)
    await db_session.commit()
    await db_session.refresh(category)
    return category


@pytest.fixture
async def product(db_session: AsyncSession, seller: User, category: Category):
    """Active product with one variant at 100.00, 10 in stock, in the Books category"""
    return await make_product(db_session, seller, "BOOK-001", category_id=category.id)


@pytest.fixture
def buyer_headers(buyer: User) -> dict:
    return auth_headers(buyer)


@pytest.fixture
def seller_headers(seller: User) -> dict:
    return auth_headers(seller)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return auth_headers(admin_user)
