"""
Tests for commission rates and order commission calculation
"""
import pytest
from decimal import Decimal

from campus_market.core.errors import AppError
from campus_market.models.category import Category
from campus_market.schemas.commission import CommissionCreate
from campus_market.services.catalogue_service import catalogue_service
from campus_market.services.commission_service import commission_service
from campus_market.services.settings_service import settings_service, DEFAULT_COMMISSION_RATE_KEY
from campus_market.schemas.order import OrderCreate, OrderItemCreate
from campus_market.services.order_service import order_service
from tests.conftest import make_product


async def _category(db, name, slug) -> Category:
    category = Category(name=name, slug=slug)
    db.add(category)
    await db.commit()
    await db.refresh(category)
    return category


class TestCommissionRates:

    async def test_default_rate_from_config(self, db_session):
        assert await commission_service.get_default_rate(db_session) == 5.0

    async def test_default_rate_is_persisted(self, db_session):
        await commission_service.set_default_rate(db_session, 7.5)

        assert await commission_service.get_default_rate(db_session) == 7.5
        assert await settings_service.get_setting(db_session, DEFAULT_COMMISSION_RATE_KEY) == "7.5"

    async def test_default_rate_out_of_range(self, db_session):
        with pytest.raises(AppError) as exc:
            await commission_service.set_default_rate(db_session, 101)

        assert exc.value.status_code == 400

    async def test_category_without_commission_falls_back(self, db_session, category):
        commission = await commission_service.get_commission_by_category(db_session, category.id)

        assert commission["is_default"] is True
        assert commission["rate"] == 5.0
        assert commission["id"] is None

    async def test_create_and_lookup(self, db_session, category):
        created = await commission_service.create_commission(
            db_session, CommissionCreate(category_id=category.id, rate=10, description="Books")
        )

        assert created.category.slug == "books"
        found = await commission_service.get_commission_by_category(db_session, category.id)
        assert found.id == created.id
        assert found.rate == 10

    async def test_one_commission_per_category(self, db_session, category):
        await commission_service.create_commission(db_session, CommissionCreate(category_id=category.id, rate=10))

        with pytest.raises(AppError) as exc:
            await commission_service.create_commission(db_session, CommissionCreate(category_id=category.id, rate=12))

        assert exc.value.status_code == 400

    async def test_unknown_category(self, db_session):
        with pytest.raises(AppError) as exc:
            await commission_service.create_commission(db_session, CommissionCreate(category_id=999, rate=10))

        assert exc.value.status_code == 404

    async def test_bulk_create_rejects_duplicates_in_request(self, db_session, category):
        with pytest.raises(AppError) as exc:
            await commission_service.bulk_create_commissions(db_session, [
                CommissionCreate(category_id=category.id, rate=10),
                CommissionCreate(category_id=category.id, rate=11),
            ])

        assert exc.value.status_code == 400
        commissions, total = await commission_service.list_commissions(db_session)
        assert total == 0

    async def test_bulk_create(self, db_session, category):
        second = await _category(db_session, "Electronics", "electronics")

        created = await commission_service.bulk_create_commissions(db_session, [
            CommissionCreate(category_id=category.id, rate=10),
            CommissionCreate(category_id=second.id, rate=3),
        ])

        assert [c.rate for c in created] == [10, 3]

    async def test_update_and_delete(self, db_session, category):
        await commission_service.create_commission(db_session, CommissionCreate(category_id=category.id, rate=10))

        updated = await commission_service.update_commission(db_session, category.id, rate=15)
        assert updated.rate == 15

        await commission_service.delete_commission(db_session, category.id)
        with pytest.raises(AppError) as exc:
            await commission_service.update_commission(db_session, category.id, rate=20)
        assert exc.value.status_code == 404

    async def test_stats_and_category_split(self, db_session, category):
        second = await _category(db_session, "Electronics", "electronics")
        await commission_service.create_commission(db_session, CommissionCreate(category_id=category.id, rate=10))

        stats = await commission_service.commission_stats(db_session)
        without = await commission_service.categories_without_commission(db_session)
        with_commission = await commission_service.categories_with_commission(db_session)

        assert stats == {
            "total_commissions": 1,
            "average_rate": 10.0,
            "categories_with_commission": 1,
            "categories_without_commission": 1,
            "total_categories": 2,
        }
        assert [c.id for c in without] == [second.id]
        assert [c.category_id for c in with_commission] == [category.id]

    async def test_deleting_category_removes_its_commission(self, db_session):
        electronics = await _category(db_session, "Electronics", "electronics")
        await commission_service.create_commission(
            db_session, CommissionCreate(category_id=electronics.id, rate=10)
        )

        await catalogue_service.delete_category(db_session, electronics.id)

        assert await commission_service.find_by_category(db_session, electronics.id) is None
        stats = await commission_service.commission_stats(db_session)
        assert stats["total_commissions"] == 0
        assert stats["total_categories"] == 0

    async def test_category_with_products_keeps_its_commission(self, db_session, category, product):
        await commission_service.create_commission(db_session, CommissionCreate(category_id=category.id, rate=10))

        with pytest.raises(AppError) as exc:
            await catalogue_service.delete_category(db_session, category.id)

        assert exc.value.status_code == 400
        assert (await commission_service.find_by_category(db_session, category.id)).rate == 10


class TestOrderCommission:

    async def test_mixed_categories_and_uncategorised(self, db_session, buyer, seller, category):
        electronics = await _category(db_session, "Electronics", "electronics")
        await commission_service.create_commission(db_session, CommissionCreate(category_id=category.id, rate=10))
        await commission_service.create_commission(db_session, CommissionCreate(category_id=electronics.id, rate=2.5))

        book = await make_product(db_session, seller, "BOOK-1", price="40.00", category_id=category.id)
        charger = await make_product(db_session, seller, "CHG-1", price="19.99", category_id=electronics.id)
        misc = await make_product(db_session, seller, "MISC-1", price="3.33")

        orders = await order_service.create_orders(db_session, buyer, OrderCreate(items=[
            OrderItemCreate(variant_id=book.variants[0].id, quantity=2),
            OrderItemCreate(variant_id=charger.variants[0].id, quantity=1),
            OrderItemCreate(variant_id=misc.variants[0].id, quantity=3),
        ]))

        commission = await commission_service.calculate_order_commission(db_session, orders[0].id)

        # 80.00 * 10% + 19.99 * 2.5% + 9.99 * 5% = 8.00 + 0.49975 + 0.4995 = 8.99925
        assert commission == Decimal("9.00")

    async def test_unknown_order(self, db_session):
        with pytest.raises(AppError) as exc:
            await commission_service.calculate_order_commission(db_session, 42)

        assert exc.value.status_code == 404

    async def test_product_rate(self, db_session, seller, product, category):
        assert await commission_service.calculate_product_commission(db_session, product.id) == 5.0

        await commission_service.create_commission(db_session, CommissionCreate(category_id=category.id, rate=8))
        assert await commission_service.calculate_product_commission(db_session, product.id) == 8.0
