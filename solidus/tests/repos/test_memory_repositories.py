"""
Tests for the in-memory repository implementations.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from solidus.domain import Order, OrderPromotion, OrderState
from solidus.repos.memory import (
    MemoryOrderRepository,
    MemoryPromotionRepository,
    MemoryStoreRepository,
    MemoryUserRepository,
)
from solidus.tests.factories import (
    OrderFactory,
    PromotionFactory,
    StoreFactory,
    UserFactory,
)

COMPLETED_AT = datetime(2018, 6, 1, tzinfo=timezone.utc)


def completed_order(**kwargs: Any) -> Order:
    return OrderFactory(
        state=OrderState.COMPLETE, completed_at=COMPLETED_AT, **kwargs
    )


class TestMemoryOrderRepository:
    @pytest.mark.asyncio
    async def test_generate_number_format(
        self, order_repo: MemoryOrderRepository
    ) -> None:
        number = await order_repo.generate_number()

        assert re.fullmatch(r"R\d{9}", number)

    @pytest.mark.asyncio
    async def test_saved_orders_are_copies(
        self, order_repo: MemoryOrderRepository
    ) -> None:
        order = OrderFactory()
        await order_repo.save(order)

        order.email = "changed@example.com"
        stored = await order_repo.get(order.number)
        assert stored is not None
        assert stored.email == "spree@example.com"

        stored.email = "again@example.com"
        reread = await order_repo.get(order.number)
        assert reread is not None
        assert reread.email == "spree@example.com"

    @pytest.mark.asyncio
    async def test_get_unknown_number(
        self, order_repo: MemoryOrderRepository
    ) -> None:
        assert await order_repo.get("R000000000") is None

    @pytest.mark.asyncio
    async def test_list_all_sorted_by_creation(
        self, order_repo: MemoryOrderRepository
    ) -> None:
        now = datetime.now(timezone.utc)
        newer = OrderFactory(created_at=now)
        older = OrderFactory(created_at=now - timedelta(hours=1))
        await order_repo.save(newer)
        await order_repo.save(older)

        orders = await order_repo.list_all()

        assert [o.number for o in orders] == [older.number, newer.number]

    @pytest.mark.asyncio
    async def test_list_for_user(
        self, order_repo: MemoryOrderRepository
    ) -> None:
        await order_repo.save(OrderFactory(user_id="user-a"))
        await order_repo.save(OrderFactory(user_id="user-b"))

        orders = await order_repo.list_for_user("user-a")

        assert len(orders) == 1
        assert orders[0].user_id == "user-a"

    @pytest.mark.asyncio
    async def test_count_promotion_usage(
        self, order_repo: MemoryOrderRepository
    ) -> None:
        promo = OrderPromotion(
            promotion_id="promo-foo", promotion_code_id="code-foo"
        )
        counted = completed_order(order_promotions=[promo])
        await order_repo.save(counted)
        await order_repo.save(
            completed_order(
                order_promotions=[OrderPromotion(promotion_id="promo-foo")]
            )
        )
        # Carts do not count towards usage
        await order_repo.save(OrderFactory(order_promotions=[promo]))

        assert await order_repo.count_promotion_usage("promo-foo") == 2
        assert (
            await order_repo.count_promotion_usage("promo-foo", "code-foo")
            == 1
        )
        assert (
            await order_repo.count_promotion_usage(
                "promo-foo", excluded_number=counted.number
            )
            == 1
        )
        assert await order_repo.count_promotion_usage("promo-bar") == 0


class TestMemoryCatalogRepositories:
    @pytest.mark.asyncio
    async def test_find_promotion_by_code_is_case_insensitive(
        self, promotion_repo: MemoryPromotionRepository
    ) -> None:
        await promotion_repo.save(PromotionFactory())

        found = await promotion_repo.find_by_code("FOO")

        assert found is not None
        assert found.id == "promo-foo"
        assert await promotion_repo.find_by_code("bar") is None

    @pytest.mark.asyncio
    async def test_default_store(
        self, store_repo: MemoryStoreRepository
    ) -> None:
        assert await store_repo.get_default() is None

        await store_repo.save(StoreFactory(id="store-other", default=False))
        fallback = await store_repo.get_default()
        assert fallback is not None
        assert fallback.id == "store-other"

        await store_repo.save(StoreFactory())
        store = await store_repo.get_default()
        assert store is not None
        assert store.id == "store-default"


class TestMemoryUserRepository:
    @pytest.mark.asyncio
    async def test_find_by_api_key(
        self, user_repo: MemoryUserRepository
    ) -> None:
        user = UserFactory(spree_api_key="secret-key")
        await user_repo.save(user)

        found = await user_repo.find_by_api_key("secret-key")

        assert found is not None
        assert found.id == user.id
        assert await user_repo.find_by_api_key("") is None
        assert await user_repo.find_by_api_key("other-key") is None

    @pytest.mark.asyncio
    async def test_find_by_email_normalizes(
        self, user_repo: MemoryUserRepository
    ) -> None:
        user = UserFactory(email="shopper@example.com")
        await user_repo.save(user)

        found = await user_repo.find_by_email("  Shopper@Example.com ")

        assert found is not None
        assert found.id == user.id

    @pytest.mark.asyncio
    async def test_generated_ids_are_unique(
        self, user_repo: MemoryUserRepository
    ) -> None:
        first = await user_repo.generate_id()
        second = await user_repo.generate_id()

        assert first.startswith("user-")
        assert first != second
