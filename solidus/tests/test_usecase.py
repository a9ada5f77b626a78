"""
Tests for the order, line item, coupon, payment and checkout use cases.

Most tests run against the memory repositories seeded by the ``catalog``
fixture; repository wiring and persistence failures use MagicMocks specced
on the repository protocols.
"""

from decimal import Decimal
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest

from solidus.api.requests import LineItemParams, OrderParams
from solidus.domain import Order, OrderState, PaymentState
from solidus.errors import (
    CheckoutError,
    ExpectedTotalMismatchError,
    InvalidResourceError,
    ResourceNotFoundError,
)
from solidus.repos.memory import (
    MemoryOrderRepository,
    MemoryPaymentMethodRepository,
    MemoryPromotionRepository,
    MemoryShippingMethodRepository,
    MemoryStoreRepository,
    MemoryUserRepository,
    MemoryVariantRepository,
)
from solidus.repositories import (
    OrderRepository,
    PromotionRepository,
    StoreRepository,
    VariantRepository,
)
from solidus.tests.factories import AddressFactory, UserFactory
from solidus.usecase import (
    CheckoutUseCase,
    CouponUseCase,
    LineItemUseCase,
    OrderUseCase,
    PaymentUseCase,
    UserUseCase,
    hash_password,
)
from solidus.validation import RepositoryValidationError


@pytest.fixture
def order_use_case(
    order_repo: MemoryOrderRepository,
    variant_repo: MemoryVariantRepository,
    promotion_repo: MemoryPromotionRepository,
    store_repo: MemoryStoreRepository,
) -> OrderUseCase:
    return OrderUseCase(order_repo, variant_repo, promotion_repo, store_repo)


@pytest.fixture
def line_item_use_case(
    order_repo: MemoryOrderRepository,
    variant_repo: MemoryVariantRepository,
    promotion_repo: MemoryPromotionRepository,
) -> LineItemUseCase:
    return LineItemUseCase(order_repo, variant_repo, promotion_repo)


@pytest.fixture
def coupon_use_case(
    order_repo: MemoryOrderRepository,
    variant_repo: MemoryVariantRepository,
    promotion_repo: MemoryPromotionRepository,
) -> CouponUseCase:
    return CouponUseCase(order_repo, variant_repo, promotion_repo)


@pytest.fixture
def payment_use_case(
    order_repo: MemoryOrderRepository,
    variant_repo: MemoryVariantRepository,
    promotion_repo: MemoryPromotionRepository,
    payment_method_repo: MemoryPaymentMethodRepository,
) -> PaymentUseCase:
    return PaymentUseCase(
        order_repo, variant_repo, promotion_repo, payment_method_repo
    )


@pytest.fixture
def checkout_use_case(
    order_repo: MemoryOrderRepository,
    variant_repo: MemoryVariantRepository,
    promotion_repo: MemoryPromotionRepository,
    shipping_method_repo: MemoryShippingMethodRepository,
    payment_method_repo: MemoryPaymentMethodRepository,
) -> CheckoutUseCase:
    return CheckoutUseCase(
        order_repo,
        variant_repo,
        promotion_repo,
        shipping_method_repo,
        payment_method_repo,
    )


def full_params() -> OrderParams:
    return OrderParams(
        bill_address=AddressFactory(),
        ship_address=AddressFactory(),
        line_items=[
            LineItemParams(variant_id="variant-1", quantity=2),
            LineItemParams(variant_id="variant-2", quantity=2),
        ],
    )


class TestUserUseCase:
    @pytest.mark.asyncio
    async def test_create_user(self, user_repo: MemoryUserRepository) -> None:
        user = await UserUseCase(user_repo).create_user(
            "shopper@example.com", "secret123", "secret123"
        )

        assert user.id.startswith("user-")
        assert user.password_digest.startswith("pbkdf2_sha256$")
        assert "secret123" not in user.password_digest
        assert await user_repo.find_by_api_key(user.spree_api_key) == user

    @pytest.mark.asyncio
    async def test_create_user_collects_errors(
        self, user_repo: MemoryUserRepository
    ) -> None:
        with pytest.raises(InvalidResourceError) as exc_info:
            await UserUseCase(user_repo).create_user("nobody", "abc", "abd")

        assert set(exc_info.value.errors) == {
            "password",
            "password_confirmation",
            "email",
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", ["@example.com", "user@"])
    async def test_malformed_email_is_invalid(
        self, user_repo: MemoryUserRepository, email: str
    ) -> None:
        with pytest.raises(InvalidResourceError) as exc_info:
            await UserUseCase(user_repo).create_user(email, "secret123")

        assert exc_info.value.errors == {"email": ["is invalid"]}
        assert user_repo.storage_dict == {}

    @pytest.mark.asyncio
    async def test_get_missing_user(self, user_repo: MemoryUserRepository) -> None:
        with pytest.raises(ResourceNotFoundError):
            await UserUseCase(user_repo).get_user("user-missing")

    def test_hash_password_is_salted(self) -> None:
        assert hash_password("secret123") != hash_password("secret123")
        assert hash_password("secret123", "salt") == hash_password(
            "secret123", "salt"
        )


class TestOrderUseCase:
    @pytest.mark.asyncio
    async def test_create_order_for_user(
        self, order_use_case: OrderUseCase, catalog: Dict[str, Any]
    ) -> None:
        user = UserFactory(email="shopper@example.com")

        order = await order_use_case.create_order(user, full_params())

        assert order.user_id == user.id
        assert order.email == "shopper@example.com"
        assert order.store_id == "store-default"
        assert order.item_total == Decimal("600.00")
        assert order.item_count == 4

    @pytest.mark.asyncio
    async def test_line_item_without_id_or_variant_is_invalid(
        self, order_use_case: OrderUseCase, catalog: Dict[str, Any]
    ) -> None:
        order = await order_use_case.create_order(None)
        unvalidated = LineItemParams.model_construct(
            id=None, variant_id=None, quantity=2
        )

        with pytest.raises(InvalidResourceError) as exc_info:
            await order_use_case.update_order(
                order.number, OrderParams(line_items=[unvalidated])
            )

        assert "line_items" in exc_info.value.errors

    @pytest.mark.asyncio
    async def test_update_merges_and_sets_quantities(
        self, order_use_case: OrderUseCase, catalog: Dict[str, Any]
    ) -> None:
        order = await order_use_case.create_order(None, full_params())
        first = order.line_items[0]

        updated = await order_use_case.update_order(
            order.number,
            OrderParams(
                line_items=[
                    LineItemParams(id=first.id, quantity=5),
                    LineItemParams(variant_id="variant-2", quantity=1),
                ]
            ),
        )

        assert updated.find_line_item(first.id).quantity == 5  # type: ignore[union-attr]
        assert updated.find_line_item_by_variant("variant-2").quantity == 3  # type: ignore[union-attr]
        assert updated.item_total == Decimal("1100.00")

    @pytest.mark.asyncio
    async def test_changing_ship_address_restarts_checkout(
        self,
        order_use_case: OrderUseCase,
        checkout_use_case: CheckoutUseCase,
        catalog: Dict[str, Any],
    ) -> None:
        order = await order_use_case.create_order(
            UserFactory(), full_params()
        )
        order = await checkout_use_case.advance(order.number)
        assert order.state is OrderState.PAYMENT
        assert order.shipments

        order = await order_use_case.update_order(
            order.number,
            OrderParams(ship_address=AddressFactory(zipcode="10001")),
        )

        assert order.state is OrderState.ADDRESS
        assert order.shipments == []
        assert order.shipment_total == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_currency_mismatch_rejected(
        self,
        order_use_case: OrderUseCase,
        variant_repo: MemoryVariantRepository,
        catalog: Dict[str, Any],
    ) -> None:
        await variant_repo.save(
            catalog["variant_1"].model_copy(
                update={"id": "variant-eur", "currency": "EUR"}
            )
        )

        with pytest.raises(InvalidResourceError) as exc_info:
            await order_use_case.create_order(
                None,
                OrderParams(line_items=[LineItemParams(variant_id="variant-eur")]),
            )

        assert "currency" in exc_info.value.errors

    @pytest.mark.asyncio
    async def test_get_missing_order(self, order_use_case: OrderUseCase) -> None:
        with pytest.raises(ResourceNotFoundError):
            await order_use_case.get_order("R000000000")

    def test_rejects_invalid_repository(
        self,
        variant_repo: MemoryVariantRepository,
        promotion_repo: MemoryPromotionRepository,
        store_repo: MemoryStoreRepository,
    ) -> None:
        with pytest.raises(RepositoryValidationError):
            OrderUseCase(object(), variant_repo, promotion_repo, store_repo)  # type: ignore[arg-type]


class TestLineItemUseCase:
    @pytest.mark.asyncio
    async def test_quantity_zero_removes_line_item(
        self,
        order_use_case: OrderUseCase,
        line_item_use_case: LineItemUseCase,
        catalog: Dict[str, Any],
    ) -> None:
        order = await order_use_case.create_order(None, full_params())
        line_item_id = order.line_items[0].id

        order, line_item = await line_item_use_case.update_line_item(
            order.number, line_item_id, 0
        )

        assert line_item is None
        assert order.find_line_item(line_item_id) is None
        assert order.item_total == Decimal("400.00")

    @pytest.mark.asyncio
    async def test_non_positive_quantity_rejected(
        self,
        order_use_case: OrderUseCase,
        line_item_use_case: LineItemUseCase,
        catalog: Dict[str, Any],
    ) -> None:
        order = await order_use_case.create_order(None)

        with pytest.raises(InvalidResourceError):
            await line_item_use_case.add_line_item(order.number, "variant-1", 0)


class TestCouponUseCase:
    @pytest.mark.asyncio
    async def test_max_usage_counts_completed_orders(
        self,
        order_repo: MemoryOrderRepository,
        order_use_case: OrderUseCase,
        coupon_use_case: CouponUseCase,
        promotion_repo: MemoryPromotionRepository,
        catalog: Dict[str, Any],
    ) -> None:
        await promotion_repo.save(
            catalog["promotion"].model_copy(update={"usage_limit": 1})
        )
        first = await order_use_case.create_order(None, full_params())
        first, result = await coupon_use_case.apply_coupon_code(
            first.number, "foo"
        )
        assert result.successful
        first.completed_at = first.created_at
        first.state = OrderState.COMPLETE
        await order_repo.save(first)

        second = await order_use_case.create_order(None, full_params())
        second, result = await coupon_use_case.apply_coupon_code(
            second.number, "foo"
        )

        assert result.status_code == "coupon_code_max_usage"
        assert second.adjustments == []

    @pytest.mark.asyncio
    async def test_failed_coupon_is_not_saved(self) -> None:
        order_repo = MagicMock(spec=OrderRepository)
        order_repo.get = AsyncMock(
            return_value=Order(id="o", number="R1", guest_token="t")
        )
        order_repo.save = AsyncMock()
        promotion_repo = MagicMock(spec=PromotionRepository)
        promotion_repo.find_by_code = AsyncMock(return_value=None)
        use_case = CouponUseCase(
            order_repo, MagicMock(spec=VariantRepository), promotion_repo
        )

        _, result = await use_case.apply_coupon_code("R1", "missing")

        assert result.status_code == "coupon_code_not_found"
        order_repo.save.assert_not_called()


class TestPaymentUseCase:
    @pytest.mark.asyncio
    async def test_create_payment_without_amount(
        self,
        order_use_case: OrderUseCase,
        payment_use_case: PaymentUseCase,
        catalog: Dict[str, Any],
    ) -> None:
        order = await order_use_case.create_order(None, full_params())

        order, payment = await payment_use_case.create_payment(
            order.number, "pm-check"
        )

        assert payment.amount is None
        assert payment.state is PaymentState.CHECKOUT
        assert payment.number.startswith("P")
        assert order.payments == [payment]

    @pytest.mark.asyncio
    async def test_unknown_payment_method_rejected(
        self,
        order_use_case: OrderUseCase,
        payment_use_case: PaymentUseCase,
        catalog: Dict[str, Any],
    ) -> None:
        order = await order_use_case.create_order(None)

        with pytest.raises(InvalidResourceError):
            await payment_use_case.create_payment(order.number, "pm-missing")


class TestCheckoutUseCase:
    @pytest.mark.asyncio
    async def test_advance_and_complete(
        self,
        order_repo: MemoryOrderRepository,
        order_use_case: OrderUseCase,
        payment_use_case: PaymentUseCase,
        checkout_use_case: CheckoutUseCase,
        catalog: Dict[str, Any],
    ) -> None:
        order = await order_use_case.create_order(UserFactory(), full_params())
        await payment_use_case.create_payment(order.number, "pm-check")

        order = await checkout_use_case.advance(order.number)
        assert order.state is OrderState.CONFIRM
        order = await checkout_use_case.complete(
            order.number, expected_total=Decimal("610")
        )

        assert order.state is OrderState.COMPLETE
        stored = await order_repo.get(order.number)
        assert stored is not None
        assert stored.state is OrderState.COMPLETE
        assert stored.payments[0].amount == Decimal("610.00")

    @pytest.mark.asyncio
    async def test_expected_total_mismatch(
        self,
        order_use_case: OrderUseCase,
        checkout_use_case: CheckoutUseCase,
        catalog: Dict[str, Any],
    ) -> None:
        order = await order_use_case.create_order(UserFactory(), full_params())

        with pytest.raises(ExpectedTotalMismatchError) as exc_info:
            await checkout_use_case.complete(
                order.number, expected_total=Decimal("1.00")
            )

        assert exc_info.value.expected == "1.00"
        assert exc_info.value.actual == "600.00"

    @pytest.mark.asyncio
    async def test_failed_next_is_reported(
        self,
        order_use_case: OrderUseCase,
        checkout_use_case: CheckoutUseCase,
        catalog: Dict[str, Any],
    ) -> None:
        order = await order_use_case.create_order(None)

        with pytest.raises(CheckoutError):
            await checkout_use_case.next(order.number)

    @pytest.mark.asyncio
    async def test_update_and_next(
        self,
        order_use_case: OrderUseCase,
        checkout_use_case: CheckoutUseCase,
        catalog: Dict[str, Any],
    ) -> None:
        order = await order_use_case.create_order(
            UserFactory(),
            OrderParams(line_items=[LineItemParams(variant_id="variant-1")]),
        )

        order = await checkout_use_case.update_and_next(
            order.number, OrderParams(email="changed@example.com")
        )

        assert order.email == "changed@example.com"
        assert order.state is OrderState.ADDRESS


def test_store_repository_protocol_mock_is_accepted(
    variant_repo: MemoryVariantRepository,
    promotion_repo: MemoryPromotionRepository,
) -> None:
    use_case = OrderUseCase(
        MagicMock(spec=OrderRepository),
        variant_repo,
        promotion_repo,
        MagicMock(spec=StoreRepository),
    )
    assert use_case.store_repo is not None
