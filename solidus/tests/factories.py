"""
Test factories for creating domain objects using factory_boy.

Defaults mirror the checkout scenario the API tests walk through: two
variants priced 100 and 200, a US shipping method costing 10, a check
payment method and a flat 10 promotion with code ``foo``.

Design decisions documented:
- Money values are Decimals quantised to cents
- Timestamps are UTC timezone-aware
- Orders start in ``cart`` with no line items; helpers add what a test needs
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, List, Optional

from factory.base import Factory
from factory.declarations import LazyFunction, Sequence, SubFactory
from factory.faker import Faker

from solidus.domain import (
    Address,
    Calculator,
    LineItem,
    Order,
    Payment,
    PaymentMethod,
    Promotion,
    PromotionCode,
    ShippingMethod,
    Store,
    User,
    Variant,
)


class AddressFactory(Factory):
    class Meta:
        model = Address

    firstname = "John"
    lastname = "Doe"
    address1 = "10 Lovely Street"
    address2 = "Northwest"
    city = "Herndon"
    zipcode = "35005"
    phone = "555-555-0199"
    state_name = "Alabama"
    country_iso = "US"


class UserFactory(Factory):
    class Meta:
        model = User

    id = Sequence(lambda n: f"user-{n}")
    email = Faker("email")
    password_digest = "pbkdf2_sha256$1$salt$digest"
    spree_api_key = Faker("sha1")
    admin = False


class StoreFactory(Factory):
    class Meta:
        model = Store

    id = "store-default"
    name = "Test Store"
    code = "test"
    default_currency = "USD"
    default = True


class VariantFactory(Factory):
    class Meta:
        model = Variant

    id = Sequence(lambda n: f"variant-{n}")
    sku = Sequence(lambda n: f"SKU-{n:04d}")
    name = Faker("word")
    price = Decimal("100.00")


class ShippingMethodFactory(Factory):
    class Meta:
        model = ShippingMethod

    id = Sequence(lambda n: f"ship-{n}")
    name = "UPS Ground"
    zone_country_isos = ["US"]
    cost = Decimal("10.00")


class PaymentMethodFactory(Factory):
    class Meta:
        model = PaymentMethod

    id = "pm-check"
    name = "Check"
    type = "check"
    active = True
    auto_capture = False


class CalculatorFactory(Factory):
    class Meta:
        model = Calculator

    type = "flat_rate"
    amount = Decimal("10.00")


class PromotionFactory(Factory):
    class Meta:
        model = Promotion

    id = "promo-foo"
    name = "Ten off"
    calculator = SubFactory(CalculatorFactory)
    codes = LazyFunction(lambda: [PromotionCode(id="code-foo", value="foo")])


class LineItemFactory(Factory):
    class Meta:
        model = LineItem

    id = Sequence(lambda n: f"li-{n}")
    variant_id = "variant-1"
    quantity = 1
    price = Decimal("100.00")


class PaymentFactory(Factory):
    class Meta:
        model = Payment

    id = Sequence(lambda n: f"pay-{n}")
    number = Sequence(lambda n: f"P{n:08d}")
    payment_method_id = "pm-check"
    amount = None


class OrderFactory(Factory):
    class Meta:
        model = Order

    id = Sequence(lambda n: f"order-{n}")
    number = Sequence(lambda n: f"R{n:09d}")
    email = "spree@example.com"
    guest_token = Faker("uuid4")
    currency = "USD"
    created_at = LazyFunction(lambda: datetime.now(timezone.utc))
    updated_at = LazyFunction(lambda: datetime.now(timezone.utc))


def order_with_items(
    prices: Optional[List[str]] = None, quantity: int = 2, **kwargs: Any
) -> Order:
    """Order holding one line item per price, each with ``quantity``."""
    prices = prices or ["100.00", "200.00"]
    line_items = [
        LineItemFactory(
            id=f"li-{i}",
            variant_id=f"variant-{i}",
            price=Decimal(price),
            quantity=quantity,
        )
        for i, price in enumerate(prices, 1)
    ]
    return OrderFactory(line_items=line_items, **kwargs)  # type: ignore[no-any-return]
