"""
Domain models defined as Pydantic models.
These are pure data structures with validation.

Money amounts are ``Decimal`` values quantised to cents. Orders own their
line items, adjustments, shipments and payments; catalog records (variants,
shipping methods, payment methods, promotions) are referenced by id.
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Quantise a value to two decimal places, rounding half up."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderState(str, Enum):
    """Checkout progress of an order."""

    CART = "cart"
    ADDRESS = "address"
    DELIVERY = "delivery"
    PAYMENT = "payment"
    CONFIRM = "confirm"
    COMPLETE = "complete"
    CANCELED = "canceled"


CHECKOUT_FLOW: List[OrderState] = [
    OrderState.CART,
    OrderState.ADDRESS,
    OrderState.DELIVERY,
    OrderState.PAYMENT,
    OrderState.CONFIRM,
    OrderState.COMPLETE,
]


class PaymentState(str, Enum):
    CHECKOUT = "checkout"
    PROCESSING = "processing"
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    VOID = "void"
    INVALID = "invalid"


class OrderPaymentState(str, Enum):
    """Payment standing of a completed order."""

    BALANCE_DUE = "balance_due"
    PAID = "paid"
    CREDIT_OWED = "credit_owed"
    FAILED = "failed"
    VOID = "void"


class ShipmentState(str, Enum):
    PENDING = "pending"
    READY = "ready"


class Address(BaseModel):
    """Billing or shipping address.

    Addresses are value objects: two addresses with identical attributes
    compare equal regardless of which order they are attached to.
    """

    firstname: str
    lastname: str
    company: Optional[str] = None
    address1: str
    address2: Optional[str] = None
    city: str
    zipcode: str
    phone: str
    state_name: Optional[str] = None
    country_iso: str

    @field_validator(
        "firstname", "lastname", "address1", "city", "zipcode", "phone"
    )
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("can't be blank")
        return v.strip()

    @field_validator("country_iso")
    @classmethod
    def country_iso_must_be_two_letters(cls, v: str) -> str:
        v = v.strip().upper()
        if len(v) != 2 or not v.isalpha():
            raise ValueError("Country ISO code must be two letters")
        return v

    @property
    def full_name(self) -> str:
        return f"{self.firstname} {self.lastname}".strip()


class User(BaseModel):
    id: str
    email: str
    password_digest: str = Field(exclude=True)
    spree_api_key: Optional[str] = Field(default=None, exclude=True)
    admin: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("email")
    @classmethod
    def email_must_look_valid(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError("Email is invalid")
        return v


class Store(BaseModel):
    id: str
    name: str
    code: str
    default_currency: str = "USD"
    default: bool = False


class Variant(BaseModel):
    id: str
    sku: str
    name: str
    price: Decimal
    currency: str = "USD"

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Price must be positive")
        return to_money(v)


class LineItem(BaseModel):
    id: str
    variant_id: str
    quantity: int
    price: Decimal
    currency: str = "USD"

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Quantity must be positive")
        return v

    @field_validator("price")
    @classmethod
    def price_must_not_be_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Price must not be negative")
        return to_money(v)

    @property
    def amount(self) -> Decimal:
        return to_money(self.price * self.quantity)


class Calculator(BaseModel):
    """Computes the discount of a promotion action."""

    type: Literal["flat_rate", "flat_percent_item_total"] = "flat_rate"
    amount: Decimal = ZERO
    percent: Decimal = ZERO

    @field_validator("amount", "percent")
    @classmethod
    def must_not_be_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Calculator values must not be negative")
        return v


class PromotionCode(BaseModel):
    id: str
    value: str

    @field_validator("value")
    @classmethod
    def normalize_value(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("Promotion code can't be blank")
        return v


class Promotion(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    starts_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    usage_limit: Optional[int] = None
    per_code_usage_limit: Optional[int] = None
    min_item_total: Optional[Decimal] = None
    calculator: Calculator
    codes: List[PromotionCode] = Field(default_factory=list)

    def find_code(self, value: str) -> Optional[PromotionCode]:
        normalized = value.strip().lower()
        for code in self.codes:
            if code.value == normalized:
                return code
        return None


class Adjustment(BaseModel):
    """Promotion adjustment attached to an order.

    Amounts are negative; ineligible adjustments are kept on the order but
    do not count towards its totals.
    """

    id: str
    promotion_id: str
    promotion_code_id: Optional[str] = None
    label: str
    amount: Decimal = ZERO
    eligible: bool = True
    finalized: bool = False


class OrderPromotion(BaseModel):
    promotion_id: str
    promotion_code_id: Optional[str] = None


class ShippingMethod(BaseModel):
    id: str
    name: str
    code: Optional[str] = None
    zone_country_isos: List[str] = Field(default_factory=list)
    cost: Decimal = ZERO
    currency: str = "USD"

    @field_validator("zone_country_isos")
    @classmethod
    def upper_case_isos(cls, v: List[str]) -> List[str]:
        return [iso.strip().upper() for iso in v]

    def covers(self, country_iso: str) -> bool:
        return country_iso.upper() in self.zone_country_isos


class ShippingRate(BaseModel):
    shipping_method_id: str
    name: str
    cost: Decimal
    selected: bool = False


class Shipment(BaseModel):
    number: str
    state: ShipmentState = ShipmentState.PENDING
    shipping_rates: List[ShippingRate] = Field(default_factory=list)

    @property
    def selected_rate(self) -> Optional[ShippingRate]:
        for rate in self.shipping_rates:
            if rate.selected:
                return rate
        return None

    @property
    def cost(self) -> Decimal:
        rate = self.selected_rate
        return to_money(rate.cost) if rate else ZERO


class PaymentMethod(BaseModel):
    id: str
    name: str
    type: Literal["check"] = "check"
    active: bool = True
    auto_capture: bool = False


class Payment(BaseModel):
    id: str
    number: str
    payment_method_id: str
    amount: Optional[Decimal] = None
    state: PaymentState = PaymentState.CHECKOUT
    response_code: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("amount")
    @classmethod
    def amount_must_not_be_negative(
        cls, v: Optional[Decimal]
    ) -> Optional[Decimal]:
        if v is None:
            return v
        if v < 0:
            raise ValueError("Amount must not be negative")
        return to_money(v)

    @property
    def is_valid(self) -> bool:
        return self.state not in (
            PaymentState.FAILED,
            PaymentState.VOID,
            PaymentState.INVALID,
        )


class Order(BaseModel):
    id: str
    number: str
    state: OrderState = OrderState.CART
    email: Optional[str] = None
    user_id: Optional[str] = None
    guest_token: str
    store_id: Optional[str] = None
    currency: str = "USD"

    line_items: List[LineItem] = Field(default_factory=list)
    adjustments: List[Adjustment] = Field(default_factory=list)
    order_promotions: List[OrderPromotion] = Field(default_factory=list)
    shipments: List[Shipment] = Field(default_factory=list)
    payments: List[Payment] = Field(default_factory=list)
    bill_address: Optional[Address] = None
    ship_address: Optional[Address] = None

    item_total: Decimal = ZERO
    shipment_total: Decimal = ZERO
    promo_total: Decimal = ZERO
    adjustment_total: Decimal = ZERO
    payment_total: Decimal = ZERO
    total: Decimal = ZERO
    payment_state: Optional[OrderPaymentState] = None
    shipment_state: Optional[ShipmentState] = None

    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().lower()
        return v or None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.line_items)

    @property
    def outstanding_balance(self) -> Decimal:
        return to_money(self.total - self.payment_total)

    @property
    def payment_required(self) -> bool:
        return self.total > 0

    @property
    def promotion_ids(self) -> List[str]:
        return [op.promotion_id for op in self.order_promotions]

    @property
    def checkout_steps(self) -> List[str]:
        steps = [
            state.value
            for state in CHECKOUT_FLOW
            if state is not OrderState.CART
        ]
        if not self.payment_required:
            steps.remove(OrderState.PAYMENT.value)
        return steps

    def find_line_item(self, line_item_id: str) -> Optional[LineItem]:
        for item in self.line_items:
            if item.id == line_item_id:
                return item
        return None

    def find_line_item_by_variant(self, variant_id: str) -> Optional[LineItem]:
        for item in self.line_items:
            if item.variant_id == variant_id:
                return item
        return None

    def find_payment(self, payment_id: str) -> Optional[Payment]:
        for payment in self.payments:
            if payment.id == payment_id:
                return payment
        return None

    def has_promotion(self, promotion_id: str) -> bool:
        return promotion_id in self.promotion_ids
