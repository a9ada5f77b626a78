"""
usecase logic must be clean, without direct dependencies.
dependencies are injected via repository instances.

Every use case that changes an order follows the same sequence: load the
order by number, apply the change, recalculate totals with the
OrderUpdater, save. Authorization is the API layer's job; use cases assume
the caller may act on the order.
"""

import hashlib
import logging
import secrets
import uuid
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from solidus.api.requests import LineItemParams, OrderParams
from solidus.checkout import CheckoutStateMachine
from solidus.domain import (
    LineItem,
    Order,
    OrderState,
    Payment,
    PaymentMethod,
    Promotion,
    User,
    to_money,
    utcnow,
)
from solidus.errors import (
    ExpectedTotalMismatchError,
    InvalidResourceError,
    ResourceNotFoundError,
)
from solidus.order_updater import OrderUpdater
from solidus.payments import PaymentProcessor
from solidus.promotions import CouponHandler, CouponResult
from solidus.repositories import (
    OrderRepository,
    PaymentMethodRepository,
    PromotionRepository,
    ShippingMethodRepository,
    StoreRepository,
    UserRepository,
    VariantRepository,
)
from solidus.validation import (
    ensure_order_repository,
    ensure_payment_method_repository,
    ensure_promotion_repository,
    ensure_shipping_method_repository,
    ensure_store_repository,
    ensure_user_repository,
    ensure_variant_repository,
)

logger = logging.getLogger(__name__)

PASSWORD_ITERATIONS = 120_000
ORDER_COMPLETE = "Order is already complete and cannot be changed"


def hash_password(password: str, salt: Optional[str] = None) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"),
        PASSWORD_ITERATIONS,
    )
    return f"pbkdf2_sha256${PASSWORD_ITERATIONS}${salt}${digest.hex()}"


class UserUseCase:
    """Registration and API key resolution for API users."""

    def __init__(self, user_repo: UserRepository) -> None:
        self.user_repo = ensure_user_repository(user_repo)

    async def create_user(
        self,
        email: str,
        password: str,
        password_confirmation: Optional[str] = None,
    ) -> User:
        errors: Dict[str, List[str]] = {}
        if not 6 <= len(password) <= 128:
            errors["password"] = ["must be between 6 and 128 characters"]
        if (
            password_confirmation is not None
            and password_confirmation != password
        ):
            errors["password_confirmation"] = ["doesn't match Password"]
        if "@" not in email:
            errors["email"] = ["is invalid"]
        elif await self.user_repo.find_by_email(email) is not None:
            errors["email"] = ["has already been taken"]
        if errors:
            raise InvalidResourceError(errors)

        try:
            user = User(
                id=await self.user_repo.generate_id(),
                email=email,
                password_digest=hash_password(password),
                spree_api_key=secrets.token_hex(24),
            )
        except ValidationError as e:
            logger.info(
                "Rejected user registration",
                extra={"error_count": e.error_count()},
            )
            raise InvalidResourceError(
                {
                    str(error["loc"][0]): ["is invalid"]
                    for error in e.errors()
                    if error["loc"]
                }
            ) from e
        await self.user_repo.save(user)
        logger.info("User created", extra={"user_id": user.id})
        return user

    async def get_user(self, user_id: str) -> User:
        user = await self.user_repo.get(user_id)
        if user is None:
            raise ResourceNotFoundError("User", user_id)
        return user

    async def authenticate_api_key(self, api_key: str) -> Optional[User]:
        return await self.user_repo.find_by_api_key(api_key)


class _OrderUseCaseBase:
    """Loading, editing and saving orders."""

    def __init__(
        self,
        order_repo: OrderRepository,
        variant_repo: VariantRepository,
        promotion_repo: PromotionRepository,
    ) -> None:
        # Validate at construction time for early error detection
        self.order_repo = ensure_order_repository(order_repo)
        self.variant_repo = ensure_variant_repository(variant_repo)
        self.promotion_repo = ensure_promotion_repository(promotion_repo)
        self.updater = OrderUpdater()

    async def get_order(self, number: str) -> Order:
        order = await self.order_repo.get(number)
        if order is None:
            raise ResourceNotFoundError("Order", number)
        return order

    async def _promotions_for(self, order: Order) -> Dict[str, Promotion]:
        promotions = {}
        for promotion_id in order.promotion_ids:
            promotion = await self.promotion_repo.get(promotion_id)
            if promotion is not None:
                promotions[promotion_id] = promotion
        return promotions

    async def _recalculate_and_save(self, order: Order) -> Order:
        self.updater.update(order, await self._promotions_for(order))
        await self.order_repo.save(order)
        return order

    @staticmethod
    def _ensure_editable(order: Order) -> None:
        if order.is_completed or order.state is OrderState.CANCELED:
            raise InvalidResourceError({"base": [ORDER_COMPLETE]})

    @staticmethod
    def _restart_checkout(order: Order) -> None:
        """Drop proposed shipments after the order's contents change."""
        if order.shipments and not order.is_completed:
            order.shipments = []
            order.state = OrderState.ADDRESS
            logger.debug(
                "Checkout restarted at address",
                extra={"order_number": order.number},
            )

    async def _add_variant(
        self, order: Order, variant_id: str, quantity: int
    ) -> LineItem:
        if quantity <= 0:
            raise InvalidResourceError({"quantity": ["must be greater than 0"]})
        variant = await self.variant_repo.get(variant_id)
        if variant is None:
            raise ResourceNotFoundError("Variant", variant_id)
        if variant.currency != order.currency:
            raise InvalidResourceError(
                {"currency": ["must match order currency"]}
            )

        line_item = order.find_line_item_by_variant(variant_id)
        if line_item is not None:
            line_item.quantity += quantity
        else:
            line_item = LineItem(
                id=f"li-{uuid.uuid4()}",
                variant_id=variant.id,
                quantity=quantity,
                price=variant.price,
                currency=variant.currency,
            )
            order.line_items.append(line_item)
        self._restart_checkout(order)
        return line_item

    def _set_quantity(
        self, order: Order, line_item_id: str, quantity: int
    ) -> Optional[LineItem]:
        line_item = order.find_line_item(line_item_id)
        if line_item is None:
            raise ResourceNotFoundError("LineItem", line_item_id)
        if quantity < 0:
            raise InvalidResourceError(
                {"quantity": ["must be greater than or equal to 0"]}
            )
        if quantity == 0:
            order.line_items.remove(line_item)
            line_item = None
        else:
            line_item.quantity = quantity
        self._restart_checkout(order)
        return line_item

    async def _apply_line_items(
        self, order: Order, items: List[LineItemParams]
    ) -> None:
        for item in items:
            if item.id is not None:
                self._set_quantity(order, item.id, item.quantity)
            elif item.variant_id is not None:
                await self._add_variant(order, item.variant_id, item.quantity)
            else:
                raise InvalidResourceError(
                    {"line_items": ["require an id or a variant_id"]}
                )

    async def _apply_params(self, order: Order, params: OrderParams) -> None:
        if params.email is not None:
            order.email = params.email
        if params.bill_address is not None:
            order.bill_address = params.bill_address
        if params.ship_address is not None:
            if params.ship_address != order.ship_address:
                self._restart_checkout(order)
            order.ship_address = params.ship_address
        if params.line_items:
            await self._apply_line_items(order, params.line_items)


class OrderUseCase(_OrderUseCaseBase):
    def __init__(
        self,
        order_repo: OrderRepository,
        variant_repo: VariantRepository,
        promotion_repo: PromotionRepository,
        store_repo: StoreRepository,
    ) -> None:
        super().__init__(order_repo, variant_repo, promotion_repo)
        self.store_repo = ensure_store_repository(store_repo)

    async def create_order(
        self, user: Optional[User], params: Optional[OrderParams] = None
    ) -> Order:
        """Create a cart, optionally with addresses and line items.

        The order belongs to ``user`` and takes its email; guest orders
        are reachable through their guest token only.
        """
        store = await self.store_repo.get_default()
        order = Order(
            id=await self.order_repo.generate_id(),
            number=await self.order_repo.generate_number(),
            guest_token=secrets.token_urlsafe(16),
            user_id=user.id if user else None,
            email=user.email if user else None,
            store_id=store.id if store else None,
            currency=store.default_currency if store else "USD",
        )
        if params is not None:
            await self._apply_params(order, params)

        await self._recalculate_and_save(order)
        logger.info(
            "Order created",
            extra={
                "order_number": order.number,
                "user_id": order.user_id,
                "line_item_count": len(order.line_items),
            },
        )
        return order

    async def update_order(self, number: str, params: OrderParams) -> Order:
        order = await self.get_order(number)
        self._ensure_editable(order)
        await self._apply_params(order, params)
        return await self._recalculate_and_save(order)

    async def empty_order(self, number: str) -> Order:
        order = await self.get_order(number)
        self._ensure_editable(order)
        order.line_items = []
        order.adjustments = []
        order.order_promotions = []
        order.shipments = []
        order.state = OrderState.CART
        return await self._recalculate_and_save(order)

    async def list_orders(self) -> List[Order]:
        return await self.order_repo.list_all()

    async def list_user_orders(self, user_id: str) -> List[Order]:
        return await self.order_repo.list_for_user(user_id)


class LineItemUseCase(_OrderUseCaseBase):
    async def add_line_item(
        self, number: str, variant_id: str, quantity: int = 1
    ) -> Tuple[Order, LineItem]:
        order = await self.get_order(number)
        self._ensure_editable(order)
        line_item = await self._add_variant(order, variant_id, quantity)
        await self._recalculate_and_save(order)
        logger.info(
            "Line item added",
            extra={
                "order_number": number,
                "variant_id": variant_id,
                "quantity": line_item.quantity,
            },
        )
        return order, line_item

    async def update_line_item(
        self, number: str, line_item_id: str, quantity: int
    ) -> Tuple[Order, Optional[LineItem]]:
        order = await self.get_order(number)
        self._ensure_editable(order)
        line_item = self._set_quantity(order, line_item_id, quantity)
        await self._recalculate_and_save(order)
        return order, line_item

    async def remove_line_item(self, number: str, line_item_id: str) -> Order:
        order = await self.get_order(number)
        self._ensure_editable(order)
        self._set_quantity(order, line_item_id, 0)
        return await self._recalculate_and_save(order)


class CouponUseCase(_OrderUseCaseBase):
    async def apply_coupon_code(
        self, number: str, code: str
    ) -> Tuple[Order, CouponResult]:
        order = await self.get_order(number)
        self._ensure_editable(order)
        self.updater.update(order, await self._promotions_for(order))

        promotion = (
            await self.promotion_repo.find_by_code(code) if code else None
        )
        promotion_usage = code_usage = 0
        if promotion is not None:
            promotion_usage = await self.order_repo.count_promotion_usage(
                promotion.id, excluded_number=order.number
            )
            promotion_code = promotion.find_code(code)
            if promotion_code is not None:
                code_usage = await self.order_repo.count_promotion_usage(
                    promotion.id,
                    promotion_code_id=promotion_code.id,
                    excluded_number=order.number,
                )

        result = CouponHandler().apply(
            order, promotion, code, promotion_usage, code_usage
        )
        if result.successful:
            await self._recalculate_and_save(order)
        return order, result


class PaymentUseCase(_OrderUseCaseBase):
    def __init__(
        self,
        order_repo: OrderRepository,
        variant_repo: VariantRepository,
        promotion_repo: PromotionRepository,
        payment_method_repo: PaymentMethodRepository,
        processor: Optional[PaymentProcessor] = None,
    ) -> None:
        super().__init__(order_repo, variant_repo, promotion_repo)
        self.payment_method_repo = ensure_payment_method_repository(
            payment_method_repo
        )
        self.processor = processor or PaymentProcessor()

    async def _payment_method(self, payment_method_id: str) -> PaymentMethod:
        method = await self.payment_method_repo.get(payment_method_id)
        if method is None or not method.active:
            raise InvalidResourceError(
                {"payment_method": ["is not available"]}
            )
        return method

    async def create_payment(
        self,
        number: str,
        payment_method_id: str,
        amount: Optional[Decimal] = None,
    ) -> Tuple[Order, Payment]:
        """Add a checkout payment; it is processed when the order
        completes. Without an amount it covers the outstanding balance."""
        order = await self.get_order(number)
        self._ensure_editable(order)
        await self._payment_method(payment_method_id)
        if amount is not None and amount < 0:
            raise InvalidResourceError({"amount": ["must not be negative"]})

        payment = Payment(
            id=f"pay-{uuid.uuid4()}",
            number=f"P{secrets.token_hex(4).upper()}",
            payment_method_id=payment_method_id,
            amount=amount,
        )
        order.payments.append(payment)
        await self._recalculate_and_save(order)
        logger.info(
            "Payment added",
            extra={
                "order_number": number,
                "payment_number": payment.number,
                "payment_method_id": payment_method_id,
            },
        )
        return order, payment

    async def _load_payment(
        self, number: str, payment_id: str
    ) -> Tuple[Order, Payment, PaymentMethod]:
        order = await self.get_order(number)
        payment = order.find_payment(payment_id)
        if payment is None:
            raise ResourceNotFoundError("Payment", payment_id)
        method = await self.payment_method_repo.get(payment.payment_method_id)
        if method is None:
            raise InvalidResourceError({"payment_method": ["is not available"]})
        return order, payment, method

    async def capture_payment(
        self, number: str, payment_id: str
    ) -> Tuple[Order, Payment]:
        order, payment, method = await self._load_payment(number, payment_id)
        try:
            self.processor.capture(payment, method)
        finally:
            await self._recalculate_and_save(order)
        return order, payment

    async def void_payment(
        self, number: str, payment_id: str
    ) -> Tuple[Order, Payment]:
        order, payment, method = await self._load_payment(number, payment_id)
        self.processor.void(payment, method)
        await self._recalculate_and_save(order)
        return order, payment


class CheckoutUseCase(_OrderUseCaseBase):
    """Drives orders through the checkout state machine."""

    def __init__(
        self,
        order_repo: OrderRepository,
        variant_repo: VariantRepository,
        promotion_repo: PromotionRepository,
        shipping_method_repo: ShippingMethodRepository,
        payment_method_repo: PaymentMethodRepository,
        processor: Optional[PaymentProcessor] = None,
    ) -> None:
        super().__init__(order_repo, variant_repo, promotion_repo)
        self.shipping_method_repo = ensure_shipping_method_repository(
            shipping_method_repo
        )
        self.payment_method_repo = ensure_payment_method_repository(
            payment_method_repo
        )
        self.processor = processor or PaymentProcessor()

    async def _state_machine(self, order: Order) -> CheckoutStateMachine:
        promotions = await self._promotions_for(order)
        usage = {
            promotion_id: await self.order_repo.count_promotion_usage(
                promotion_id, excluded_number=order.number
            )
            for promotion_id in promotions
        }
        code_usage = {
            op.promotion_code_id: await self.order_repo.count_promotion_usage(
                op.promotion_id,
                promotion_code_id=op.promotion_code_id,
                excluded_number=order.number,
            )
            for op in order.order_promotions
            if op.promotion_code_id is not None
        }
        payment_methods = {
            method.id: method
            for method in await self.payment_method_repo.list_all()
        }
        return CheckoutStateMachine(
            promotions=promotions,
            shipping_methods=await self.shipping_method_repo.list_all(),
            payment_methods=payment_methods,
            updater=self.updater,
            processor=self.processor,
            promotion_usage=usage,
            code_usage=code_usage,
        )

    async def next(self, number: str) -> Order:
        order = await self.get_order(number)
        machine = await self._state_machine(order)
        machine.next(order)
        await self.order_repo.save(order)
        return order

    async def advance(self, number: str) -> Order:
        order = await self.get_order(number)
        machine = await self._state_machine(order)
        machine.advance(order)
        await self.order_repo.save(order)
        logger.info(
            "Checkout advanced",
            extra={"order_number": number, "state": order.state.value},
        )
        return order

    async def complete(
        self, number: str, expected_total: Optional[Decimal] = None
    ) -> Order:
        order = await self.get_order(number)
        if (
            expected_total is not None
            and to_money(expected_total) != order.total
        ):
            raise ExpectedTotalMismatchError(
                str(to_money(expected_total)), str(order.total)
            )

        machine = await self._state_machine(order)
        try:
            machine.complete(order)
        finally:
            # failed payments and dropped promotions are persisted too
            await self.order_repo.save(order)
        return order

    async def update_and_next(self, number: str, params: OrderParams) -> Order:
        order = await self.get_order(number)
        self._ensure_editable(order)
        await self._apply_params(order, params)
        await self._recalculate_and_save(order)
        machine = await self._state_machine(order)
        machine.next(order)
        order.updated_at = utcnow()
        await self.order_repo.save(order)
        return order
