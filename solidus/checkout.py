"""
Checkout state machine.

Orders move through ``cart -> address -> delivery -> payment -> confirm``
one ``next`` event at a time. Each step has a guard that must pass before
the order may leave it; guards raise ``CheckoutError`` with a message
suitable for API clients. Reaching ``complete`` is a separate event that is
only allowed from ``confirm`` and is the point where payments are
processed.

The machine is built per request from the catalog data it needs
(promotions, shipping methods, payment methods), so it never touches a
repository itself.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, Iterable, Mapping, Optional

from solidus.domain import (
    CHECKOUT_FLOW,
    Order,
    OrderState,
    PaymentMethod,
    PaymentState,
    Promotion,
    ShippingMethod,
    ZERO,
    to_money,
    utcnow,
)
from solidus.errors import (
    CheckoutError,
    InvalidTransitionError,
    PaymentProcessingError,
)
from solidus.order_updater import OrderUpdater
from solidus.payments import PaymentProcessor
from solidus.shipping import ShippingEstimator

logger = logging.getLogger(__name__)

NO_ITEMS = (
    "There are no items for this order. Please add an item to the order "
    "to continue."
)
NO_PAYMENT = "No payment found"
PROMOTIONS_INELIGIBLE = (
    "One or more of the promotions on your order have become ineligible "
    "and were removed. Please check the new order amounts and try again."
)


class CheckoutStateMachine:
    def __init__(
        self,
        promotions: Mapping[str, Promotion],
        shipping_methods: Iterable[ShippingMethod],
        payment_methods: Mapping[str, PaymentMethod],
        updater: Optional[OrderUpdater] = None,
        estimator: Optional[ShippingEstimator] = None,
        processor: Optional[PaymentProcessor] = None,
        promotion_usage: Optional[Mapping[str, int]] = None,
        code_usage: Optional[Mapping[str, int]] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """
        Args:
            promotions: Promotions referenced by orders, keyed by id
            shipping_methods: Shipping methods to quote rates from
            payment_methods: Payment methods keyed by id
            promotion_usage: Completed-order usage per promotion id,
                excluding the order being checked out
            code_usage: The same usage counted per promotion code id
        """
        self.promotions = promotions
        self.shipping_methods = list(shipping_methods)
        self.payment_methods = payment_methods
        self.updater = updater or OrderUpdater(now)
        self.estimator = estimator or ShippingEstimator()
        self.processor = processor or PaymentProcessor()
        self.promotion_usage = promotion_usage or {}
        self.code_usage = code_usage or {}
        self._now = now

        self._guards: Dict[OrderState, Callable[[Order], None]] = {
            OrderState.CART: self._leave_cart,
            OrderState.ADDRESS: self._leave_address,
            OrderState.DELIVERY: self._leave_delivery,
            OrderState.PAYMENT: self._leave_payment,
        }

    @property
    def now(self) -> datetime:
        return self._now or utcnow()

    def can_next(self, order: Order) -> bool:
        return order.state in self._guards

    def next(self, order: Order) -> Order:
        """Move the order one checkout step forward.

        Raises:
            InvalidTransitionError: from confirm, complete or canceled
            CheckoutError: when the current step's guard fails
        """
        if not self.can_next(order):
            raise InvalidTransitionError("order", "next", order.state.value)

        from_state = order.state
        self._guards[from_state](order)
        self.updater.update(order, self.promotions)

        target = CHECKOUT_FLOW[CHECKOUT_FLOW.index(from_state) + 1]
        if target is OrderState.PAYMENT and not order.payment_required:
            target = OrderState.CONFIRM
        order.state = target

        logger.info(
            "Order transitioned",
            extra={
                "order_number": order.number,
                "from_state": from_state.value,
                "to_state": target.value,
            },
        )
        return order

    def advance(self, order: Order) -> Order:
        """Call ``next`` until a guard refuses or ``confirm`` is reached."""
        while self.can_next(order):
            try:
                self.next(order)
            except CheckoutError as e:
                logger.info(
                    "Checkout advance stopped",
                    extra={
                        "order_number": order.number,
                        "state": order.state.value,
                        "reason": e.message,
                    },
                )
                break
        return order

    def complete(self, order: Order) -> Order:
        """Process payments and complete a confirmed order.

        On payment failure the order stays in ``confirm`` with the failed
        payment recorded, and the error is re-raised.
        """
        if order.state is not OrderState.CONFIRM:
            raise InvalidTransitionError(
                "order", "complete", order.state.value
            )
        if not order.line_items:
            raise CheckoutError(NO_ITEMS, state=order.state.value)

        self.updater.update(order, self.promotions)
        self._ensure_promotions_eligible(order)

        if order.payment_required:
            self._process_payments(order)

        order.completed_at = self.now
        order.state = OrderState.COMPLETE
        for adjustment in order.adjustments:
            adjustment.finalized = True
        self.updater.update(order, self.promotions)

        logger.info(
            "Order completed",
            extra={
                "order_number": order.number,
                "total": str(order.total),
                "payment_state": (
                    order.payment_state.value
                    if order.payment_state
                    else None
                ),
            },
        )
        return order

    def _leave_cart(self, order: Order) -> None:
        if not order.line_items:
            raise CheckoutError(NO_ITEMS, state=order.state.value)
        if not order.email:
            raise CheckoutError(
                "can't be blank", attribute="email", state=order.state.value
            )

    def _leave_address(self, order: Order) -> None:
        if order.bill_address is None:
            raise CheckoutError(
                "can't be blank",
                attribute="bill_address",
                state=order.state.value,
            )
        if order.ship_address is None:
            raise CheckoutError(
                "can't be blank",
                attribute="ship_address",
                state=order.state.value,
            )
        order.shipments = self.estimator.build_shipments(
            order, self.shipping_methods
        )

    def _leave_delivery(self, order: Order) -> None:
        if not order.shipments or any(
            shipment.selected_rate is None for shipment in order.shipments
        ):
            raise CheckoutError(
                "Please select a shipping method",
                attribute="shipments",
                state=order.state.value,
            )

    def _leave_payment(self, order: Order) -> None:
        if not order.payment_required:
            return
        valid = [p for p in order.payments if p.is_valid]
        if not valid:
            raise CheckoutError(NO_PAYMENT, state=order.state.value)
        for payment in valid:
            method = self.payment_methods.get(payment.payment_method_id)
            if method is None or not method.active:
                raise CheckoutError(
                    "Payment method is not available",
                    attribute="payments",
                    state=order.state.value,
                )

    def _ensure_promotions_eligible(self, order: Order) -> None:
        dropped = []
        for adjustment in order.adjustments:
            promotion = self.promotions.get(adjustment.promotion_id)
            if not adjustment.eligible or self._over_limit(
                promotion, adjustment.promotion_code_id
            ):
                dropped.append(adjustment.promotion_id)

        if not dropped:
            return

        order.adjustments = [
            adj for adj in order.adjustments if adj.promotion_id not in dropped
        ]
        order.order_promotions = [
            op for op in order.order_promotions if op.promotion_id not in dropped
        ]
        self.updater.update(order, self.promotions)
        logger.warning(
            "Removed ineligible promotions before completion",
            extra={"order_number": order.number, "promotion_ids": dropped},
        )
        raise CheckoutError(
            PROMOTIONS_INELIGIBLE,
            attribute="promotions",
            state=order.state.value,
        )

    def _over_limit(
        self, promotion: Optional[Promotion], code_id: Optional[str]
    ) -> bool:
        if promotion is None:
            return False
        if (
            promotion.usage_limit is not None
            and self.promotion_usage.get(promotion.id, 0)
            >= promotion.usage_limit
        ):
            return True
        return (
            code_id is not None
            and promotion.per_code_usage_limit is not None
            and self.code_usage.get(code_id, 0)
            >= promotion.per_code_usage_limit
        )

    def _process_payments(self, order: Order) -> None:
        unprocessed = [
            p for p in order.payments if p.state is PaymentState.CHECKOUT
        ]
        committed: Decimal = sum(
            (
                p.amount or ZERO
                for p in order.payments
                if p.state in (PaymentState.PENDING, PaymentState.COMPLETED)
            ),
            ZERO,
        )
        if not unprocessed and committed < order.total:
            raise CheckoutError(NO_PAYMENT, state=order.state.value)

        for payment in unprocessed:
            remaining = to_money(order.total - committed)
            if remaining <= 0:
                break
            if payment.amount is None:
                payment.amount = remaining

            method = self.payment_methods.get(payment.payment_method_id)
            if method is None or not method.active:
                payment.state = PaymentState.INVALID
                self.updater.update(order, self.promotions)
                raise PaymentProcessingError(
                    "Payment method is not available"
                )
            try:
                self.processor.process(payment, method)
            except PaymentProcessingError:
                self.updater.update(order, self.promotions)
                raise
            committed += payment.amount
