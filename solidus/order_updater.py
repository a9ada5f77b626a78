"""
Recalculation of order totals.

Every use case that changes an order's contents runs the updater before
saving, so the persisted totals always agree with the line items,
shipments, adjustments and payments.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Mapping, Optional

from solidus.domain import (
    Order,
    OrderPaymentState,
    PaymentState,
    Promotion,
    ShipmentState,
    ZERO,
    to_money,
    utcnow,
)
from solidus.promotions import refresh_adjustment

logger = logging.getLogger(__name__)


class OrderUpdater:
    """Recomputes an order's totals and derived states in place."""

    def __init__(self, now: Optional[datetime] = None) -> None:
        self._now = now

    def update(
        self, order: Order, promotions: Mapping[str, Promotion]
    ) -> Order:
        now = self._now or utcnow()

        order.item_total = to_money(
            sum((item.amount for item in order.line_items), ZERO)
        )
        order.shipment_total = to_money(
            sum((shipment.cost for shipment in order.shipments), ZERO)
        )

        for adjustment in order.adjustments:
            refresh_adjustment(
                adjustment,
                promotions.get(adjustment.promotion_id),
                order,
                now,
            )

        order.promo_total = to_money(
            sum(
                (adj.amount for adj in order.adjustments if adj.eligible),
                ZERO,
            )
        )
        order.adjustment_total = order.promo_total
        order.total = to_money(
            order.item_total + order.shipment_total + order.adjustment_total
        )
        order.payment_total = to_money(
            sum(
                (
                    payment.amount or ZERO
                    for payment in order.payments
                    if payment.state is PaymentState.COMPLETED
                ),
                ZERO,
            )
        )

        if order.is_completed:
            order.payment_state = self._payment_state(order)
            order.shipment_state = (
                ShipmentState.READY
                if order.payment_state is OrderPaymentState.PAID
                else ShipmentState.PENDING
            )

        order.updated_at = now

        logger.debug(
            "Order totals updated",
            extra={
                "order_number": order.number,
                "item_total": str(order.item_total),
                "shipment_total": str(order.shipment_total),
                "adjustment_total": str(order.adjustment_total),
                "total": str(order.total),
            },
        )
        return order

    @staticmethod
    def _payment_state(order: Order) -> OrderPaymentState:
        payments = order.payments
        if payments and all(p.state is PaymentState.VOID for p in payments):
            return OrderPaymentState.VOID
        if (
            payments
            and payments[-1].state is PaymentState.FAILED
            and order.payment_total == 0
        ):
            return OrderPaymentState.FAILED

        balance: Decimal = order.payment_total - order.total
        if balance < 0:
            return OrderPaymentState.BALANCE_DUE
        if balance > 0:
            return OrderPaymentState.CREDIT_OWED
        return OrderPaymentState.PAID
