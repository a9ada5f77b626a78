"""
Promotion eligibility, adjustment amounts and coupon code handling.

A promotion here carries a single order-level action: an adjustment whose
value comes from its calculator. Applying a coupon code attaches the
promotion to the order and creates that adjustment; the order updater then
keeps the adjustment amount and eligibility in step with the order.
"""

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from solidus.domain import (
    Adjustment,
    Order,
    OrderPromotion,
    Promotion,
    ZERO,
    to_money,
    utcnow,
)

logger = logging.getLogger(__name__)

COUPON_MESSAGES = {
    "coupon_code_applied": (
        "The coupon code was successfully applied to your order."
    ),
    "coupon_code_not_found": (
        "The coupon code you entered doesn't exist. Please try again."
    ),
    "coupon_code_already_applied": (
        "The coupon code has already been applied to this order"
    ),
    "coupon_code_expired": "The coupon code is expired",
    "coupon_code_max_usage": "Coupon code usage limit exceeded",
    "coupon_code_not_eligible": (
        "This coupon code is not eligible for this order"
    ),
}


class CouponResult(BaseModel):
    """Outcome of applying a coupon code to an order."""

    successful: bool
    status_code: str

    @property
    def message(self) -> str:
        return COUPON_MESSAGES[self.status_code]


def is_active(promotion: Promotion, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    if promotion.starts_at is not None and now < promotion.starts_at:
        return False
    if promotion.expires_at is not None and now > promotion.expires_at:
        return False
    return True


def is_eligible(
    promotion: Promotion, order: Order, now: Optional[datetime] = None
) -> bool:
    """Check the promotion's window and rules against the order."""
    if not is_active(promotion, now):
        return False
    if not order.line_items:
        return False
    if (
        promotion.min_item_total is not None
        and order.item_total < promotion.min_item_total
    ):
        return False
    return True


def compute_discount(promotion: Promotion, order: Order) -> Decimal:
    """Positive discount the promotion's calculator yields for the order."""
    calculator = promotion.calculator
    if calculator.type == "flat_rate":
        return to_money(calculator.amount)
    return to_money(order.item_total * calculator.percent / Decimal(100))


def compute_adjustment_amount(promotion: Promotion, order: Order) -> Decimal:
    """Negative adjustment amount, never discounting more than the order's
    item and shipment totals."""
    ceiling = order.item_total + order.shipment_total
    return -min(compute_discount(promotion, order), ceiling)


class CouponHandler:
    """Applies coupon codes to orders.

    Usage counts are supplied by the caller because they come from the
    order repository; the handler itself only mutates the order it is
    given.
    """

    def __init__(self, now: Optional[datetime] = None) -> None:
        self._now = now

    @property
    def now(self) -> datetime:
        return self._now or utcnow()

    def apply(
        self,
        order: Order,
        promotion: Optional[Promotion],
        code_value: str,
        promotion_usage: int = 0,
        code_usage: int = 0,
    ) -> CouponResult:
        code = promotion.find_code(code_value) if promotion else None
        if promotion is None or code is None:
            return self._result(order, code_value, "coupon_code_not_found")

        if order.has_promotion(promotion.id):
            return self._result(
                order, code_value, "coupon_code_already_applied"
            )

        if not is_active(promotion, self.now):
            return self._result(order, code_value, "coupon_code_expired")

        if (
            promotion.usage_limit is not None
            and promotion_usage >= promotion.usage_limit
        ) or (
            promotion.per_code_usage_limit is not None
            and code_usage >= promotion.per_code_usage_limit
        ):
            return self._result(order, code_value, "coupon_code_max_usage")

        if not is_eligible(promotion, order, self.now):
            return self._result(
                order, code_value, "coupon_code_not_eligible"
            )

        order.order_promotions.append(
            OrderPromotion(
                promotion_id=promotion.id, promotion_code_id=code.id
            )
        )
        order.adjustments.append(
            Adjustment(
                id=f"adj-{uuid.uuid4()}",
                promotion_id=promotion.id,
                promotion_code_id=code.id,
                label=f"Promotion ({promotion.name})",
                amount=compute_adjustment_amount(promotion, order),
            )
        )
        return self._result(order, code_value, "coupon_code_applied")

    def _result(
        self, order: Order, code_value: str, status_code: str
    ) -> CouponResult:
        result = CouponResult(
            successful=status_code == "coupon_code_applied",
            status_code=status_code,
        )
        logger.info(
            "Coupon code handled",
            extra={
                "order_number": order.number,
                "coupon_code": code_value,
                "status_code": status_code,
            },
        )
        return result


def refresh_adjustment(
    adjustment: Adjustment,
    promotion: Optional[Promotion],
    order: Order,
    now: Optional[datetime] = None,
) -> None:
    """Recompute a promotion adjustment in place.

    Finalized adjustments keep their amount. Adjustments whose promotion
    has disappeared become ineligible with a zero amount.
    """
    if adjustment.finalized:
        return
    if promotion is None:
        adjustment.eligible = False
        adjustment.amount = ZERO
        return
    adjustment.eligible = is_eligible(promotion, order, now)
    adjustment.amount = compute_adjustment_amount(promotion, order)
