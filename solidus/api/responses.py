"""
Pydantic models for API responses.
These define the contract between the API and external clients.

Money values are rendered as decimal strings (``"600.00"``) so clients
never see binary floating point.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from solidus.domain import (
    Address,
    Adjustment,
    LineItem,
    Order,
    Payment,
    Shipment,
    User,
)
from solidus.promotions import CouponResult


class HealthCheckResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime


class UserResponse(BaseModel):
    id: str
    email: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class LineItemResponse(BaseModel):
    id: str
    variant_id: str
    quantity: int
    price: str
    total: str

    @classmethod
    def from_domain(cls, line_item: LineItem) -> "LineItemResponse":
        return cls(
            id=line_item.id,
            variant_id=line_item.variant_id,
            quantity=line_item.quantity,
            price=str(line_item.price),
            total=str(line_item.amount),
        )


class AdjustmentResponse(BaseModel):
    id: str
    label: str
    amount: str
    eligible: bool
    promotion_id: str
    promotion_code_id: Optional[str] = None

    @classmethod
    def from_domain(cls, adjustment: Adjustment) -> "AdjustmentResponse":
        return cls(
            id=adjustment.id,
            label=adjustment.label,
            amount=str(adjustment.amount),
            eligible=adjustment.eligible,
            promotion_id=adjustment.promotion_id,
            promotion_code_id=adjustment.promotion_code_id,
        )


class ShippingRateResponse(BaseModel):
    shipping_method_id: str
    name: str
    cost: str
    selected: bool


class ShipmentResponse(BaseModel):
    number: str
    state: str
    cost: str
    shipping_rates: List[ShippingRateResponse]

    @classmethod
    def from_domain(cls, shipment: Shipment) -> "ShipmentResponse":
        return cls(
            number=shipment.number,
            state=shipment.state.value,
            cost=str(shipment.cost),
            shipping_rates=[
                ShippingRateResponse(
                    shipping_method_id=rate.shipping_method_id,
                    name=rate.name,
                    cost=str(rate.cost),
                    selected=rate.selected,
                )
                for rate in shipment.shipping_rates
            ],
        )


class PaymentResponse(BaseModel):
    id: str
    number: str
    payment_method_id: str
    amount: Optional[str] = None
    state: str
    response_code: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_domain(cls, payment: Payment) -> "PaymentResponse":
        return cls(
            id=payment.id,
            number=payment.number,
            payment_method_id=payment.payment_method_id,
            amount=str(payment.amount) if payment.amount is not None else None,
            state=payment.state.value,
            response_code=payment.response_code,
            created_at=payment.created_at,
        )


class OrderResponse(BaseModel):
    id: str
    number: str
    state: str
    email: Optional[str] = None
    user_id: Optional[str] = None
    token: str
    currency: str
    item_total: str
    shipment_total: str
    promo_total: str
    adjustment_total: str
    payment_total: str
    total: str
    total_quantity: int
    payment_state: Optional[str] = None
    shipment_state: Optional[str] = None
    checkout_steps: List[str]
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    bill_address: Optional[Address] = None
    ship_address: Optional[Address] = None
    line_items: List[LineItemResponse]
    adjustments: List[AdjustmentResponse]
    shipments: List[ShipmentResponse]
    payments: List[PaymentResponse]
    promotion_ids: List[str]

    @classmethod
    def from_domain(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            number=order.number,
            state=order.state.value,
            email=order.email,
            user_id=order.user_id,
            token=order.guest_token,
            currency=order.currency,
            item_total=str(order.item_total),
            shipment_total=str(order.shipment_total),
            promo_total=str(order.promo_total),
            adjustment_total=str(order.adjustment_total),
            payment_total=str(order.payment_total),
            total=str(order.total),
            total_quantity=order.item_count,
            payment_state=(
                order.payment_state.value if order.payment_state else None
            ),
            shipment_state=(
                order.shipment_state.value if order.shipment_state else None
            ),
            checkout_steps=order.checkout_steps,
            completed_at=order.completed_at,
            created_at=order.created_at,
            updated_at=order.updated_at,
            bill_address=order.bill_address,
            ship_address=order.ship_address,
            line_items=[
                LineItemResponse.from_domain(li) for li in order.line_items
            ],
            adjustments=[
                AdjustmentResponse.from_domain(a) for a in order.adjustments
            ],
            shipments=[
                ShipmentResponse.from_domain(s) for s in order.shipments
            ],
            payments=[PaymentResponse.from_domain(p) for p in order.payments],
            promotion_ids=order.promotion_ids,
        )


class CouponCodeResponse(BaseModel):
    success: Optional[str] = None
    error: Optional[str] = None
    successful: bool
    status_code: str

    @classmethod
    def from_result(cls, result: CouponResult) -> "CouponCodeResponse":
        return cls(
            success=result.message if result.successful else None,
            error=None if result.successful else result.message,
            successful=result.successful,
            status_code=result.status_code,
        )
