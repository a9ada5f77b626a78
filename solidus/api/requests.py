"""
Pydantic models for API requests.
These define the contract between the API and external clients.

Request bodies keep the resource-keyed envelope clients already send
(``{"order": {...}}``, ``{"line_item": {...}}``) so existing storefront
clients need no changes.
"""

from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from solidus.domain import Address


class UserParams(BaseModel):
    email: str
    password: str
    password_confirmation: Optional[str] = None


class CreateUserRequest(BaseModel):
    user: UserParams


class LineItemParams(BaseModel):
    """A line item inside order params: ``id`` updates an existing item,
    ``variant_id`` adds a variant."""

    id: Optional[str] = None
    variant_id: Optional[str] = None
    quantity: int = 1

    @model_validator(mode="after")
    def id_or_variant_required(self) -> "LineItemParams":
        if self.id is None and self.variant_id is None:
            raise ValueError("Line item requires an id or a variant_id")
        return self


class OrderParams(BaseModel):
    email: Optional[str] = None
    bill_address: Optional[Address] = None
    ship_address: Optional[Address] = None
    line_items: Optional[List[LineItemParams]] = None

    @field_validator("line_items", mode="before")
    @classmethod
    def accept_index_keyed_mapping(cls, v: Any) -> Any:
        # {"0": {...}, "1": {...}} as produced by form-style clients
        if isinstance(v, dict):
            return [v[k] for k in sorted(v, key=lambda k: (len(str(k)), str(k)))]
        return v


class OrderRequest(BaseModel):
    """Body of order create and update requests."""

    order: OrderParams = Field(default_factory=OrderParams)


class NewLineItemParams(BaseModel):
    variant_id: str
    quantity: int = 1


class CreateLineItemRequest(BaseModel):
    line_item: NewLineItemParams


class LineItemQuantityParams(BaseModel):
    quantity: int


class UpdateLineItemRequest(BaseModel):
    line_item: LineItemQuantityParams


class ApplyCouponCodeRequest(BaseModel):
    coupon_code: str = ""


class PaymentParams(BaseModel):
    payment_method_id: str
    amount: Optional[Decimal] = None


class CreatePaymentRequest(BaseModel):
    payment: PaymentParams


class CompleteCheckoutRequest(BaseModel):
    expected_total: Optional[Decimal] = None
