"""
Payments API router.

Routes (mounted at /api/orders/{number}/payments):
- POST / - Add a payment to the order
- PUT /{payment_id}/capture - Capture a pending payment (admin)
- PUT /{payment_id}/void - Void a payment (admin)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from solidus.api.auth import (
    get_current_user,
    get_order_token,
    load_authorized_order,
    require_admin,
)
from solidus.api.dependencies import get_payment_use_case
from solidus.api.errors import to_http_exception
from solidus.api.requests import CreatePaymentRequest
from solidus.api.responses import PaymentResponse
from solidus.domain import User
from solidus.errors import SolidusError
from solidus.usecase import PaymentUseCase

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=PaymentResponse, status_code=201)
async def create_payment(
    number: str,
    request: CreatePaymentRequest,
    current_user: Optional[User] = Depends(get_current_user),
    order_token: Optional[str] = Depends(get_order_token),
    use_case: PaymentUseCase = Depends(get_payment_use_case),
) -> PaymentResponse:
    """Add a payment. It is processed when the checkout completes."""
    await load_authorized_order(use_case, number, current_user, order_token)

    try:
        _, payment = await use_case.create_payment(
            number,
            request.payment.payment_method_id,
            request.payment.amount,
        )
    except SolidusError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(
            "Failed to create payment",
            exc_info=True,
            extra={
                "order_number": number,
                "error_type": type(e).__name__,
                "error_message": str(e),
            },
        )
        raise HTTPException(
            status_code=500,
            detail="Failed to create payment due to an internal error.",
        )

    return PaymentResponse.from_domain(payment)


@router.put("/{payment_id}/capture", response_model=PaymentResponse)
async def capture_payment(
    number: str,
    payment_id: str,
    current_user: Optional[User] = Depends(get_current_user),
    use_case: PaymentUseCase = Depends(get_payment_use_case),
) -> PaymentResponse:
    require_admin(current_user)

    try:
        _, payment = await use_case.capture_payment(number, payment_id)
    except SolidusError as e:
        raise to_http_exception(e)

    logger.info(
        "Payment captured",
        extra={"order_number": number, "payment_number": payment.number},
    )
    return PaymentResponse.from_domain(payment)


@router.put("/{payment_id}/void", response_model=PaymentResponse)
async def void_payment(
    number: str,
    payment_id: str,
    current_user: Optional[User] = Depends(get_current_user),
    use_case: PaymentUseCase = Depends(get_payment_use_case),
) -> PaymentResponse:
    require_admin(current_user)

    try:
        _, payment = await use_case.void_payment(number, payment_id)
    except SolidusError as e:
        raise to_http_exception(e)

    return PaymentResponse.from_domain(payment)
