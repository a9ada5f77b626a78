"""
Checkouts API router.

Routes (mounted at /api/checkouts):
- PUT /{number} - Update the order, then move one checkout step
- PUT /{number}/next - Move one checkout step
- PUT /{number}/advance - Move as far as possible towards confirm
- PUT /{number}/complete - Complete the checkout
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from solidus.api.auth import (
    get_current_user,
    get_order_token,
    load_authorized_order,
)
from solidus.api.dependencies import get_checkout_use_case
from solidus.api.errors import to_http_exception
from solidus.api.requests import CompleteCheckoutRequest, OrderRequest
from solidus.api.responses import OrderResponse
from solidus.domain import User
from solidus.errors import SolidusError
from solidus.usecase import CheckoutUseCase

logger = logging.getLogger(__name__)

router = APIRouter()


@router.put("/{number}", response_model=OrderResponse)
async def update_checkout(
    number: str,
    request: OrderRequest,
    current_user: Optional[User] = Depends(get_current_user),
    order_token: Optional[str] = Depends(get_order_token),
    use_case: CheckoutUseCase = Depends(get_checkout_use_case),
) -> OrderResponse:
    await load_authorized_order(use_case, number, current_user, order_token)

    try:
        order = await use_case.update_and_next(number, request.order)
    except SolidusError as e:
        raise to_http_exception(e)

    return OrderResponse.from_domain(order)


@router.put("/{number}/next", response_model=OrderResponse)
async def next_step(
    number: str,
    current_user: Optional[User] = Depends(get_current_user),
    order_token: Optional[str] = Depends(get_order_token),
    use_case: CheckoutUseCase = Depends(get_checkout_use_case),
) -> OrderResponse:
    await load_authorized_order(use_case, number, current_user, order_token)

    try:
        order = await use_case.next(number)
    except SolidusError as e:
        raise to_http_exception(e)

    return OrderResponse.from_domain(order)


@router.put("/{number}/advance", response_model=OrderResponse)
async def advance(
    number: str,
    current_user: Optional[User] = Depends(get_current_user),
    order_token: Optional[str] = Depends(get_order_token),
    use_case: CheckoutUseCase = Depends(get_checkout_use_case),
) -> OrderResponse:
    """
    Advance the checkout until a step's requirements are not met or the
    order reaches confirm. Never fails because of a refused step; the
    response shows where the order stopped.
    """
    await load_authorized_order(use_case, number, current_user, order_token)

    try:
        order = await use_case.advance(number)
    except SolidusError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(
            "Failed to advance checkout",
            exc_info=True,
            extra={
                "order_number": number,
                "error_type": type(e).__name__,
                "error_message": str(e),
            },
        )
        raise HTTPException(
            status_code=500,
            detail="Failed to advance checkout due to an internal error.",
        )

    return OrderResponse.from_domain(order)


@router.put("/{number}/complete", response_model=OrderResponse)
async def complete(
    number: str,
    request: Optional[CompleteCheckoutRequest] = Body(None),
    current_user: Optional[User] = Depends(get_current_user),
    order_token: Optional[str] = Depends(get_order_token),
    use_case: CheckoutUseCase = Depends(get_checkout_use_case),
) -> OrderResponse:
    """
    Complete the checkout: process payments and finalize promotions.

    When ``expected_total`` is given and differs from the order total the
    request is refused with 400 and nothing is processed.
    """
    await load_authorized_order(use_case, number, current_user, order_token)
    logger.info("Checkout completion requested", extra={"order_number": number})

    try:
        order = await use_case.complete(
            number, request.expected_total if request else None
        )
    except SolidusError as e:
        logger.info(
            "Checkout completion refused",
            extra={"order_number": number, "reason": str(e)},
        )
        raise to_http_exception(e)
    except Exception as e:
        logger.error(
            "Failed to complete checkout",
            exc_info=True,
            extra={
                "order_number": number,
                "error_type": type(e).__name__,
                "error_message": str(e),
            },
        )
        raise HTTPException(
            status_code=500,
            detail="Failed to complete checkout due to an internal error.",
        )

    logger.info(
        "Checkout completed",
        extra={"order_number": number, "total": str(order.total)},
    )
    return OrderResponse.from_domain(order)
