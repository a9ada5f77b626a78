"""
Orders API router.

Routes (mounted at /api/orders):
- GET / - List all orders (admin, paginated)
- GET /mine - List the current user's orders (paginated)
- POST / - Create an order, optionally with addresses and line items
- GET /{number} - Show an order
- PUT /{number} - Update email, addresses and line items
- PUT /{number}/empty - Remove every line item
- PUT /{number}/apply_coupon_code - Apply a promotion code
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse
from fastapi_pagination import Page, paginate

from solidus.api.auth import (
    get_current_user,
    get_order_token,
    load_authorized_order,
    require_admin,
)
from solidus.api.dependencies import get_coupon_use_case, get_order_use_case
from solidus.api.errors import UNAUTHORIZED, to_http_exception
from solidus.api.requests import ApplyCouponCodeRequest, OrderRequest
from solidus.api.responses import CouponCodeResponse, OrderResponse
from solidus.domain import User
from solidus.errors import SolidusError
from solidus.usecase import CouponUseCase, OrderUseCase

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=Page[OrderResponse])
async def list_orders(
    current_user: Optional[User] = Depends(get_current_user),
    use_case: OrderUseCase = Depends(get_order_use_case),
) -> Page[OrderResponse]:
    """Paginated list of every order. Admin only."""
    require_admin(current_user)
    orders = await use_case.list_orders()
    logger.info("Orders listed", extra={"count": len(orders)})
    return paginate([OrderResponse.from_domain(o) for o in orders])  # type: ignore[no-any-return]


@router.get("/mine", response_model=Page[OrderResponse])
async def list_my_orders(
    current_user: Optional[User] = Depends(get_current_user),
    use_case: OrderUseCase = Depends(get_order_use_case),
) -> Page[OrderResponse]:
    if current_user is None:
        raise HTTPException(status_code=401, detail={"error": UNAUTHORIZED})
    orders = await use_case.list_user_orders(current_user.id)
    return paginate([OrderResponse.from_domain(o) for o in orders])  # type: ignore[no-any-return]


@router.post("", response_model=OrderResponse, status_code=201)
async def create_order(
    request: Optional[OrderRequest] = Body(None),
    current_user: Optional[User] = Depends(get_current_user),
    use_case: OrderUseCase = Depends(get_order_use_case),
) -> OrderResponse:
    """
    Create a cart for the calling user (or a guest cart). Addresses and
    line items may be passed up front.
    """
    logger.info(
        "Order creation requested",
        extra={"user_id": current_user.id if current_user else None},
    )

    try:
        order = await use_case.create_order(
            current_user, request.order if request else None
        )
    except SolidusError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(
            "Failed to create order",
            exc_info=True,
            extra={"error_type": type(e).__name__, "error_message": str(e)},
        )
        # Return a generic error message to prevent information leakage
        raise HTTPException(
            status_code=500,
            detail="Failed to create order due to an internal error.",
        )

    return OrderResponse.from_domain(order)


@router.get("/{number}", response_model=OrderResponse)
async def get_order(
    number: str,
    current_user: Optional[User] = Depends(get_current_user),
    order_token: Optional[str] = Depends(get_order_token),
    use_case: OrderUseCase = Depends(get_order_use_case),
) -> OrderResponse:
    order = await load_authorized_order(
        use_case, number, current_user, order_token
    )
    return OrderResponse.from_domain(order)


@router.put("/{number}", response_model=OrderResponse)
async def update_order(
    number: str,
    request: OrderRequest,
    current_user: Optional[User] = Depends(get_current_user),
    order_token: Optional[str] = Depends(get_order_token),
    use_case: OrderUseCase = Depends(get_order_use_case),
) -> OrderResponse:
    await load_authorized_order(use_case, number, current_user, order_token)
    logger.info("Order update requested", extra={"order_number": number})

    try:
        order = await use_case.update_order(number, request.order)
    except SolidusError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(
            "Failed to update order",
            exc_info=True,
            extra={
                "order_number": number,
                "error_type": type(e).__name__,
                "error_message": str(e),
            },
        )
        raise HTTPException(
            status_code=500,
            detail="Failed to update order due to an internal error.",
        )

    return OrderResponse.from_domain(order)


@router.put("/{number}/empty", response_model=OrderResponse)
async def empty_order(
    number: str,
    current_user: Optional[User] = Depends(get_current_user),
    order_token: Optional[str] = Depends(get_order_token),
    use_case: OrderUseCase = Depends(get_order_use_case),
) -> OrderResponse:
    await load_authorized_order(use_case, number, current_user, order_token)

    try:
        order = await use_case.empty_order(number)
    except SolidusError as e:
        raise to_http_exception(e)

    return OrderResponse.from_domain(order)


@router.put("/{number}/apply_coupon_code", response_model=CouponCodeResponse)
async def apply_coupon_code(
    number: str,
    request: ApplyCouponCodeRequest,
    current_user: Optional[User] = Depends(get_current_user),
    order_token: Optional[str] = Depends(get_order_token),
    use_case: CouponUseCase = Depends(get_coupon_use_case),
) -> Union[CouponCodeResponse, JSONResponse]:
    """Apply a promotion code. Failed applications answer 422 with the
    same body shape."""
    await load_authorized_order(use_case, number, current_user, order_token)
    logger.info(
        "Coupon code application requested",
        extra={"order_number": number, "coupon_code": request.coupon_code},
    )

    try:
        _, result = await use_case.apply_coupon_code(
            number, request.coupon_code
        )
    except SolidusError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(
            "Failed to apply coupon code",
            exc_info=True,
            extra={
                "order_number": number,
                "error_type": type(e).__name__,
                "error_message": str(e),
            },
        )
        raise HTTPException(
            status_code=500,
            detail="Failed to apply coupon code due to an internal error.",
        )

    response = CouponCodeResponse.from_result(result)
    if not result.successful:
        return JSONResponse(status_code=422, content=response.model_dump())
    return response
