"""
Line items API router.

Routes (mounted at /api/orders/{number}/line_items):
- POST / - Add a variant to the order
- PUT /{line_item_id} - Change a line item's quantity (0 removes it)
- DELETE /{line_item_id} - Remove a line item
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Response

from solidus.api.auth import (
    get_current_user,
    get_order_token,
    load_authorized_order,
)
from solidus.api.dependencies import get_line_item_use_case
from solidus.api.errors import to_http_exception
from solidus.api.requests import CreateLineItemRequest, UpdateLineItemRequest
from solidus.api.responses import LineItemResponse
from solidus.domain import User
from solidus.errors import SolidusError
from solidus.usecase import LineItemUseCase

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=LineItemResponse, status_code=201)
async def create_line_item(
    number: str,
    request: CreateLineItemRequest,
    current_user: Optional[User] = Depends(get_current_user),
    order_token: Optional[str] = Depends(get_order_token),
    use_case: LineItemUseCase = Depends(get_line_item_use_case),
) -> LineItemResponse:
    """
    Add a variant to an order. Adding a variant already in the order
    increases that line item's quantity.
    """
    await load_authorized_order(use_case, number, current_user, order_token)

    try:
        _, line_item = await use_case.add_line_item(
            number,
            request.line_item.variant_id,
            request.line_item.quantity,
        )
    except SolidusError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(
            "Failed to add line item",
            exc_info=True,
            extra={
                "order_number": number,
                "variant_id": request.line_item.variant_id,
                "error_type": type(e).__name__,
                "error_message": str(e),
            },
        )
        raise HTTPException(
            status_code=500,
            detail="Failed to add line item due to an internal error.",
        )

    return LineItemResponse.from_domain(line_item)


@router.put("/{line_item_id}", response_model=LineItemResponse)
async def update_line_item(
    number: str,
    line_item_id: str,
    request: UpdateLineItemRequest,
    current_user: Optional[User] = Depends(get_current_user),
    order_token: Optional[str] = Depends(get_order_token),
    use_case: LineItemUseCase = Depends(get_line_item_use_case),
) -> Union[LineItemResponse, Response]:
    await load_authorized_order(use_case, number, current_user, order_token)

    try:
        _, line_item = await use_case.update_line_item(
            number, line_item_id, request.line_item.quantity
        )
    except SolidusError as e:
        raise to_http_exception(e)

    if line_item is None:
        return Response(status_code=204)
    return LineItemResponse.from_domain(line_item)


@router.delete("/{line_item_id}", status_code=204)
async def delete_line_item(
    number: str,
    line_item_id: str,
    current_user: Optional[User] = Depends(get_current_user),
    order_token: Optional[str] = Depends(get_order_token),
    use_case: LineItemUseCase = Depends(get_line_item_use_case),
) -> Response:
    await load_authorized_order(use_case, number, current_user, order_token)

    try:
        await use_case.remove_line_item(number, line_item_id)
    except SolidusError as e:
        raise to_http_exception(e)

    logger.info(
        "Line item removed",
        extra={"order_number": number, "line_item_id": line_item_id},
    )
    return Response(status_code=204)
