"""
API key authentication and order access rules.

Clients identify themselves with a per-user API key sent as the
``X-Spree-Token`` header, an ``Authorization: Bearer`` header, or the
``token`` query parameter. Guest orders are reached with their order token
(``X-Spree-Order-Token`` header or ``order_token`` query parameter).
"""

import logging
import secrets
from typing import Any, Optional

from fastapi import Depends, HTTPException, Request

from solidus.api.dependencies import get_user_repository
from solidus.api.errors import UNAUTHORIZED, to_http_exception
from solidus.config import ApiConfig, get_api_config
from solidus.domain import Order, User
from solidus.errors import SolidusError
from solidus.repositories import UserRepository

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-Spree-Token"
ORDER_TOKEN_HEADER = "X-Spree-Order-Token"
MISSING_API_KEY = "You must specify an API key."


def extract_api_key(request: Request) -> Optional[str]:
    api_key = request.headers.get(API_KEY_HEADER)
    if api_key:
        return api_key
    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.query_params.get("token") or None


def get_order_token(request: Request) -> Optional[str]:
    return (
        request.headers.get(ORDER_TOKEN_HEADER)
        or request.query_params.get("order_token")
        or None
    )


async def get_current_user(
    request: Request,
    config: ApiConfig = Depends(get_api_config),
    user_repo: UserRepository = Depends(get_user_repository),
) -> Optional[User]:
    """Resolve the calling user from the request's API key.

    Returns None for anonymous requests when authentication is optional.
    """
    api_key = extract_api_key(request)
    if api_key is None:
        if config.requires_authentication:
            raise HTTPException(
                status_code=401, detail={"error": MISSING_API_KEY}
            )
        return None

    user = await user_repo.find_by_api_key(api_key)
    if user is None:
        logger.warning(
            "Rejected request with unknown API key",
            extra={"path": request.url.path},
        )
        raise HTTPException(
            status_code=401,
            detail={"error": f"Invalid API key ({api_key}) specified."},
        )
    return user


def can_access_order(
    order: Order, user: Optional[User], order_token: Optional[str]
) -> bool:
    if user is not None and user.admin:
        return True
    if user is not None and order.user_id == user.id:
        return True
    if order_token is not None and secrets.compare_digest(
        order_token, order.guest_token
    ):
        return True
    return False


def authorize_order(
    order: Order, user: Optional[User], order_token: Optional[str]
) -> None:
    if not can_access_order(order, user, order_token):
        logger.warning(
            "Order access denied",
            extra={
                "order_number": order.number,
                "user_id": user.id if user else None,
            },
        )
        raise HTTPException(status_code=401, detail={"error": UNAUTHORIZED})


def require_admin(user: Optional[User]) -> User:
    if user is None or not user.admin:
        raise HTTPException(status_code=401, detail={"error": UNAUTHORIZED})
    return user


async def load_authorized_order(
    use_case: Any,
    number: str,
    user: Optional[User],
    order_token: Optional[str],
) -> Order:
    """Fetch an order through a use case and check the caller may act on
    it. Unknown orders give 404, foreign orders 401."""
    try:
        order = await use_case.get_order(number)
    except SolidusError as e:
        raise to_http_exception(e)
    authorize_order(order, user, order_token)
    return order  # type: ignore[no-any-return]
