"""
Users API router.

Routes (mounted at /api/users):
- POST / - Register a user
- GET /{user_id} - Show a user (self or admin)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from solidus.api.auth import get_current_user
from solidus.api.dependencies import get_user_use_case
from solidus.api.errors import UNAUTHORIZED, to_http_exception
from solidus.api.requests import CreateUserRequest
from solidus.api.responses import UserResponse
from solidus.domain import User
from solidus.errors import SolidusError
from solidus.usecase import UserUseCase

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    request: CreateUserRequest,
    current_user: Optional[User] = Depends(get_current_user),
    use_case: UserUseCase = Depends(get_user_use_case),
) -> UserResponse:
    """Register a new user and issue its API key."""
    logger.info("User creation requested")

    try:
        user = await use_case.create_user(
            email=request.user.email,
            password=request.user.password,
            password_confirmation=request.user.password_confirmation,
        )
    except SolidusError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(
            "Failed to create user",
            exc_info=True,
            extra={"error_type": type(e).__name__, "error_message": str(e)},
        )
        raise HTTPException(
            status_code=500,
            detail="Failed to create user due to an internal error.",
        )

    return UserResponse.from_domain(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    current_user: Optional[User] = Depends(get_current_user),
    use_case: UserUseCase = Depends(get_user_use_case),
) -> UserResponse:
    if current_user is None or (
        current_user.id != user_id and not current_user.admin
    ):
        raise HTTPException(status_code=401, detail={"error": UNAUTHORIZED})

    try:
        user = await use_case.get_user(user_id)
    except SolidusError as e:
        raise to_http_exception(e)

    return UserResponse.from_domain(user)
