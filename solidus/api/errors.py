"""
Translation of domain errors into HTTP errors.

Routers catch ``SolidusError`` and re-raise the result of
``to_http_exception``; anything else is logged by the router and reported
as a generic 500.

The exception handlers registered by ``create_app`` render every error
body at the top level as ``{"error": ..., "errors": {...}}``, the same
shape a failed coupon application answers with.
"""

from typing import Any, Dict, List

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from solidus.errors import (
    CheckoutError,
    ExpectedTotalMismatchError,
    InvalidResourceError,
    InvalidTransitionError,
    NotAuthorizedError,
    ResourceNotFoundError,
    SolidusError,
)

NOT_FOUND = "The resource you were looking for could not be found."
UNAUTHORIZED = "You are not authorized to perform that action."
INVALID_RESOURCE = "Invalid resource. Please fix errors and try again."
COULD_NOT_TRANSITION = (
    "The order could not be transitioned. Please fix the errors and try "
    "again."
)
EXPECTED_TOTAL_MISMATCH = (
    "Expected total does not match the order total. Please review your "
    "order and try again."
)


def to_http_exception(error: SolidusError) -> HTTPException:
    if isinstance(error, ResourceNotFoundError):
        return HTTPException(status_code=404, detail={"error": NOT_FOUND})
    if isinstance(error, NotAuthorizedError):
        return HTTPException(status_code=401, detail={"error": UNAUTHORIZED})
    if isinstance(error, InvalidResourceError):
        return HTTPException(
            status_code=422,
            detail={"error": INVALID_RESOURCE, "errors": error.errors},
        )
    if isinstance(error, CheckoutError):
        return HTTPException(
            status_code=422,
            detail={"error": COULD_NOT_TRANSITION, "errors": error.errors},
        )
    if isinstance(error, InvalidTransitionError):
        return HTTPException(
            status_code=422,
            detail={
                "error": COULD_NOT_TRANSITION,
                "errors": {"state": [str(error)]},
            },
        )
    if isinstance(error, ExpectedTotalMismatchError):
        return HTTPException(
            status_code=400,
            detail={
                "errors": {"expected_total": [EXPECTED_TOTAL_MISMATCH]},
            },
        )
    return HTTPException(
        status_code=500, detail={"error": "Internal server error."}
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render HTTP errors without the ``detail`` envelope."""
    content: Dict[str, Any]
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"error": exc.detail}
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies as invalid resources."""
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        location = [str(part) for part in error["loc"] if part != "body"]
        field = ".".join(location) or "base"
        errors.setdefault(field, []).append(error["msg"])
    return JSONResponse(
        status_code=422,
        content={"error": INVALID_RESOURCE, "errors": errors},
    )
