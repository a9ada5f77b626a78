"""
FastAPI application for the Solidus checkout API.

The API provides endpoints for:
- User registration
- Orders, line items and coupon codes
- Payments
- Checkout state transitions and completion
- Health checks

When ``SOLIDUS_CATALOG_FIXTURE`` is set the catalog (store, variants,
shipping methods, payment methods, promotions) is loaded from that YAML file
at startup.
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi_pagination import add_pagination
from fastapi_pagination.utils import disable_installed_extensions_check
from starlette.exceptions import HTTPException as StarletteHTTPException

from solidus.api.dependencies import (
    get_payment_method_repository,
    get_promotion_repository,
    get_shipping_method_repository,
    get_store_repository,
    get_variant_repository,
)
from solidus.api.errors import (
    http_exception_handler,
    request_validation_exception_handler,
)
from solidus.api.routers import (
    checkouts,
    line_items,
    orders,
    payments,
    system,
    users,
)
from solidus.catalog import InitializeCatalogUseCase
from solidus.config import get_api_config
from solidus.version import solidus_version

# Disable pagination extensions check for cleaner startup
disable_installed_extensions_check()


def setup_logging() -> None:
    """Configure logging based on environment variables"""
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    log_format = os.environ.get(
        "LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Validate log level
    numeric_level = getattr(logging, log_level, None)
    if not isinstance(numeric_level, int):
        print(f"Invalid log level: {log_level}, defaulting to INFO")
        numeric_level = logging.INFO

    logging.basicConfig(
        level=numeric_level,
        format=log_format,
        force=True,  # Override any existing configuration
    )
    logging.getLogger("uvicorn").setLevel(numeric_level)


setup_logging()
logger = logging.getLogger(__name__)


async def initialize_catalog(path: Path) -> None:
    use_case = InitializeCatalogUseCase(
        store_repo=await get_store_repository(),
        variant_repo=await get_variant_repository(),
        shipping_method_repo=await get_shipping_method_repository(),
        payment_method_repo=await get_payment_method_repository(),
        promotion_repo=await get_promotion_repository(),
    )
    created = await use_case.execute(path)
    logger.info("Catalog initialized", extra={"created_counts": created})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    config = get_api_config()
    if config.catalog_fixture:
        await initialize_catalog(Path(config.catalog_fixture))
    logger.info(
        "Solidus API started",
        extra={
            "version": solidus_version(),
            "order_store": config.order_store,
            "requires_authentication": config.requires_authentication,
        },
    )
    yield


def create_app() -> FastAPI:
    application = FastAPI(
        title="Solidus Checkout API",
        description="Storefront API for carts, coupons, payments and checkout",
        version=solidus_version(),
        lifespan=lifespan,
    )

    # Add pagination support
    _ = add_pagination(application)

    # Error bodies are rendered without the detail envelope
    application.add_exception_handler(
        StarletteHTTPException, http_exception_handler  # type: ignore[arg-type]
    )
    application.add_exception_handler(
        RequestValidationError,
        request_validation_exception_handler,  # type: ignore[arg-type]
    )

    application.include_router(system.router, tags=["System"])
    application.include_router(
        users.router, prefix="/api/users", tags=["Users"]
    )
    application.include_router(
        orders.router, prefix="/api/orders", tags=["Orders"]
    )
    application.include_router(
        line_items.router,
        prefix="/api/orders/{number}/line_items",
        tags=["Line Items"],
    )
    application.include_router(
        payments.router,
        prefix="/api/orders/{number}/payments",
        tags=["Payments"],
    )
    application.include_router(
        checkouts.router, prefix="/api/checkouts", tags=["Checkouts"]
    )
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "solidus.api.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
