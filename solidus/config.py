"""
Runtime configuration for the checkout API.

Settings are read from environment variables once per process and exposed
through ``get_api_config`` so that FastAPI endpoints can depend on them and
tests can override them.
"""

import logging
import os
from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ApiConfig(BaseModel):
    """Configuration values consumed by the API and its dependencies."""

    requires_authentication: bool = Field(
        True, description="Reject requests that carry no API key"
    )
    order_store: Literal["memory", "minio"] = "memory"
    minio_endpoint: str = "localhost:9000"
    minio_access_key: str = "minioadmin"
    minio_secret_key: str = "minioadmin"
    minio_bucket: str = "orders"
    catalog_fixture: Optional[str] = None


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def load_api_config() -> ApiConfig:
    """Build an ApiConfig from the current environment."""
    config = ApiConfig(
        requires_authentication=_env_flag(
            "SOLIDUS_REQUIRES_AUTHENTICATION", True
        ),
        order_store=os.environ.get("SOLIDUS_ORDER_STORE", "memory"),
        minio_endpoint=os.environ.get("MINIO_ENDPOINT", "localhost:9000"),
        minio_access_key=os.environ.get("MINIO_ACCESS_KEY", "minioadmin"),
        minio_secret_key=os.environ.get("MINIO_SECRET_KEY", "minioadmin"),
        minio_bucket=os.environ.get("SOLIDUS_ORDER_BUCKET", "orders"),
        catalog_fixture=os.environ.get("SOLIDUS_CATALOG_FIXTURE"),
    )
    logger.debug(
        "Loaded API configuration",
        extra={
            "requires_authentication": config.requires_authentication,
            "order_store": config.order_store,
        },
    )
    return config


@lru_cache(maxsize=1)
def get_api_config() -> ApiConfig:
    """FastAPI dependency returning the process-wide configuration."""
    return load_api_config()
