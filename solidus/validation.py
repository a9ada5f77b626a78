"""
Runtime validation utilities for ensuring architectural contracts and data
integrity.

This module provides functions to validate:

- Repository implementations against their defined Protocols using
  @runtime_checkable.
- Dictionary data (for example catalog fixtures) against Pydantic domain
  models.

The goal is to catch configuration and data errors early at critical
application boundaries: when use cases are wired together and when
external data enters the system.
"""

import logging
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

P = TypeVar("P")
M = TypeVar("M", bound=BaseModel)


class RepositoryValidationError(Exception):
    """Raised when repository contract validation fails"""

    pass


class DomainValidationError(Exception):
    """Raised when domain model validation fails"""

    pass


def validate_repository_protocol(
    repository: object, protocol: Type[P]
) -> None:
    """
    Validate that a repository implementation satisfies a protocol contract.

    Args:
        repository: The repository implementation to validate
        protocol: The protocol class to validate against

    Raises:
        RepositoryValidationError: If validation fails

    Example:
        >>> from solidus.repos.memory import MemoryOrderRepository
        >>> from solidus.repositories import OrderRepository
        >>> validate_repository_protocol(
        ...     MemoryOrderRepository(), OrderRepository
        ... )
    """
    logger.debug(
        "Validating repository protocol",
        extra={
            "repository_type": type(repository).__name__,
            "protocol_name": protocol.__name__,
        },
    )

    if not isinstance(repository, protocol):
        error_message = (
            f"Repository {type(repository).__name__} does not implement "
            f"{protocol.__name__} protocol. Missing or incorrect methods."
        )

        logger.error(
            "Repository protocol validation failed",
            extra={
                "repository_type": type(repository).__name__,
                "protocol_name": protocol.__name__,
            },
        )

        raise RepositoryValidationError(error_message)


def ensure_repository_protocol(repository: object, protocol: Type[P]) -> P:
    """
    Validate and return a repository with proper type annotation.

    Raises:
        RepositoryValidationError: If validation fails
    """
    validate_repository_protocol(repository, protocol)
    return repository  # type: ignore[return-value]


def validate_domain_model(data: Any, model_class: Type[M]) -> M:
    """
    Validate and convert dictionary data to a domain model using Pydantic.

    Args:
        data: Dictionary data to validate
        model_class: Pydantic model class to validate against

    Returns:
        Validated domain model instance

    Raises:
        DomainValidationError: If validation fails
    """
    logger.debug(
        "Validating domain model",
        extra={
            "model_class": model_class.__name__,
            "data_keys": (
                list(data.keys()) if isinstance(data, dict) else "not_dict"
            ),
        },
    )

    if not isinstance(data, dict):
        raise DomainValidationError(
            f"Expected a mapping for {model_class.__name__}, got "
            f"{type(data).__name__}"
        )

    try:
        return model_class(**data)
    except ValidationError as e:
        logger.error(
            "Domain model validation failed",
            extra={
                "model_class": model_class.__name__,
                "validation_errors": e.errors(),
            },
        )
        raise DomainValidationError(
            f"Domain model validation failed for {model_class.__name__}: {e}"
        ) from e


# Convenience functions for common validation patterns
def ensure_user_repository(repo: object) -> Any:
    """Ensure an object satisfies the UserRepository protocol"""
    from solidus.repositories import UserRepository

    return ensure_repository_protocol(repo, UserRepository)  # type: ignore[type-abstract]


def ensure_order_repository(repo: object) -> Any:
    """Ensure an object satisfies the OrderRepository protocol"""
    from solidus.repositories import OrderRepository

    return ensure_repository_protocol(repo, OrderRepository)  # type: ignore[type-abstract]


def ensure_variant_repository(repo: object) -> Any:
    """Ensure an object satisfies the VariantRepository protocol"""
    from solidus.repositories import VariantRepository

    return ensure_repository_protocol(repo, VariantRepository)  # type: ignore[type-abstract]


def ensure_promotion_repository(repo: object) -> Any:
    """Ensure an object satisfies the PromotionRepository protocol"""
    from solidus.repositories import PromotionRepository

    return ensure_repository_protocol(repo, PromotionRepository)  # type: ignore[type-abstract]


def ensure_shipping_method_repository(repo: object) -> Any:
    """Ensure an object satisfies the ShippingMethodRepository protocol"""
    from solidus.repositories import ShippingMethodRepository

    return ensure_repository_protocol(repo, ShippingMethodRepository)  # type: ignore[type-abstract]


def ensure_payment_method_repository(repo: object) -> Any:
    """Ensure an object satisfies the PaymentMethodRepository protocol"""
    from solidus.repositories import PaymentMethodRepository

    return ensure_repository_protocol(repo, PaymentMethodRepository)  # type: ignore[type-abstract]


def ensure_store_repository(repo: object) -> Any:
    """Ensure an object satisfies the StoreRepository protocol"""
    from solidus.repositories import StoreRepository

    return ensure_repository_protocol(repo, StoreRepository)  # type: ignore[type-abstract]
