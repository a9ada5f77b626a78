"""
Dependency injection for FastAPI endpoints.

Repositories are process-wide singletons held by a ``DependencyContainer``.
Tests replace them through ``app.dependency_overrides``.
"""

import logging
from typing import Any, Awaitable, Callable, Dict

from fastapi import Depends

from solidus.config import ApiConfig, get_api_config
from solidus.repos.memory import (
    MemoryOrderRepository,
    MemoryPaymentMethodRepository,
    MemoryPromotionRepository,
    MemoryShippingMethodRepository,
    MemoryStoreRepository,
    MemoryUserRepository,
    MemoryVariantRepository,
)
from solidus.repositories import (
    OrderRepository,
    PaymentMethodRepository,
    PromotionRepository,
    ShippingMethodRepository,
    StoreRepository,
    UserRepository,
    VariantRepository,
)
from solidus.usecase import (
    CheckoutUseCase,
    CouponUseCase,
    LineItemUseCase,
    OrderUseCase,
    PaymentUseCase,
    UserUseCase,
)

logger = logging.getLogger(__name__)


class DependencyContainer:
    """
    Dependency injection container with singleton lifecycle management.
    Always creates real repositories; mocks are provided by test overrides.
    """

    def __init__(self) -> None:
        self._instances: Dict[str, Any] = {}

    async def get_or_create(
        self, key: str, factory: Callable[[], Awaitable[Any]]
    ) -> Any:
        """Get or create a singleton instance."""
        if key not in self._instances:
            self._instances[key] = await factory()
        return self._instances[key]

    def reset(self) -> None:
        self._instances.clear()

    async def get_order_repository(self, config: ApiConfig) -> Any:
        async def factory() -> Any:
            if config.order_store == "minio":
                from solidus.repos.minio import MinioOrderRepository

                logger.debug(
                    "Creating Minio order repository",
                    extra={"endpoint": config.minio_endpoint},
                )
                return MinioOrderRepository(
                    endpoint=config.minio_endpoint,
                    access_key=config.minio_access_key,
                    secret_key=config.minio_secret_key,
                    bucket_name=config.minio_bucket,
                )
            return MemoryOrderRepository()

        return await self.get_or_create("order_repository", factory)

    async def get_memory(self, key: str, cls: Callable[[], Any]) -> Any:
        async def factory() -> Any:
            return cls()

        return await self.get_or_create(key, factory)


# Global container instance
_container = DependencyContainer()


def get_container() -> DependencyContainer:
    return _container


async def get_user_repository() -> UserRepository:
    """FastAPI dependency for UserRepository."""
    return await _container.get_memory("user_repository", MemoryUserRepository)  # type: ignore[no-any-return]


async def get_order_repository(
    config: ApiConfig = Depends(get_api_config),
) -> OrderRepository:
    """FastAPI dependency for OrderRepository (memory or Minio)."""
    return await _container.get_order_repository(config)  # type: ignore[no-any-return]


async def get_variant_repository() -> VariantRepository:
    return await _container.get_memory(  # type: ignore[no-any-return]
        "variant_repository", MemoryVariantRepository
    )


async def get_promotion_repository() -> PromotionRepository:
    return await _container.get_memory(  # type: ignore[no-any-return]
        "promotion_repository", MemoryPromotionRepository
    )


async def get_shipping_method_repository() -> ShippingMethodRepository:
    return await _container.get_memory(  # type: ignore[no-any-return]
        "shipping_method_repository", MemoryShippingMethodRepository
    )


async def get_payment_method_repository() -> PaymentMethodRepository:
    return await _container.get_memory(  # type: ignore[no-any-return]
        "payment_method_repository", MemoryPaymentMethodRepository
    )


async def get_store_repository() -> StoreRepository:
    return await _container.get_memory(  # type: ignore[no-any-return]
        "store_repository", MemoryStoreRepository
    )


async def get_user_use_case(
    user_repo: UserRepository = Depends(get_user_repository),
) -> UserUseCase:
    return UserUseCase(user_repo)


async def get_order_use_case(
    order_repo: OrderRepository = Depends(get_order_repository),
    variant_repo: VariantRepository = Depends(get_variant_repository),
    promotion_repo: PromotionRepository = Depends(get_promotion_repository),
    store_repo: StoreRepository = Depends(get_store_repository),
) -> OrderUseCase:
    return OrderUseCase(order_repo, variant_repo, promotion_repo, store_repo)


async def get_line_item_use_case(
    order_repo: OrderRepository = Depends(get_order_repository),
    variant_repo: VariantRepository = Depends(get_variant_repository),
    promotion_repo: PromotionRepository = Depends(get_promotion_repository),
) -> LineItemUseCase:
    return LineItemUseCase(order_repo, variant_repo, promotion_repo)


async def get_coupon_use_case(
    order_repo: OrderRepository = Depends(get_order_repository),
    variant_repo: VariantRepository = Depends(get_variant_repository),
    promotion_repo: PromotionRepository = Depends(get_promotion_repository),
) -> CouponUseCase:
    return CouponUseCase(order_repo, variant_repo, promotion_repo)


async def get_payment_use_case(
    order_repo: OrderRepository = Depends(get_order_repository),
    variant_repo: VariantRepository = Depends(get_variant_repository),
    promotion_repo: PromotionRepository = Depends(get_promotion_repository),
    payment_method_repo: PaymentMethodRepository = Depends(
        get_payment_method_repository
    ),
) -> PaymentUseCase:
    return PaymentUseCase(
        order_repo, variant_repo, promotion_repo, payment_method_repo
    )


async def get_checkout_use_case(
    order_repo: OrderRepository = Depends(get_order_repository),
    variant_repo: VariantRepository = Depends(get_variant_repository),
    promotion_repo: PromotionRepository = Depends(get_promotion_repository),
    shipping_method_repo: ShippingMethodRepository = Depends(
        get_shipping_method_repository
    ),
    payment_method_repo: PaymentMethodRepository = Depends(
        get_payment_method_repository
    ),
) -> CheckoutUseCase:
    return CheckoutUseCase(
        order_repo,
        variant_repo,
        promotion_repo,
        shipping_method_repo,
        payment_method_repo,
    )
