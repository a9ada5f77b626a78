"""
Shared fixtures: in-memory repositories, the seeded checkout catalog and an
API client wired to them through dependency overrides.
"""

from decimal import Decimal
from typing import Any, Dict, Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from solidus.api.app import create_app
from solidus.api.dependencies import (
    get_order_repository,
    get_payment_method_repository,
    get_promotion_repository,
    get_shipping_method_repository,
    get_store_repository,
    get_user_repository,
    get_variant_repository,
)
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
from solidus.tests.factories import (
    PaymentMethodFactory,
    PromotionFactory,
    ShippingMethodFactory,
    StoreFactory,
    VariantFactory,
)


@pytest.fixture
def user_repo() -> MemoryUserRepository:
    return MemoryUserRepository()


@pytest.fixture
def order_repo() -> MemoryOrderRepository:
    return MemoryOrderRepository()


@pytest.fixture
def variant_repo() -> MemoryVariantRepository:
    return MemoryVariantRepository()


@pytest.fixture
def promotion_repo() -> MemoryPromotionRepository:
    return MemoryPromotionRepository()


@pytest.fixture
def shipping_method_repo() -> MemoryShippingMethodRepository:
    return MemoryShippingMethodRepository()


@pytest.fixture
def payment_method_repo() -> MemoryPaymentMethodRepository:
    return MemoryPaymentMethodRepository()


@pytest.fixture
def store_repo() -> MemoryStoreRepository:
    return MemoryStoreRepository()


@pytest.fixture
async def catalog(
    variant_repo: MemoryVariantRepository,
    promotion_repo: MemoryPromotionRepository,
    shipping_method_repo: MemoryShippingMethodRepository,
    payment_method_repo: MemoryPaymentMethodRepository,
    store_repo: MemoryStoreRepository,
) -> Dict[str, Any]:
    """Seed the catalog used by the checkout scenarios."""
    seeded: Dict[str, Any] = {
        "store": StoreFactory(),
        "variant_1": VariantFactory(id="variant-1", price=Decimal("100.00")),
        "variant_2": VariantFactory(id="variant-2", price=Decimal("200.00")),
        "shipping_method": ShippingMethodFactory(
            id="ship-ground", zone_country_isos=["US"], cost=Decimal("10.00")
        ),
        "payment_method": PaymentMethodFactory(),
        "promotion": PromotionFactory(),
    }
    await store_repo.save(seeded["store"])
    await variant_repo.save(seeded["variant_1"])
    await variant_repo.save(seeded["variant_2"])
    await shipping_method_repo.save(seeded["shipping_method"])
    await payment_method_repo.save(seeded["payment_method"])
    await promotion_repo.save(seeded["promotion"])
    return seeded


@pytest.fixture
def api_config() -> ApiConfig:
    return ApiConfig(requires_authentication=False)


@pytest.fixture
def app(
    api_config: ApiConfig,
    user_repo: MemoryUserRepository,
    order_repo: MemoryOrderRepository,
    variant_repo: MemoryVariantRepository,
    promotion_repo: MemoryPromotionRepository,
    shipping_method_repo: MemoryShippingMethodRepository,
    payment_method_repo: MemoryPaymentMethodRepository,
    store_repo: MemoryStoreRepository,
) -> Generator[FastAPI, None, None]:
    """Create the API app with every repository replaced by the test's
    memory repositories."""
    app = create_app()
    app.dependency_overrides[get_api_config] = lambda: api_config
    app.dependency_overrides[get_user_repository] = lambda: user_repo
    app.dependency_overrides[get_order_repository] = lambda: order_repo
    app.dependency_overrides[get_variant_repository] = lambda: variant_repo
    app.dependency_overrides[get_promotion_repository] = (
        lambda: promotion_repo
    )
    app.dependency_overrides[get_shipping_method_repository] = (
        lambda: shipping_method_repo
    )
    app.dependency_overrides[get_payment_method_repository] = (
        lambda: payment_method_repo
    )
    app.dependency_overrides[get_store_repository] = lambda: store_repo
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client
