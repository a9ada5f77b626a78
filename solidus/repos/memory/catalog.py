"""
Memory implementations of the catalog repositories: stores, variants,
promotions, shipping methods and payment methods.

Catalog records are loaded once (usually from a fixture) and read on
every checkout request.
"""

import logging
from typing import Dict, List, Optional

from solidus.domain import (
    PaymentMethod,
    Promotion,
    ShippingMethod,
    Store,
    Variant,
)
from solidus.repositories import (
    PaymentMethodRepository,
    PromotionRepository,
    ShippingMethodRepository,
    StoreRepository,
    VariantRepository,
)
from .base import MemoryRepositoryMixin

logger = logging.getLogger(__name__)


class MemoryStoreRepository(StoreRepository, MemoryRepositoryMixin[Store]):
    def __init__(self) -> None:
        self.logger = logger
        self.entity_name = "Store"
        self.storage_dict: Dict[str, Store] = {}

    async def get(self, entity_id: str) -> Optional[Store]:
        return self.get_entity(entity_id)

    async def save(self, entity: Store) -> None:
        self.save_entity(entity, "id")

    async def generate_id(self) -> str:
        return self.generate_entity_id("store")

    async def list_all(self) -> List[Store]:
        return self.list_entities()

    async def get_default(self) -> Optional[Store]:
        stores = self.list_entities()
        for store in stores:
            if store.default:
                return store
        return stores[0] if stores else None


class MemoryVariantRepository(
    VariantRepository, MemoryRepositoryMixin[Variant]
):
    def __init__(self) -> None:
        self.logger = logger
        self.entity_name = "Variant"
        self.storage_dict: Dict[str, Variant] = {}

    async def get(self, entity_id: str) -> Optional[Variant]:
        return self.get_entity(entity_id)

    async def save(self, entity: Variant) -> None:
        self.save_entity(entity, "id")

    async def generate_id(self) -> str:
        return self.generate_entity_id("variant")

    async def list_all(self) -> List[Variant]:
        return self.list_entities()


class MemoryPromotionRepository(
    PromotionRepository, MemoryRepositoryMixin[Promotion]
):
    def __init__(self) -> None:
        self.logger = logger
        self.entity_name = "Promotion"
        self.storage_dict: Dict[str, Promotion] = {}

    async def get(self, entity_id: str) -> Optional[Promotion]:
        return self.get_entity(entity_id)

    async def save(self, entity: Promotion) -> None:
        self.save_entity(entity, "id")

    async def generate_id(self) -> str:
        return self.generate_entity_id("promo")

    async def list_all(self) -> List[Promotion]:
        return self.list_entities()

    async def find_by_code(self, value: str) -> Optional[Promotion]:
        for promotion in self.storage_dict.values():
            if promotion.find_code(value) is not None:
                return promotion.model_copy(deep=True)
        return None


class MemoryShippingMethodRepository(
    ShippingMethodRepository, MemoryRepositoryMixin[ShippingMethod]
):
    def __init__(self) -> None:
        self.logger = logger
        self.entity_name = "ShippingMethod"
        self.storage_dict: Dict[str, ShippingMethod] = {}

    async def get(self, entity_id: str) -> Optional[ShippingMethod]:
        return self.get_entity(entity_id)

    async def save(self, entity: ShippingMethod) -> None:
        self.save_entity(entity, "id")

    async def generate_id(self) -> str:
        return self.generate_entity_id("ship")

    async def list_all(self) -> List[ShippingMethod]:
        return self.list_entities()


class MemoryPaymentMethodRepository(
    PaymentMethodRepository, MemoryRepositoryMixin[PaymentMethod]
):
    def __init__(self) -> None:
        self.logger = logger
        self.entity_name = "PaymentMethod"
        self.storage_dict: Dict[str, PaymentMethod] = {}

    async def get(self, entity_id: str) -> Optional[PaymentMethod]:
        return self.get_entity(entity_id)

    async def save(self, entity: PaymentMethod) -> None:
        self.save_entity(entity, "id")

    async def generate_id(self) -> str:
        return self.generate_entity_id("pm")

    async def list_all(self) -> List[PaymentMethod]:
        return self.list_entities()
