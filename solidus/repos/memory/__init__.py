"""
Memory repository implementations.

These implementations use Python dictionaries for storage and back the API
by default. They keep the same async interfaces as the Minio order store so
use cases cannot tell them apart.
"""

from .catalog import (
    MemoryPaymentMethodRepository,
    MemoryPromotionRepository,
    MemoryShippingMethodRepository,
    MemoryStoreRepository,
    MemoryVariantRepository,
)
from .order import MemoryOrderRepository
from .user import MemoryUserRepository

__all__ = [
    "MemoryOrderRepository",
    "MemoryPaymentMethodRepository",
    "MemoryPromotionRepository",
    "MemoryShippingMethodRepository",
    "MemoryStoreRepository",
    "MemoryUserRepository",
    "MemoryVariantRepository",
]
