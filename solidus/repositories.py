"""
Repository interfaces defined as Protocols.

All repository operations in this module follow these principles:

- **Idempotency**: saving the same entity state twice has the same effect
  as saving it once, and lookups never mutate state.

- **Domain Objects**: Methods accept and return domain objects or
  primitives, never storage-specific types.

- **Graceful misses**: lookups return ``None`` for unknown identifiers
  instead of raising.

Use case classes depend on these protocols, not on concrete
implementations, so the in-memory repositories used by tests and the
Minio-backed order store are interchangeable.
"""

from typing import List, Optional, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel

from solidus.domain import (
    Order,
    PaymentMethod,
    Promotion,
    ShippingMethod,
    Store,
    User,
    Variant,
)

T = TypeVar("T", bound=BaseModel)


@runtime_checkable
class BaseRepository(Protocol[T]):
    """Generic CRUD contract shared by every repository.

    Type Parameter:
        T: The domain entity type (must extend Pydantic BaseModel)
    """

    async def get(self, entity_id: str) -> Optional[T]:
        """Retrieve an entity by ID, or None if it does not exist."""
        ...

    async def save(self, entity: T) -> None:
        """Insert or replace an entity."""
        ...

    async def generate_id(self) -> str:
        """Generate a unique entity identifier."""
        ...

    async def list_all(self) -> List[T]:
        """Return every stored entity in insertion order."""
        ...


@runtime_checkable
class UserRepository(BaseRepository[User], Protocol):
    """Stores API users and resolves them by email or API key."""

    async def find_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive lookup by email address."""
        ...

    async def find_by_api_key(self, api_key: str) -> Optional[User]:
        """Resolve the user owning an API key."""
        ...


@runtime_checkable
class OrderRepository(Protocol):
    """Stores orders keyed by their public number.

    Orders are the only aggregate written during checkout, so this is the
    repository with a persistent (Minio) implementation.
    """

    async def get(self, number: str) -> Optional[Order]:
        """Retrieve an order by its number."""
        ...

    async def save(self, order: Order) -> None:
        """Persist the full state of an order, replacing any previous
        version."""
        ...

    async def generate_id(self) -> str:
        """Generate a unique internal order identifier."""
        ...

    async def generate_number(self) -> str:
        """Generate an unused public order number (``R`` + 9 digits)."""
        ...

    async def list_all(self) -> List[Order]:
        """Return every order, oldest first."""
        ...

    async def list_for_user(self, user_id: str) -> List[Order]:
        """Return the orders belonging to a user, oldest first."""
        ...

    async def count_promotion_usage(
        self,
        promotion_id: str,
        promotion_code_id: Optional[str] = None,
        excluded_number: Optional[str] = None,
    ) -> int:
        """Count completed orders that carry a promotion.

        Args:
            promotion_id: Promotion to count
            promotion_code_id: When given, only count orders that used
                this specific code
            excluded_number: Order number to leave out of the count
        """
        ...


@runtime_checkable
class VariantRepository(BaseRepository[Variant], Protocol):
    """Catalog of purchasable variants."""


@runtime_checkable
class PromotionRepository(BaseRepository[Promotion], Protocol):
    async def find_by_code(self, value: str) -> Optional[Promotion]:
        """Find the promotion owning a code, matched case-insensitively."""
        ...


@runtime_checkable
class ShippingMethodRepository(BaseRepository[ShippingMethod], Protocol):
    """Shipping methods with their zones and flat-rate costs."""


@runtime_checkable
class PaymentMethodRepository(BaseRepository[PaymentMethod], Protocol):
    """Payment methods available at checkout."""


@runtime_checkable
class StoreRepository(BaseRepository[Store], Protocol):
    async def get_default(self) -> Optional[Store]:
        """Return the default store, or the first store when none is
        flagged as default."""
        ...
