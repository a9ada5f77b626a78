"""
Memory implementation of OrderRepository.
"""

import logging
import secrets
from typing import Any, Dict, List, Optional

from solidus.domain import Order
from solidus.repositories import OrderRepository
from .base import MemoryRepositoryMixin

logger = logging.getLogger(__name__)


def count_usage(
    orders: List[Order],
    promotion_id: str,
    promotion_code_id: Optional[str] = None,
    excluded_number: Optional[str] = None,
) -> int:
    """Count completed orders carrying a promotion (and optionally a
    specific code)."""
    count = 0
    for order in orders:
        if not order.is_completed or order.number == excluded_number:
            continue
        for op in order.order_promotions:
            if op.promotion_id != promotion_id:
                continue
            if (
                promotion_code_id is None
                or op.promotion_code_id == promotion_code_id
            ):
                count += 1
                break
    return count


class MemoryOrderRepository(OrderRepository, MemoryRepositoryMixin[Order]):
    """Orders keyed by number in a dictionary."""

    def __init__(self) -> None:
        self.logger = logger
        self.entity_name = "Order"
        self.storage_dict: Dict[str, Order] = {}

    async def get(self, number: str) -> Optional[Order]:
        return self.get_entity(number)

    async def save(self, order: Order) -> None:
        self.save_entity(order, "number")

    async def generate_id(self) -> str:
        return self.generate_entity_id("order")

    async def generate_number(self) -> str:
        while True:
            number = f"R{secrets.randbelow(10**9):09d}"
            if number not in self.storage_dict:
                return number

    async def list_all(self) -> List[Order]:
        return sorted(self.list_entities(), key=lambda o: o.created_at)

    async def list_for_user(self, user_id: str) -> List[Order]:
        return [o for o in await self.list_all() if o.user_id == user_id]

    async def count_promotion_usage(
        self,
        promotion_id: str,
        promotion_code_id: Optional[str] = None,
        excluded_number: Optional[str] = None,
    ) -> int:
        return count_usage(
            list(self.storage_dict.values()),
            promotion_id,
            promotion_code_id,
            excluded_number,
        )

    def _add_entity_specific_log_data(
        self, entity: Order, log_data: Dict[str, Any]
    ) -> None:
        log_data["state"] = entity.state.value
        log_data["total"] = str(entity.total)
