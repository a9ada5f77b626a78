"""
Memory implementation of UserRepository.
"""

import logging
from typing import Any, Dict, List, Optional

from solidus.domain import User
from solidus.repositories import UserRepository
from .base import MemoryRepositoryMixin

logger = logging.getLogger(__name__)


class MemoryUserRepository(UserRepository, MemoryRepositoryMixin[User]):
    def __init__(self) -> None:
        self.logger = logger
        self.entity_name = "User"
        self.storage_dict: Dict[str, User] = {}

    async def get(self, entity_id: str) -> Optional[User]:
        return self.get_entity(entity_id)

    async def save(self, entity: User) -> None:
        self.save_entity(entity, "id")

    async def generate_id(self) -> str:
        return self.generate_entity_id("user")

    async def list_all(self) -> List[User]:
        return self.list_entities()

    async def find_by_email(self, email: str) -> Optional[User]:
        normalized = email.strip().lower()
        for user in self.storage_dict.values():
            if user.email == normalized:
                return user.model_copy(deep=True)
        return None

    async def find_by_api_key(self, api_key: str) -> Optional[User]:
        if not api_key:
            return None
        for user in self.storage_dict.values():
            if user.spree_api_key == api_key:
                return user.model_copy(deep=True)
        return None

    def _add_entity_specific_log_data(
        self, entity: User, log_data: Dict[str, Any]
    ) -> None:
        log_data["admin"] = entity.admin
