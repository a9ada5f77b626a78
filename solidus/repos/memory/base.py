"""
Shared storage helpers for the in-memory repositories.
"""

import logging
import uuid
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


class MemoryRepositoryMixin(Generic[T]):
    """Dictionary-backed storage keyed by an id field.

    Subclasses set ``storage_dict``, ``entity_name`` and ``logger`` in
    ``__init__``. Entities are stored as deep copies so callers cannot
    mutate repository state without calling ``save``.
    """

    storage_dict: Dict[str, T]
    entity_name: str
    logger: logging.Logger

    def get_entity(self, entity_id: str) -> Optional[T]:
        entity = self.storage_dict.get(entity_id)
        if entity is None:
            self.logger.debug(
                f"Memory{self.entity_name}Repository: {self.entity_name} "
                "not found",
                extra={"entity_id": entity_id},
            )
            return None
        return entity.model_copy(deep=True)

    def save_entity(self, entity: T, id_field: str) -> None:
        entity_id = getattr(entity, id_field)
        log_data: Dict[str, Any] = {"entity_id": entity_id}
        self._add_entity_specific_log_data(entity, log_data)
        self.storage_dict[entity_id] = entity.model_copy(deep=True)
        self.logger.debug(
            f"Memory{self.entity_name}Repository: {self.entity_name} saved",
            extra=log_data,
        )

    def list_entities(self) -> List[T]:
        return [e.model_copy(deep=True) for e in self.storage_dict.values()]

    def generate_entity_id(self, prefix: str) -> str:
        entity_id = f"{prefix}-{uuid.uuid4()}"
        self.logger.debug(
            f"Memory{self.entity_name}Repository: Generated id",
            extra={"entity_id": entity_id},
        )
        return entity_id

    def _add_entity_specific_log_data(
        self, entity: T, log_data: Dict[str, Any]
    ) -> None:
        """Hook for subclasses to enrich save log entries."""
        pass
