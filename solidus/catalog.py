"""
Initialize Catalog Use Case.

Loads the store, variants, shipping methods, payment methods and
promotions a storefront needs from a YAML fixture. The use case is
idempotent: records whose id already exists are left untouched, so it is
safe to run on every application start.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Type

import yaml
from pydantic import BaseModel

from solidus.domain import (
    PaymentMethod,
    Promotion,
    ShippingMethod,
    Store,
    Variant,
)
from solidus.repositories import (
    BaseRepository,
    PaymentMethodRepository,
    PromotionRepository,
    ShippingMethodRepository,
    StoreRepository,
    VariantRepository,
)
from solidus.validation import (
    DomainValidationError,
    ensure_payment_method_repository,
    ensure_promotion_repository,
    ensure_shipping_method_repository,
    ensure_store_repository,
    ensure_variant_repository,
    validate_domain_model,
)

logger = logging.getLogger(__name__)

DEFAULT_FIXTURE = Path(__file__).parent / "fixtures" / "catalog.yaml"

# Fixture section name -> domain model, in load order
SECTIONS: Dict[str, Type[BaseModel]] = {
    "stores": Store,
    "variants": Variant,
    "shipping_methods": ShippingMethod,
    "payment_methods": PaymentMethod,
    "promotions": Promotion,
}


def load_catalog_fixture(path: Path) -> Dict[str, List[BaseModel]]:
    """Parse and validate a catalog fixture file.

    Raises:
        DomainValidationError: if the file is not a mapping of known
            sections or a record fails validation
    """
    with open(path, "r", encoding="utf-8") as fixture:
        raw = yaml.safe_load(fixture) or {}

    if not isinstance(raw, dict):
        raise DomainValidationError(
            f"Catalog fixture {path} must contain a mapping"
        )
    unknown = set(raw) - set(SECTIONS)
    if unknown:
        raise DomainValidationError(
            f"Unknown catalog sections: {', '.join(sorted(unknown))}"
        )

    catalog: Dict[str, List[BaseModel]] = {}
    for section, model_class in SECTIONS.items():
        records: List[Any] = raw.get(section) or []
        catalog[section] = [
            validate_domain_model(record, model_class) for record in records
        ]
    return catalog


class InitializeCatalogUseCase:
    def __init__(
        self,
        store_repo: StoreRepository,
        variant_repo: VariantRepository,
        shipping_method_repo: ShippingMethodRepository,
        payment_method_repo: PaymentMethodRepository,
        promotion_repo: PromotionRepository,
    ) -> None:
        self.repositories: Dict[str, BaseRepository[Any]] = {
            "stores": ensure_store_repository(store_repo),
            "variants": ensure_variant_repository(variant_repo),
            "shipping_methods": ensure_shipping_method_repository(
                shipping_method_repo
            ),
            "payment_methods": ensure_payment_method_repository(
                payment_method_repo
            ),
            "promotions": ensure_promotion_repository(promotion_repo),
        }

    async def execute(self, path: Path = DEFAULT_FIXTURE) -> Dict[str, int]:
        """Load the fixture at ``path``.

        Returns:
            Number of newly created records per section
        """
        logger.info("Loading catalog fixture", extra={"path": str(path)})
        try:
            catalog = load_catalog_fixture(path)
        except (OSError, yaml.YAMLError, DomainValidationError) as e:
            logger.error(
                "Failed to load catalog fixture",
                exc_info=True,
                extra={
                    "path": str(path),
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                },
            )
            raise

        created: Dict[str, int] = {}
        for section, records in catalog.items():
            repo = self.repositories[section]
            created[section] = 0
            for record in records:
                record_id = getattr(record, "id")
                if await repo.get(record_id) is not None:
                    logger.debug(
                        "Catalog record already exists, skipping",
                        extra={"section": section, "id": record_id},
                    )
                    continue
                await repo.save(record)
                created[section] += 1

        logger.info("Catalog loaded", extra={"created_counts": created})
        return created
