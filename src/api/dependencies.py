from __future__ import annotations

from functools import lru_cache

from src.repositories.pricing_catalog_repository import PricingCatalogRepository
from src.services.pricing_service import PricingService


@lru_cache
def get_pricing_catalog_repository() -> PricingCatalogRepository:
    return PricingCatalogRepository()


def get_pricing_service() -> PricingService:
    return PricingService(repository=get_pricing_catalog_repository())
