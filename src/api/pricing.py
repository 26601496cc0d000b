from __future__ import annotations

from fastapi import APIRouter, Depends

from src.api.dependencies import get_pricing_service
from src.core.config import get_settings
from src.schemas.pricing import (
    CatalogAuditResult,
    PricingInput,
    PricingResult,
    RateCatalogInput,
    RatePeriodSplit,
    RatePeriodSplitRequest,
)
from src.services.pricing_service import PricingService
from src.shared.response import Meta, ResponseEnvelope, build_meta


router = APIRouter(prefix="/pricing", tags=["pricing"])


def _meta(source: str) -> Meta:
    return build_meta(source=source, calculation_version=get_settings().pricing_calculation_version)


@router.post("/calculate")
def calculate_package_price(
    payload: PricingInput,
    service: PricingService = Depends(get_pricing_service),
) -> ResponseEnvelope[PricingResult]:
    data = service.calculate(payload)
    return ResponseEnvelope(data=data, meta=_meta("request"))


@router.post("/quote")
def quote_package_price(
    payload: PricingInput,
    service: PricingService = Depends(get_pricing_service),
) -> ResponseEnvelope[PricingResult]:
    data = service.quote(payload)
    return ResponseEnvelope(
        data=data, meta=_meta("hotel_pricing,transport_pricing,variant_hotel_mappings")
    )


@router.post("/catalog/overlaps")
def audit_rate_catalog(
    payload: RateCatalogInput,
    service: PricingService = Depends(get_pricing_service),
) -> ResponseEnvelope[CatalogAuditResult]:
    data = service.audit_catalog(payload)
    return ResponseEnvelope(data=data, meta=_meta("request"))


@router.post("/catalog/split-preview")
def preview_rate_period_split(
    payload: RatePeriodSplitRequest,
    service: PricingService = Depends(get_pricing_service),
) -> ResponseEnvelope[RatePeriodSplit]:
    data = service.preview_split(payload)
    return ResponseEnvelope(data=data, meta=_meta("request"))
