from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import get_pricing_service
from src.main import create_app
from src.schemas.pricing import (
    CatalogAuditResult,
    CostBreakdown,
    DayPricing,
    PricingInput,
    PricingResult,
    RateCatalogInput,
    RatePeriodSegment,
    RatePeriodSplit,
    RatePeriodSplitRequest,
)


class FakePricingService:
    def calculate(self, payload: PricingInput) -> PricingResult:
        return PricingResult(
            per_day=[
                DayPricing(
                    day_number=1,
                    day_date=payload.tour_starts_from,
                    hotel_id="hotel-1",
                    hotel_cost=Decimal("10000"),
                    transport_cost=Decimal("0"),
                    total_cost=Decimal("10000"),
                )
            ],
            base_price=Decimal("10000"),
            applied_markup=payload.markup or Decimal("0"),
            markup_amount=Decimal("1000"),
            total_cost=Decimal("11000.00"),
            breakdown=CostBreakdown(accommodation=Decimal("10000"), transport=Decimal("0")),
        )

    def quote(self, payload: PricingInput) -> PricingResult:
        return self.calculate(payload)

    def audit_catalog(self, catalog: RateCatalogInput) -> CatalogAuditResult:
        return CatalogAuditResult(
            hotel_rate_count=len(catalog.hotel_rates),
            transport_rate_count=len(catalog.transport_rates),
            overlaps=[],
        )

    def preview_split(self, request: RatePeriodSplitRequest) -> RatePeriodSplit:
        return RatePeriodSplit(
            rates_to_retire=[],
            periods_to_create=[
                RatePeriodSegment(
                    start_date=date(2025, 7, 1),
                    end_date=date(2025, 9, 30),
                    price=request.new_rate.price,
                    source_rate_id=request.new_rate.id,
                    is_new=True,
                )
            ],
        )


@pytest.fixture()
def client() -> TestClient:
    app = create_app()
    app.dependency_overrides[get_pricing_service] = FakePricingService
    return TestClient(app)
