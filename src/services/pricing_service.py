from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Set, Type

from pydantic import ValidationError

from src.core.config import get_settings
from src.core.errors import AppError, BadRequestError
from src.models.pricing import HotelPricingRecord, TransportPricingRecord
from src.pricing.catalog import find_overlapping_rates, plan_period_split
from src.pricing.engine import calculate
from src.repositories.pricing_catalog_repository import PricingCatalogRepository
from src.schemas.pricing import (
    CatalogAuditResult,
    DatedRate,
    HotelRate,
    PricingInput,
    PricingResult,
    RateCatalogInput,
    RatePeriodSplit,
    RatePeriodSplitRequest,
    TransportRate,
)

logger = logging.getLogger(__name__)


class PricingService:
    def __init__(self, repository: PricingCatalogRepository) -> None:
        self.repository = repository
        self.settings = get_settings()

    def _with_default_markup(self, pricing_input: PricingInput) -> PricingInput:
        if pricing_input.markup is not None:
            return pricing_input
        return pricing_input.model_copy(
            update={"markup": self.settings.pricing_default_markup_percent}
        )

    def calculate(self, pricing_input: PricingInput) -> PricingResult:
        return calculate(self._with_default_markup(pricing_input))

    def quote(self, pricing_input: PricingInput) -> PricingResult:
        mappings = dict(pricing_input.variant_hotel_mappings)
        if pricing_input.variant_id and not mappings:
            mappings = self._load_variant_mappings(pricing_input.variant_id)

        hotel_ids: Set[str] = {day.hotel_id for day in pricing_input.itineraries if day.hotel_id}
        hotel_ids.update(mappings.values())
        location_ids: Set[str] = set()
        for day in pricing_input.itineraries:
            variant_leg = pricing_input.variant_transport_legs.get(day.day_number)
            for leg in (day.transport_leg, variant_leg):
                location_id = (leg.location_id or day.location_id) if leg is not None else None
                if location_id:
                    location_ids.add(location_id)

        catalog = self._load_catalog(
            hotel_ids, location_ids, pricing_input.tour_starts_from, pricing_input.tour_ends_on
        )
        quote_input = pricing_input.model_copy(
            update={"variant_hotel_mappings": mappings, "rate_catalog": catalog}
        )
        return self.calculate(quote_input)

    def audit_catalog(self, catalog: RateCatalogInput) -> CatalogAuditResult:
        overlaps = find_overlapping_rates([*catalog.hotel_rates, *catalog.transport_rates])
        if overlaps:
            logger.warning("Rate catalog has %d overlapping active rate pairs", len(overlaps))
        return CatalogAuditResult(
            hotel_rate_count=len(catalog.hotel_rates),
            transport_rate_count=len(catalog.transport_rates),
            overlaps=overlaps,
        )

    def audit_stored_catalog(
        self,
        hotel_ids: Iterable[str],
        location_ids: Iterable[str],
        start_date: date,
        end_date: date,
    ) -> CatalogAuditResult:
        return self.audit_catalog(
            self._load_catalog(set(hotel_ids), set(location_ids), start_date, end_date)
        )

    def preview_split(self, request: RatePeriodSplitRequest) -> RatePeriodSplit:
        return plan_period_split(request.existing, request.new_rate)

    def _load_catalog(
        self, hotel_ids: Set[str], location_ids: Set[str], start_date: date, end_date: date
    ) -> RateCatalogInput:
        hotel_rates = self._to_hotel_rates(
            self.repository.list_hotel_rates(sorted(hotel_ids), start_date, end_date)
        )
        transport_rates = self._to_transport_rates(
            self.repository.list_transport_rates(sorted(location_ids), start_date, end_date)
        )
        logger.info(
            "Loaded %d hotel and %d transport rates for %d hotels, %d locations",
            len(hotel_rates),
            len(transport_rates),
            len(hotel_ids),
            len(location_ids),
        )
        return RateCatalogInput(hotel_rates=hotel_rates, transport_rates=transport_rates)

    def _load_variant_mappings(self, variant_id: str) -> Dict[int, str]:
        mappings: Dict[int, str] = {}
        for record in self.repository.list_variant_hotel_mappings(variant_id):
            if record.day_number is None or record.day_number < 1 or not record.hotel_id:
                logger.warning("Skipping variant hotel mapping %s for variant %s", record.id, variant_id)
                continue
            existing = mappings.get(record.day_number)
            if existing is not None and existing != record.hotel_id:
                raise BadRequestError(
                    f"Variant {variant_id} maps day {record.day_number} to more than one hotel",
                    details={
                        "variantId": variant_id,
                        "dayNumber": record.day_number,
                        "hotelIds": sorted({existing, record.hotel_id}),
                    },
                )
            mappings[record.day_number] = record.hotel_id
        return mappings

    @staticmethod
    def _to_hotel_rates(records: List[HotelPricingRecord]) -> List[HotelRate]:
        rates: List[HotelRate] = []
        for record in records:
            rate = _parse_rate(HotelRate, record)
            if rate is not None:
                rates.append(rate)
        return rates

    @staticmethod
    def _to_transport_rates(records: List[TransportPricingRecord]) -> List[TransportRate]:
        rates: List[TransportRate] = []
        for record in records:
            rate = _parse_rate(TransportRate, record)
            if rate is not None:
                rates.append(rate)
        return rates


def _parse_rate(
    rate_type: Type[DatedRate], record: HotelPricingRecord | TransportPricingRecord
) -> Optional[DatedRate]:
    payload = record.model_dump()
    payload["is_active"] = bool(record.is_active)
    try:
        return rate_type.model_validate(payload)
    except (ValidationError, AppError) as exc:
        # Unusable rows are left out; a day that needed one fails as rate_not_found.
        logger.warning("Skipping %s pricing row %s: %s", rate_type.rate_kind, record.id, exc)
        return None
