from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence, Tuple

from src.core.config import get_settings
from src.core.supabase import SupabaseClient, in_filter
from src.models.pricing import (
    HotelPricingRecord,
    TransportPricingRecord,
    VariantHotelMappingRecord,
)
from src.pricing.calendar import add_days

HOTEL_PRICING_COLUMNS = (
    "id,hotel_id,room_type_id,occupancy_type_id,meal_plan_id,"
    "start_date,end_date,price,is_active,created_at"
)
TRANSPORT_PRICING_COLUMNS = (
    "id,location_id,vehicle_type_id,transport_type,start_date,end_date,price,is_active,created_at"
)


def _window_filters(start_date: date, end_date: date) -> List[Tuple[str, str]]:
    # Widened by a day each side for rows stored as shifted UTC timestamps;
    # exact per-day matching happens in the engine.
    return [
        ("is_active", "eq.true"),
        ("start_date", f"lte.{add_days(end_date, 1).isoformat()}"),
        ("end_date", f"gte.{add_days(start_date, -1).isoformat()}"),
    ]


class PricingCatalogRepository:
    def __init__(self, client: Optional[SupabaseClient] = None) -> None:
        self._client = client
        self.page_size = get_settings().pricing_catalog_page_size

    @property
    def client(self) -> SupabaseClient:
        if self._client is None:
            self._client = SupabaseClient()
        return self._client

    def list_hotel_rates(
        self, hotel_ids: Sequence[str], start_date: date, end_date: date
    ) -> List[HotelPricingRecord]:
        if not hotel_ids:
            return []
        filters = [("hotel_id", in_filter(sorted(set(hotel_ids))))]
        filters.extend(_window_filters(start_date, end_date))
        rows = self.client.select_all(
            table="hotel_pricing",
            select=HOTEL_PRICING_COLUMNS,
            filters=filters,
            order="start_date.asc,id.asc",
            page_size=self.page_size,
        )
        return [HotelPricingRecord.model_validate(row) for row in rows]

    def list_transport_rates(
        self, location_ids: Sequence[str], start_date: date, end_date: date
    ) -> List[TransportPricingRecord]:
        if not location_ids:
            return []
        filters = [("location_id", in_filter(sorted(set(location_ids))))]
        filters.extend(_window_filters(start_date, end_date))
        rows = self.client.select_all(
            table="transport_pricing",
            select=TRANSPORT_PRICING_COLUMNS,
            filters=filters,
            order="start_date.asc,id.asc",
            page_size=self.page_size,
        )
        return [TransportPricingRecord.model_validate(row) for row in rows]

    def list_variant_hotel_mappings(self, variant_id: str) -> List[VariantHotelMappingRecord]:
        rows = self.client.select(
            table="variant_hotel_mappings",
            select="id,package_variant_id,day_number,hotel_id",
            filters=[("package_variant_id", f"eq.{variant_id}")],
            order="day_number.asc",
        )
        return [VariantHotelMappingRecord.model_validate(row) for row in rows]
