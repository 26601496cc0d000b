from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


# Date columns are kept as raw strings: older rows were written as UTC
# timestamps and must go through the calendar normalizer, not a datetime parse.
class HotelPricingRecord(BaseModel):
    id: str
    hotel_id: Optional[str] = None
    room_type_id: Optional[str] = None
    occupancy_type_id: Optional[str] = None
    meal_plan_id: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    price: Optional[Decimal] = None
    is_active: Optional[bool] = None
    created_at: Optional[datetime] = None


class TransportPricingRecord(BaseModel):
    id: str
    location_id: Optional[str] = None
    vehicle_type_id: Optional[str] = None
    transport_type: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    price: Optional[Decimal] = None
    is_active: Optional[bool] = None
    created_at: Optional[datetime] = None


class VariantHotelMappingRecord(BaseModel):
    id: str
    package_variant_id: str
    day_number: Optional[int] = None
    hotel_id: Optional[str] = None
