from __future__ import annotations

from typing import List, Optional

from src.core.errors import BadRequestError
from src.schemas.pricing import ItineraryDay, PackageVariant, RoomAllocation, TransportLeg


def resolve_hotel_for_day(day: ItineraryDay, variant: Optional[PackageVariant]) -> Optional[str]:
    if variant is None:
        return day.hotel_id

    hotel_ids = {
        mapping.hotel_id
        for mapping in variant.hotel_mappings
        if mapping.variant_id == variant.id and mapping.day_number == day.day_number
    }
    if len(hotel_ids) > 1:
        raise BadRequestError(
            f"Variant {variant.id} maps day {day.day_number} to more than one hotel",
            details={"variantId": variant.id, "dayNumber": day.day_number, "hotelIds": sorted(hotel_ids)},
        )
    if hotel_ids:
        return hotel_ids.pop()
    return day.hotel_id


def resolve_allocations_for_day(
    day: ItineraryDay, variant: Optional[PackageVariant]
) -> List[RoomAllocation]:
    # A variant list replaces the day's rooms outright; merging would double-book.
    if variant is not None and day.day_number in variant.room_allocations:
        return list(variant.room_allocations[day.day_number])
    return list(day.room_allocations)


def resolve_transport_for_day(
    day: ItineraryDay, variant: Optional[PackageVariant]
) -> Optional[TransportLeg]:
    # Same replacement rule as rooms; a null leg drops the day's transport.
    if variant is not None and day.day_number in variant.transport_legs:
        return variant.transport_legs[day.day_number]
    return day.transport_leg
