from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from src.core.errors import BadRequestError
from src.pricing.catalog import RateCatalog
from src.pricing.resolver import resolve_rate
from src.schemas.pricing import (
    AmbiguousRateWarning,
    HotelRateKey,
    ItineraryDay,
    RoomAllocation,
    RoomCostLine,
)


def hotel_rate_key(hotel_id: str, allocation: RoomAllocation) -> HotelRateKey:
    return HotelRateKey(
        hotel_id=hotel_id,
        room_type_id=allocation.room_type_id,
        occupancy_type_id=allocation.occupancy_type_id,
        meal_plan_id=allocation.meal_plan_id,
    )


def price_room_allocation(
    day: ItineraryDay,
    allocation: RoomAllocation,
    hotel_id: str,
    nights: int,
    catalog: RateCatalog,
    warnings: Optional[List[AmbiguousRateWarning]] = None,
) -> RoomCostLine:
    if nights == 0:
        return RoomCostLine(
            room_type_id=allocation.room_type_id,
            occupancy_type_id=allocation.occupancy_type_id,
            meal_plan_id=allocation.meal_plan_id,
            quantity=allocation.quantity,
            nights=0,
            total_cost=Decimal("0"),
        )

    key = hotel_rate_key(hotel_id, allocation)
    rate = resolve_rate(key, day.day_date, catalog.hotel_candidates(key), warnings)
    return RoomCostLine(
        room_type_id=allocation.room_type_id,
        occupancy_type_id=allocation.occupancy_type_id,
        meal_plan_id=allocation.meal_plan_id,
        quantity=allocation.quantity,
        nights=nights,
        rate_id=rate.id,
        rate_start_date=rate.start_date,
        rate_end_date=rate.end_date,
        price_per_night=rate.price,
        total_cost=rate.price * nights * allocation.quantity,
    )


def price_hotel_day(
    day: ItineraryDay,
    hotel_id: Optional[str],
    allocations: Sequence[RoomAllocation],
    catalog: RateCatalog,
    warnings: Optional[List[AmbiguousRateWarning]] = None,
) -> Tuple[Decimal, List[RoomCostLine]]:
    if not allocations:
        return Decimal("0"), []
    if not hotel_id:
        raise BadRequestError(
            f"Day {day.day_number} has room allocations but no hotel",
            details={"dayNumber": day.day_number},
        )

    lines = [
        price_room_allocation(day, allocation, hotel_id, day.nights, catalog, warnings)
        for allocation in allocations
    ]
    return sum((line.total_cost for line in lines), Decimal("0")), lines
