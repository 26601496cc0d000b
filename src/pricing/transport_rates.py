from __future__ import annotations

from typing import List, Optional

from src.core.errors import BadRequestError
from src.pricing.catalog import RateCatalog
from src.pricing.resolver import resolve_rate
from src.schemas.pricing import (
    AmbiguousRateWarning,
    ItineraryDay,
    TransportCostLine,
    TransportLeg,
    TransportRateKey,
)


def transport_rate_key(day: ItineraryDay, leg: TransportLeg) -> TransportRateKey:
    location_id = leg.location_id or day.location_id
    if not location_id:
        raise BadRequestError(
            f"Day {day.day_number} transport leg has no location",
            details={"dayNumber": day.day_number},
        )
    return TransportRateKey(
        location_id=location_id,
        vehicle_type_id=leg.vehicle_type_id,
        transport_type=leg.transport_type,
    )


def price_transport_leg(
    day: ItineraryDay,
    leg: Optional[TransportLeg],
    catalog: RateCatalog,
    warnings: Optional[List[AmbiguousRateWarning]] = None,
) -> Optional[TransportCostLine]:
    if leg is None:
        return None

    key = transport_rate_key(day, leg)
    rate = resolve_rate(key, day.day_date, catalog.transport_candidates(key), warnings)
    return TransportCostLine(
        location_id=key.location_id,
        vehicle_type_id=key.vehicle_type_id,
        transport_type=key.transport_type,
        quantity=leg.quantity,
        rate_id=rate.id,
        rate_start_date=rate.start_date,
        rate_end_date=rate.end_date,
        price_per_unit=rate.price,
        total_cost=rate.price * leg.quantity,
    )
