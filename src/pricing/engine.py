from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Set, Tuple, Union

from src.core.errors import BadRequestError, InvalidDateError
from src.pricing.calendar import day_date
from src.pricing.catalog import RateCatalog
from src.pricing.hotel_rates import price_hotel_day
from src.pricing.transport_rates import price_transport_leg
from src.pricing.variants import (
    resolve_allocations_for_day,
    resolve_hotel_for_day,
    resolve_transport_for_day,
)
from src.schemas.pricing import (
    AmbiguousRateWarning,
    CostBreakdown,
    DayPricing,
    ItineraryDay,
    PackageVariant,
    PricingInput,
    PricingResult,
    RatePeriodSubtotal,
    RoomCostLine,
    TransportCostLine,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def apply_markup(base_price: Decimal, markup_percent: Decimal) -> Decimal:
    return round_money(base_price * (1 + markup_percent / HUNDRED))


def build_itinerary_days(pricing_input: PricingInput) -> List[ItineraryDay]:
    tour_start = pricing_input.tour_starts_from
    tour_end = pricing_input.tour_ends_on
    if tour_end < tour_start:
        raise InvalidDateError(
            f"Tour ends on {tour_end.isoformat()} before it starts on {tour_start.isoformat()}",
            tour_end,
        )

    days: List[ItineraryDay] = []
    seen: set[int] = set()
    for entry in sorted(pricing_input.itineraries, key=lambda item: item.day_number):
        if entry.day_number in seen:
            raise BadRequestError(
                f"Day {entry.day_number} appears more than once in the itinerary",
                details={"dayNumber": entry.day_number},
            )
        seen.add(entry.day_number)

        on_date = entry.day_date or day_date(tour_start, entry.day_number)
        if not tour_start <= on_date <= tour_end:
            raise InvalidDateError(
                f"Day {entry.day_number} ({on_date.isoformat()}) falls outside the tour "
                f"{tour_start.isoformat()} to {tour_end.isoformat()}",
                on_date,
            )
        days.append(
            ItineraryDay(
                day_number=entry.day_number,
                day_date=on_date,
                hotel_id=entry.hotel_id,
                location_id=entry.location_id,
                nights=entry.nights,
                room_allocations=entry.room_allocations,
                transport_leg=entry.transport_leg,
            )
        )
    return days


def price_day(
    day: ItineraryDay,
    variant: Optional[PackageVariant],
    catalog: RateCatalog,
    warnings: List[AmbiguousRateWarning],
) -> DayPricing:
    hotel_id = resolve_hotel_for_day(day, variant)
    allocations = resolve_allocations_for_day(day, variant)
    hotel_cost, rooms = price_hotel_day(day, hotel_id, allocations, catalog, warnings)
    leg = resolve_transport_for_day(day, variant)
    transport = price_transport_leg(day, leg, catalog, warnings)
    transport_cost = transport.total_cost if transport is not None else ZERO
    return DayPricing(
        day_number=day.day_number,
        day_date=day.day_date,
        hotel_id=hotel_id,
        hotel_cost=hotel_cost,
        transport_cost=transport_cost,
        total_cost=hotel_cost + transport_cost,
        rooms=rooms,
        transport=transport,
    )


def summarize_rate_periods(per_day: List[DayPricing]) -> List[RatePeriodSubtotal]:
    """Group priced lines by the dated rate they resolved to.

    Shows how a tour spanning two seasons splits between them. Zero-night room
    lines carry no rate and are left out.
    """
    groups: Dict[Tuple[str, str], RatePeriodSubtotal] = {}
    day_numbers: Dict[Tuple[str, str], Set[int]] = {}
    for day in per_day:
        lines: List[Tuple[str, Union[RoomCostLine, TransportCostLine]]] = [
            ("hotel", room) for room in day.rooms
        ]
        if day.transport is not None:
            lines.append(("transport", day.transport))
        for rate_kind, line in lines:
            if line.rate_id is None or line.rate_start_date is None or line.rate_end_date is None:
                continue
            group = (rate_kind, line.rate_id)
            if group not in groups:
                groups[group] = RatePeriodSubtotal(
                    rate_kind=rate_kind,
                    rate_id=line.rate_id,
                    start_date=line.rate_start_date,
                    end_date=line.rate_end_date,
                    days=0,
                    subtotal=ZERO,
                )
                day_numbers[group] = set()
            groups[group].subtotal += line.total_cost
            day_numbers[group].add(day.day_number)

    for group, subtotal in groups.items():
        subtotal.days = len(day_numbers[group])
    return sorted(groups.values(), key=lambda item: (item.rate_kind, item.start_date, item.rate_id))


def calculate(pricing_input: PricingInput) -> PricingResult:
    days = build_itinerary_days(pricing_input)
    variant = pricing_input.to_variant()
    catalog = RateCatalog.from_input(pricing_input.rate_catalog)

    warnings: List[AmbiguousRateWarning] = []
    per_day = [price_day(day, variant, catalog, warnings) for day in days]

    accommodation = sum((line.hotel_cost for line in per_day), ZERO)
    transport = sum((line.transport_cost for line in per_day), ZERO)
    base_price = accommodation + transport
    markup = pricing_input.markup if pricing_input.markup is not None else ZERO
    total_cost = apply_markup(base_price, markup)

    logger.debug(
        "Priced %d days (variant=%s): base=%s markup=%s%% total=%s",
        len(per_day),
        variant.id if variant else None,
        base_price,
        markup,
        total_cost,
    )
    return PricingResult(
        per_day=per_day,
        base_price=base_price,
        applied_markup=markup,
        markup_amount=total_cost - base_price,
        total_cost=total_cost,
        breakdown=CostBreakdown(accommodation=accommodation, transport=transport),
        period_breakdown=summarize_rate_periods(per_day),
        variant_id=variant.id if variant else None,
        warnings=warnings,
    )
