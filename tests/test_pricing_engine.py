from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.core.errors import BadRequestError, InvalidDateError, RateNotFoundError
from src.pricing.engine import apply_markup, calculate, round_money
from tests.factories import (
    CREATED_EARLY,
    CREATED_LATE,
    double_map_room,
    hotel_rate,
    pricing_input,
    transport_rate,
)


def _three_day_input(**extra):
    rates = [
        hotel_rate("std", "2025-06-01", "2025-06-30", "5000", hotel_id="hotel-std"),
        hotel_rate("lux", "2025-06-01", "2025-06-30", "12000", hotel_id="hotel-lux"),
    ]
    cabs = [transport_rate("cab", "2025-06-01", "2025-06-30", "2500")]
    days = [
        {
            "dayNumber": number,
            "hotelId": "hotel-std",
            "locationId": "loc-1",
            "roomAllocations": [double_map_room()],
            "transportLeg": {"vehicleTypeId": "innova", "transportType": "PerDay"},
        }
        for number in (1, 2, 3)
    ]
    return pricing_input(days, rates, cabs, ends="2025-06-03", **extra)


def test_single_room_two_nights_with_markup() -> None:
    result = calculate(
        pricing_input(
            [{"dayNumber": 1, "hotelId": "hotel-1", "nights": 2, "roomAllocations": [double_map_room()]}],
            [hotel_rate("r1", "2025-06-01", "2025-06-30", "5000")],
            markup=10,
        )
    )

    day = result.per_day[0]
    assert day.hotel_cost == Decimal("10000")
    assert day.transport_cost == Decimal("0")
    assert day.transport is None
    assert day.rooms[0].price_per_night == Decimal("5000")
    assert day.rooms[0].nights == 2
    assert result.base_price == Decimal("10000")
    assert result.applied_markup == Decimal("10")
    assert result.total_cost == Decimal("11000.00")
    assert result.markup_amount == Decimal("1000.00")


def test_date_one_day_after_rate_end_fails() -> None:
    with pytest.raises(RateNotFoundError) as excinfo:
        calculate(
            pricing_input(
                [{"dayNumber": 1, "hotelId": "hotel-1", "roomAllocations": [double_map_room()]}],
                [hotel_rate("r1", "2025-05-01", "2025-05-31", "5000")],
                starts="2025-06-01",
            )
        )
    assert excinfo.value.details["date"] == "2025-06-01"


def test_variant_overrides_only_mapped_day() -> None:
    base = calculate(_three_day_input())
    variant = calculate(
        _three_day_input(variantId="luxury", variantHotelMappings={"2": "hotel-lux"})
    )

    assert variant.variant_id == "luxury"
    assert variant.per_day[0] == base.per_day[0]
    assert variant.per_day[2] == base.per_day[2]
    assert variant.per_day[1].hotel_id == "hotel-lux"
    assert variant.per_day[1].hotel_cost == Decimal("12000")
    assert variant.base_price == base.base_price + Decimal("7000")


def test_variant_without_mappings_matches_no_variant() -> None:
    base = calculate(_three_day_input())
    variant = calculate(_three_day_input(variantId="standard"))
    assert variant.per_day == base.per_day
    assert variant.total_cost == base.total_cost


def test_variant_room_allocations_replace_defaults() -> None:
    result = calculate(
        _three_day_input(
            variantId="family",
            variantRoomAllocations={"1": [double_map_room(quantity=2)], "3": []},
        )
    )

    day_one, day_two, day_three = result.per_day
    assert [room.quantity for room in day_one.rooms] == [2]
    assert day_one.hotel_cost == Decimal("10000")
    assert day_two.hotel_cost == Decimal("5000")
    assert day_three.rooms == []
    assert day_three.hotel_cost == Decimal("0")


def test_variant_overrides_require_variant_id() -> None:
    with pytest.raises(ValidationError):
        _three_day_input(variantHotelMappings={"2": "hotel-lux"})


def test_overlapping_rates_pick_later_narrower_and_warn() -> None:
    pricing = pricing_input(
        [{"dayNumber": 1, "hotelId": "hotel-1", "roomAllocations": [double_map_room()]}],
        [
            hotel_rate("wide-early", "2025-06-01", "2025-06-10", "4000", created_at=CREATED_EARLY),
            hotel_rate("narrow-late", "2025-06-01", "2025-06-03", "4500", created_at=CREATED_LATE),
        ],
    )

    first = calculate(pricing)
    second = calculate(pricing)

    assert first.per_day[0].rooms[0].rate_id == "narrow-late"
    assert first.per_day[0].hotel_cost == Decimal("4500")
    assert first.warnings[0].selected_id == "narrow-late"
    assert first.model_dump() == second.model_dump()


def test_base_price_is_sum_of_day_lines() -> None:
    result = calculate(_three_day_input(markup="12.5"))

    line_total = sum((day.hotel_cost + day.transport_cost for day in result.per_day), Decimal("0"))
    assert result.base_price == line_total == Decimal("22500")
    assert result.breakdown.accommodation == Decimal("15000")
    assert result.breakdown.transport == Decimal("7500")
    assert result.total_cost == round_money(result.base_price * Decimal("1.125"))


def test_rooms_multiply_price_nights_and_quantity() -> None:
    result = calculate(
        pricing_input(
            [
                {
                    "dayNumber": 1,
                    "hotelId": "hotel-1",
                    "nights": 3,
                    "roomAllocations": [
                        double_map_room(quantity=2),
                        double_map_room(quantity=1, room_type_id="suite"),
                    ],
                }
            ],
            [
                hotel_rate("deluxe", "2025-06-01", "2025-06-30", "5000"),
                hotel_rate("suite", "2025-06-01", "2025-06-30", "9000", room_type_id="suite"),
            ],
        )
    )
    assert [room.total_cost for room in result.per_day[0].rooms] == [Decimal("30000"), Decimal("27000")]
    assert result.per_day[0].hotel_cost == Decimal("57000")


def test_zero_night_day_is_itemized_at_zero_without_a_rate() -> None:
    result = calculate(
        pricing_input(
            [{"dayNumber": 1, "hotelId": "hotel-1", "nights": 0, "roomAllocations": [double_map_room()]}],
        )
    )
    day = result.per_day[0]
    assert day.day_number == 1
    assert day.hotel_cost == Decimal("0")
    assert day.rooms[0].rate_id is None
    assert result.total_cost == Decimal("0.00")


def test_transport_quantity_and_leg_location() -> None:
    result = calculate(
        pricing_input(
            [
                {
                    "dayNumber": 1,
                    "locationId": "loc-1",
                    "transportLeg": {
                        "vehicleTypeId": "tempo",
                        "transportType": "PerTrip",
                        "locationId": "loc-2",
                        "quantity": 2,
                    },
                }
            ],
            transport_rates=[
                transport_rate("t1", "2025-06-01", "2025-06-30", "1800", location_id="loc-1", vehicle_type_id="tempo", transport_type="PerTrip"),
                transport_rate("t2", "2025-06-01", "2025-06-30", "2200", location_id="loc-2", vehicle_type_id="tempo", transport_type="PerTrip"),
            ],
        )
    )
    transport = result.per_day[0].transport
    assert transport is not None
    assert transport.rate_id == "t2"
    assert transport.total_cost == Decimal("4400")
    assert result.per_day[0].hotel_cost == Decimal("0")


def test_transport_type_is_part_of_the_key() -> None:
    with pytest.raises(RateNotFoundError):
        calculate(
            pricing_input(
                [
                    {
                        "dayNumber": 1,
                        "locationId": "loc-1",
                        "transportLeg": {"vehicleTypeId": "innova", "transportType": "PerTrip"},
                    }
                ],
                transport_rates=[transport_rate("t1", "2025-06-01", "2025-06-30", "2500")],
            )
        )


def test_one_missing_rate_fails_the_whole_calculation() -> None:
    pricing = pricing_input(
        [
            {"dayNumber": 1, "hotelId": "hotel-1", "roomAllocations": [double_map_room()]},
            {"dayNumber": 2, "hotelId": "hotel-2", "roomAllocations": [double_map_room()]},
        ],
        [hotel_rate("r1", "2025-06-01", "2025-06-30", "5000")],
    )
    with pytest.raises(RateNotFoundError) as excinfo:
        calculate(pricing)
    assert excinfo.value.key["hotelId"] == "hotel-2"


def test_days_are_priced_in_day_number_order_with_derived_dates() -> None:
    result = calculate(
        pricing_input(
            [
                {"dayNumber": 3, "hotelId": "hotel-1", "roomAllocations": [double_map_room()]},
                {"dayNumber": 1, "hotelId": "hotel-1", "roomAllocations": [double_map_room()]},
            ],
            [
                hotel_rate("june", "2025-06-01", "2025-06-30", "5000"),
                hotel_rate("july", "2025-07-01", "2025-07-31", "6000"),
            ],
            starts="2025-06-30",
            ends="2025-07-02",
        )
    )
    assert [day.day_number for day in result.per_day] == [1, 3]
    assert [day.day_date for day in result.per_day] == [date(2025, 6, 30), date(2025, 7, 2)]
    assert [day.hotel_cost for day in result.per_day] == [Decimal("5000"), Decimal("6000")]


def test_explicit_timestamp_day_date_uses_authored_calendar_day() -> None:
    result = calculate(
        pricing_input(
            [
                {
                    "dayNumber": 1,
                    "date": "2025-06-05T23:30:00-05:00",
                    "hotelId": "hotel-1",
                    "roomAllocations": [double_map_room()],
                }
            ],
            [
                hotel_rate("early", "2025-06-01", "2025-06-05", "5000"),
                hotel_rate("late", "2025-06-06", "2025-06-10", "7000"),
            ],
        )
    )
    assert result.per_day[0].day_date == date(2025, 6, 5)
    assert result.per_day[0].rooms[0].rate_id == "early"


def test_day_outside_tour_window_is_invalid() -> None:
    with pytest.raises(InvalidDateError):
        calculate(pricing_input([{"dayNumber": 5}], ends="2025-06-03"))


def test_tour_ending_before_start_is_invalid() -> None:
    with pytest.raises(InvalidDateError):
        calculate(pricing_input([{"dayNumber": 1}], starts="2025-06-10", ends="2025-06-01"))


def test_unparseable_day_date_raises_invalid_date() -> None:
    with pytest.raises(InvalidDateError):
        pricing_input([{"dayNumber": 1, "date": "June 1st"}])


def test_duplicate_day_numbers_are_rejected() -> None:
    with pytest.raises(BadRequestError):
        calculate(pricing_input([{"dayNumber": 1}, {"dayNumber": 1}]))


def test_rooms_without_hotel_are_rejected() -> None:
    with pytest.raises(BadRequestError):
        calculate(pricing_input([{"dayNumber": 1, "roomAllocations": [double_map_room()]}]))


def test_day_without_rooms_or_transport_costs_nothing() -> None:
    result = calculate(pricing_input([{"dayNumber": 1, "hotelId": "hotel-1"}], markup=15))
    assert result.per_day[0].total_cost == Decimal("0")
    assert result.total_cost == Decimal("0.00")


@pytest.mark.parametrize(
    ("base", "markup", "expected"),
    [
        (Decimal("10000"), Decimal("10"), Decimal("11000.00")),
        (Decimal("0.05"), Decimal("50"), Decimal("0.08")),
        (Decimal("100.01"), Decimal("0"), Decimal("100.01")),
        (Decimal("333.33"), Decimal("7.5"), Decimal("358.33")),
    ],
)
def test_apply_markup_rounds_half_away_from_zero(base: Decimal, markup: Decimal, expected: Decimal) -> None:
    assert apply_markup(base, markup) == expected


def test_variant_transport_leg_replaces_only_that_day() -> None:
    pricing = _three_day_input(
        variantId="group",
        variantTransportLegs={"2": {"vehicleTypeId": "tempo", "transportType": "PerDay"}},
    )
    tempo = transport_rate("tempo", "2025-06-01", "2025-06-30", "4000", vehicle_type_id="tempo")
    pricing = pricing.model_copy(
        update={
            "rate_catalog": pricing.rate_catalog.model_copy(
                update={"transport_rates": [*pricing.rate_catalog.transport_rates, tempo]}
            )
        }
    )

    result = calculate(pricing)

    assert [day.transport.rate_id for day in result.per_day] == ["cab", "tempo", "cab"]
    assert result.per_day[1].transport_cost == Decimal("4000")
    assert result.breakdown.transport == Decimal("9000")


def test_null_variant_transport_leg_removes_transport() -> None:
    base = calculate(_three_day_input())
    result = calculate(_three_day_input(variantId="self-drive", variantTransportLegs={"3": None}))

    assert result.per_day[2].transport is None
    assert result.per_day[2].transport_cost == Decimal("0")
    assert result.per_day[:2] == base.per_day[:2]
    assert result.base_price == base.base_price - Decimal("2500")


def test_variant_transport_legs_require_variant_id() -> None:
    with pytest.raises(ValidationError):
        _three_day_input(variantTransportLegs={"3": None})


@pytest.mark.parametrize(
    "overrides",
    [
        {"variantHotelMappings": {"1": ""}},
        {"variantHotelMappings": {"0": "hotel-lux"}},
        {"variantRoomAllocations": {"0": []}},
    ],
)
def test_variant_override_days_and_hotels_must_be_usable(overrides) -> None:
    with pytest.raises(ValidationError):
        _three_day_input(variantId="luxury", **overrides)


def test_period_breakdown_splits_a_tour_across_seasons() -> None:
    result = calculate(
        pricing_input(
            [
                {"dayNumber": 1, "hotelId": "hotel-1", "roomAllocations": [double_map_room()]},
                {"dayNumber": 2, "hotelId": "hotel-1", "roomAllocations": [double_map_room(quantity=2)]},
                {"dayNumber": 3, "hotelId": "hotel-1", "roomAllocations": [double_map_room()]},
                {"dayNumber": 4, "hotelId": "hotel-1", "nights": 0, "roomAllocations": [double_map_room()]},
            ],
            [
                hotel_rate("june", "2025-06-01", "2025-06-30", "5000"),
                hotel_rate("july", "2025-07-01", "2025-07-31", "6000"),
            ],
            starts="2025-06-29",
            ends="2025-07-02",
        )
    )

    periods = [(item.rate_kind, item.rate_id, item.days, item.subtotal) for item in result.period_breakdown]
    assert periods == [
        ("hotel", "june", 2, Decimal("15000")),
        ("hotel", "july", 1, Decimal("6000")),
    ]
    assert result.period_breakdown[1].start_date == date(2025, 7, 1)
    assert sum((item.subtotal for item in result.period_breakdown), Decimal("0")) == result.base_price
