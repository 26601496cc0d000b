from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Annotated, ClassVar, Dict, List, Optional, Union

from pydantic import Field, PlainSerializer, field_validator, model_validator

from src.pricing.calendar import CalendarDate, days_between
from src.shared.base import BaseSchema, FrozenSchema, to_camel


Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
DayNumber = Annotated[int, Field(ge=1)]
NonEmptyId = Annotated[str, Field(min_length=1)]


@dataclass(frozen=True)
class HotelRateKey:
    rate_kind: ClassVar[str] = "hotel"

    hotel_id: str
    room_type_id: str
    occupancy_type_id: str
    meal_plan_id: str

    def as_dict(self) -> Dict[str, str]:
        return {to_camel(name): value for name, value in asdict(self).items()}


@dataclass(frozen=True)
class TransportRateKey:
    rate_kind: ClassVar[str] = "transport"

    location_id: str
    vehicle_type_id: str
    transport_type: str

    def as_dict(self) -> Dict[str, str]:
        return {to_camel(name): value for name, value in asdict(self).items()}


class RoomAllocation(FrozenSchema):
    room_type_id: str = Field(min_length=1)
    occupancy_type_id: str = Field(min_length=1)
    meal_plan_id: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)


class TransportLeg(FrozenSchema):
    vehicle_type_id: str = Field(min_length=1)
    transport_type: str = Field(min_length=1)
    location_id: Optional[str] = None
    quantity: int = Field(default=1, ge=1)


class ItineraryDayInput(FrozenSchema):
    day_number: int = Field(ge=1)
    day_date: Optional[CalendarDate] = Field(default=None, alias="date")
    hotel_id: Optional[str] = None
    location_id: Optional[str] = None
    nights: int = Field(default=1, ge=0)
    room_allocations: List[RoomAllocation] = Field(default_factory=list)
    transport_leg: Optional[TransportLeg] = None


class ItineraryDay(FrozenSchema):
    """An itinerary day with its calendar date resolved against the tour start."""

    day_number: int = Field(ge=1)
    day_date: CalendarDate = Field(alias="date")
    hotel_id: Optional[str] = None
    location_id: Optional[str] = None
    nights: int = Field(default=1, ge=0)
    room_allocations: List[RoomAllocation] = Field(default_factory=list)
    transport_leg: Optional[TransportLeg] = None


class DatedRate(FrozenSchema, ABC):
    id: str = Field(min_length=1)
    start_date: CalendarDate
    end_date: CalendarDate
    price: Money = Field(ge=0)
    is_active: bool = True
    created_at: Optional[datetime] = None

    rate_kind: ClassVar[str] = "dated"

    @field_validator("created_at")
    @classmethod
    def _created_at_as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Only used to order records in time; naive values are read as UTC.
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def _check_interval(self) -> "DatedRate":
        if self.end_date < self.start_date:
            raise ValueError(
                f"Rate {self.id} ends ({self.end_date.isoformat()}) before it starts "
                f"({self.start_date.isoformat()})"
            )
        return self

    @property
    def span_days(self) -> int:
        return days_between(self.start_date, self.end_date) + 1

    def covers(self, on_date: date) -> bool:
        return self.start_date <= on_date <= self.end_date

    @property
    @abstractmethod
    def key(self) -> Union[HotelRateKey, TransportRateKey]:
        ...


class HotelRate(DatedRate):
    hotel_id: str = Field(min_length=1)
    room_type_id: str = Field(min_length=1)
    occupancy_type_id: str = Field(min_length=1)
    meal_plan_id: str = Field(min_length=1)

    rate_kind: ClassVar[str] = "hotel"

    @property
    def key(self) -> HotelRateKey:
        return HotelRateKey(
            hotel_id=self.hotel_id,
            room_type_id=self.room_type_id,
            occupancy_type_id=self.occupancy_type_id,
            meal_plan_id=self.meal_plan_id,
        )


class TransportRate(DatedRate):
    location_id: str = Field(min_length=1)
    vehicle_type_id: str = Field(min_length=1)
    transport_type: str = Field(min_length=1)

    rate_kind: ClassVar[str] = "transport"

    @property
    def key(self) -> TransportRateKey:
        return TransportRateKey(
            location_id=self.location_id,
            vehicle_type_id=self.vehicle_type_id,
            transport_type=self.transport_type,
        )


class RateCatalogInput(FrozenSchema):
    hotel_rates: List[HotelRate] = Field(default_factory=list)
    transport_rates: List[TransportRate] = Field(default_factory=list)


class VariantHotelMapping(FrozenSchema):
    variant_id: str
    day_number: int = Field(ge=1)
    hotel_id: str = Field(min_length=1)


class PackageVariant(FrozenSchema):
    id: str = Field(min_length=1)
    name: Optional[str] = None
    hotel_mappings: List[VariantHotelMapping] = Field(default_factory=list)
    # A present key replaces the day's default rooms or transport leg outright.
    room_allocations: Dict[DayNumber, List[RoomAllocation]] = Field(default_factory=dict)
    transport_legs: Dict[DayNumber, Optional[TransportLeg]] = Field(default_factory=dict)


class PricingInput(FrozenSchema):
    tour_starts_from: CalendarDate
    tour_ends_on: CalendarDate
    itineraries: List[ItineraryDayInput] = Field(min_length=1)
    variant_id: Optional[str] = None
    variant_name: Optional[str] = None
    variant_room_allocations: Dict[DayNumber, List[RoomAllocation]] = Field(default_factory=dict)
    variant_hotel_mappings: Dict[DayNumber, NonEmptyId] = Field(default_factory=dict)
    # A null leg removes the day's transport for the variant.
    variant_transport_legs: Dict[DayNumber, Optional[TransportLeg]] = Field(default_factory=dict)
    rate_catalog: RateCatalogInput = Field(default_factory=RateCatalogInput)
    markup: Optional[Decimal] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _variant_overrides_need_variant(self) -> "PricingInput":
        overrides = (
            self.variant_room_allocations,
            self.variant_hotel_mappings,
            self.variant_transport_legs,
        )
        if any(overrides) and not self.variant_id:
            raise ValueError("variantId is required when variant overrides are supplied")
        return self

    def to_variant(self) -> Optional[PackageVariant]:
        if not self.variant_id:
            return None
        return PackageVariant(
            id=self.variant_id,
            name=self.variant_name,
            hotel_mappings=[
                VariantHotelMapping(variant_id=self.variant_id, day_number=day_number, hotel_id=hotel_id)
                for day_number, hotel_id in sorted(self.variant_hotel_mappings.items())
            ],
            room_allocations=dict(self.variant_room_allocations),
            transport_legs=dict(self.variant_transport_legs),
        )


class RoomCostLine(BaseSchema):
    room_type_id: str
    occupancy_type_id: str
    meal_plan_id: str
    quantity: int
    nights: int
    rate_id: Optional[str] = None
    rate_start_date: Optional[date] = None
    rate_end_date: Optional[date] = None
    price_per_night: Optional[Money] = None
    total_cost: Money


class TransportCostLine(BaseSchema):
    location_id: str
    vehicle_type_id: str
    transport_type: str
    quantity: int
    rate_id: str
    rate_start_date: date
    rate_end_date: date
    price_per_unit: Money
    total_cost: Money


class DayPricing(BaseSchema):
    day_number: int
    day_date: date = Field(alias="date")
    hotel_id: Optional[str] = None
    hotel_cost: Money
    transport_cost: Money
    total_cost: Money
    rooms: List[RoomCostLine] = Field(default_factory=list)
    transport: Optional[TransportCostLine] = None


class CostBreakdown(BaseSchema):
    accommodation: Money
    transport: Money


class RatePeriodSubtotal(BaseSchema):
    """Cost priced off one dated rate, e.g. a peak-season hotel period."""

    rate_kind: str
    rate_id: str
    start_date: date
    end_date: date
    days: int
    subtotal: Money


class AmbiguousRateWarning(BaseSchema):
    code: str = "ambiguous_rate"
    rate_kind: str
    key: Dict[str, str]
    rate_date: date = Field(alias="date")
    candidate_ids: List[str]
    selected_id: str


class PricingResult(BaseSchema):
    per_day: List[DayPricing]
    base_price: Money
    applied_markup: Money
    markup_amount: Money
    total_cost: Money
    breakdown: CostBreakdown
    period_breakdown: List[RatePeriodSubtotal] = Field(default_factory=list)
    variant_id: Optional[str] = None
    warnings: List[AmbiguousRateWarning] = Field(default_factory=list)


class RateOverlap(BaseSchema):
    rate_kind: str
    key: Dict[str, str]
    first_rate_id: str
    second_rate_id: str
    overlap_start: date
    overlap_end: date


class CatalogAuditResult(BaseSchema):
    hotel_rate_count: int
    transport_rate_count: int
    overlaps: List[RateOverlap]


class RatePeriodSegment(BaseSchema):
    start_date: date
    end_date: date
    price: Money
    source_rate_id: Optional[str] = None
    is_new: bool = False


class RatePeriodSplit(BaseSchema):
    rates_to_retire: List[str]
    periods_to_create: List[RatePeriodSegment]


class RatePeriodSplitRequest(FrozenSchema):
    existing: List[HotelRate] = Field(default_factory=list)
    new_rate: HotelRate
