from __future__ import annotations

from collections import defaultdict
from typing import Dict, Hashable, Iterable, List, Sequence, TypeVar

from src.pricing.calendar import add_days
from src.schemas.pricing import (
    DatedRate,
    HotelRate,
    HotelRateKey,
    RateCatalogInput,
    RateOverlap,
    RatePeriodSegment,
    RatePeriodSplit,
    TransportRate,
    TransportRateKey,
)

R = TypeVar("R", bound=DatedRate)


def _index(rates: Iterable[R]) -> Dict[Hashable, List[R]]:
    grouped: Dict[Hashable, List[R]] = defaultdict(list)
    for rate in rates:
        grouped[rate.key].append(rate)
    return dict(grouped)


class RateCatalog:
    """Rate records grouped by key for the lifetime of one calculation."""

    def __init__(self, hotel_rates: Iterable[HotelRate], transport_rates: Iterable[TransportRate]) -> None:
        self._hotel_rates = _index(hotel_rates)
        self._transport_rates = _index(transport_rates)

    @classmethod
    def from_input(cls, catalog: RateCatalogInput) -> "RateCatalog":
        return cls(catalog.hotel_rates, catalog.transport_rates)

    def hotel_candidates(self, key: HotelRateKey) -> List[HotelRate]:
        return self._hotel_rates.get(key, [])

    def transport_candidates(self, key: TransportRateKey) -> List[TransportRate]:
        return self._transport_rates.get(key, [])


def find_overlapping_rates(rates: Sequence[DatedRate]) -> List[RateOverlap]:
    overlaps: List[RateOverlap] = []
    for key, group in _index(rate for rate in rates if rate.is_active).items():
        ordered = sorted(group, key=lambda rate: (rate.start_date, rate.end_date, rate.id))
        for position, first in enumerate(ordered):
            for second in ordered[position + 1 :]:
                if second.start_date > first.end_date:
                    break
                overlaps.append(
                    RateOverlap(
                        rate_kind=first.rate_kind,
                        key=key.as_dict(),
                        first_rate_id=first.id,
                        second_rate_id=second.id,
                        overlap_start=max(first.start_date, second.start_date),
                        overlap_end=min(first.end_date, second.end_date),
                    )
                )
    return overlaps


def plan_period_split(existing: Sequence[R], new_rate: R) -> RatePeriodSplit:
    """Plan how ``new_rate`` replaces the parts of active same-key periods it covers.

    Each overlapped period is retired and whatever lies outside the new window
    is re-created at its old price, e.g. an Apr 1 - Dec 31 rate split by a new
    Jul 1 - Sep 30 rate leaves Apr 1 - Jun 30 and Oct 1 - Dec 31.
    """
    retired: List[str] = []
    segments: List[RatePeriodSegment] = []
    for period in existing:
        if period.id == new_rate.id or not period.is_active or period.key != new_rate.key:
            continue
        if period.start_date > new_rate.end_date or period.end_date < new_rate.start_date:
            continue
        retired.append(period.id)
        if period.start_date < new_rate.start_date:
            segments.append(
                RatePeriodSegment(
                    start_date=period.start_date,
                    end_date=add_days(new_rate.start_date, -1),
                    price=period.price,
                    source_rate_id=period.id,
                )
            )
        if period.end_date > new_rate.end_date:
            segments.append(
                RatePeriodSegment(
                    start_date=add_days(new_rate.end_date, 1),
                    end_date=period.end_date,
                    price=period.price,
                    source_rate_id=period.id,
                )
            )
    segments.append(
        RatePeriodSegment(
            start_date=new_rate.start_date,
            end_date=new_rate.end_date,
            price=new_rate.price,
            source_rate_id=new_rate.id,
            is_new=True,
        )
    )
    segments.sort(key=lambda segment: (segment.start_date, segment.end_date))
    return RatePeriodSplit(rates_to_retire=sorted(retired), periods_to_create=segments)
