"""Pick the one dated rate that applies to a key on a given day.

Overlapping validity windows are not prevented by the catalog, so when more
than one active rate covers the day the choice is fixed by policy:

1. the most recently created rate (rates without ``created_at`` rank oldest);
2. then the narrowest window (fewest days);
3. then the lowest rate id, so the result never depends on input order.

Every tie-break is reported as an ``AmbiguousRateWarning`` for the catalog
owners to clean up.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple, TypeVar, Union

from src.core.errors import RateNotFoundError
from src.schemas.pricing import AmbiguousRateWarning, DatedRate, HotelRateKey, TransportRateKey

logger = logging.getLogger(__name__)

RateKey = Union[HotelRateKey, TransportRateKey]
R = TypeVar("R", bound=DatedRate)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)


def _created_rank(rate: DatedRate) -> int:
    if rate.created_at is None:
        return -1
    return (rate.created_at - _OLDEST) // _MICROSECOND


def tie_break_key(rate: DatedRate) -> Tuple[int, int, str]:
    return (-_created_rank(rate), rate.span_days, rate.id)


def matching_rates(key: RateKey, on_date: date, candidates: Iterable[R]) -> List[R]:
    return [
        rate
        for rate in candidates
        if rate.is_active and rate.key == key and rate.covers(on_date)
    ]


def resolve_rate(
    key: RateKey,
    on_date: date,
    candidates: Iterable[R],
    warnings: Optional[List[AmbiguousRateWarning]] = None,
) -> R:
    matches = matching_rates(key, on_date, candidates)
    if not matches:
        raise RateNotFoundError(key.rate_kind, key.as_dict(), on_date)
    if len(matches) == 1:
        return matches[0]

    ordered = sorted(matches, key=tie_break_key)
    selected = ordered[0]
    candidate_ids = [rate.id for rate in ordered]
    logger.warning(
        "Overlapping %s rates for %s on %s: %s; using %s",
        key.rate_kind,
        key.as_dict(),
        on_date.isoformat(),
        ", ".join(candidate_ids),
        selected.id,
    )
    if warnings is not None:
        warnings.append(
            AmbiguousRateWarning(
                rate_kind=key.rate_kind,
                key=key.as_dict(),
                rate_date=on_date,
                candidate_ids=candidate_ids,
                selected_id=selected.id,
            )
        )
    return selected
