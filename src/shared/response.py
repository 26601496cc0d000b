from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Generic, Optional, TypeVar

from src.shared.base import BaseSchema


T = TypeVar("T")


class Meta(BaseSchema):
    as_of_date: str
    source: str
    calculation_version: str
    currency: Optional[str] = None
    generated_at: Optional[str] = None


class ResponseEnvelope(BaseSchema, Generic[T]):
    data: T
    meta: Optional[Meta] = None


def build_meta(source: str, calculation_version: str, currency: Optional[str] = None) -> Meta:
    return Meta(
        as_of_date=date.today().isoformat(),
        source=source,
        calculation_version=calculation_version,
        currency=currency,
        generated_at=datetime.now(timezone.utc).isoformat(),
    )
