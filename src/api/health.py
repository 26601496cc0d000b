from __future__ import annotations

from fastapi import APIRouter

from src.core.config import get_settings
from src.shared.response import ResponseEnvelope, build_meta


router = APIRouter(tags=["health"])


@router.get("/health")
@router.get("/healthz")
def health_check() -> ResponseEnvelope[dict]:
    settings = get_settings()
    meta = build_meta(source="system", calculation_version=settings.pricing_calculation_version)
    return ResponseEnvelope(
        data={"status": "ok", "environment": settings.environment}, meta=meta
    )
