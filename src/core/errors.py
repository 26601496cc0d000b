from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class AppError(Exception):
    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(code="not_found", message=message, status_code=404)


class BadRequestError(AppError):
    def __init__(self, message: str = "Bad request", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(code="bad_request", message=message, status_code=400, details=details)


class InvalidDateError(AppError):
    def __init__(self, message: str = "Invalid date", value: Any = None) -> None:
        details = {"value": repr(value)} if value is not None else None
        super().__init__(code="invalid_date", message=message, status_code=422, details=details)
        self.value = value


class RateNotFoundError(AppError):
    """No active dated rate covers ``key`` on ``on_date``.

    ``key`` is a mapping of key field name to value (hotel/room type/occupancy/
    meal plan, or location/vehicle type/transport type) so the operator can see
    exactly which rate row is missing.
    """

    def __init__(self, rate_kind: str, key: Dict[str, str], on_date: date) -> None:
        key_text = ", ".join(f"{name}={value}" for name, value in key.items())
        message = f"No active {rate_kind} rate for {key_text} on {on_date.isoformat()}"
        super().__init__(
            code="rate_not_found",
            message=message,
            status_code=422,
            details={"rateKind": rate_kind, "key": dict(key), "date": on_date.isoformat()},
        )
        self.rate_kind = rate_kind
        self.key = dict(key)
        self.on_date = on_date


class ErrorEnvelope(BaseModel):
    error: ErrorDetail


def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    envelope = ErrorEnvelope(
        error=ErrorDetail(code=exc.code, message=exc.message, details=exc.details)
    )
    return JSONResponse(status_code=exc.status_code, content=envelope.model_dump())


def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    envelope = ErrorEnvelope(
        error=ErrorDetail(
            code="validation_error",
            message="Validation error",
            details={"errors": jsonable_encoder(exc.errors())},
        )
    )
    return JSONResponse(status_code=422, content=envelope.model_dump())
