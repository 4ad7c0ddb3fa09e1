"""
Custom exception hierarchy for curbcarbon.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.

The estimation core itself degrades instead of raising (missing grid data
falls back to the baseline, a missing goal makes goal features inert); these
classes are raised by the host layer when an inert state must be reported.
"""
from __future__ import annotations

import math
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class CurbCarbonError(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class GoalNotSetError(CurbCarbonError):
    http_status = status.HTTP_404_NOT_FOUND
    code = "GOAL_NOT_SET"

    def __init__(self):
        super().__init__(message="No weekly carbon goal has been set.")


class InvalidGoalError(CurbCarbonError):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "INVALID_GOAL"

    def __init__(self, amount: Any = None, preset: str | None = None):
        details: dict[str, Any] = {}
        if amount is not None:
            # JSON responses cannot carry inf or nan
            finite = isinstance(amount, (int, float)) and math.isfinite(amount)
            details["amount"] = amount if finite else str(amount)
        if preset is not None:
            details["preset"] = preset
        super().__init__(
            message="Goal must be a positive amount of grams or a known preset.",
            details=details,
        )


class UnknownDeviceTypeError(CurbCarbonError):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "UNKNOWN_DEVICE_TYPE"

    def __init__(self, device_type: str, allowed: list[str]):
        super().__init__(
            message=f"Unknown device type '{device_type}'.",
            details={"device_type": device_type, "allowed": allowed},
        )


class GridIntensityError(CurbCarbonError):
    """Raised by the grid fetch step; always absorbed by the provider."""
    http_status = status.HTTP_502_BAD_GATEWAY
    code = "GRID_INTENSITY_UNAVAILABLE"


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def curbcarbon_exception_handler(request: Request, exc: CurbCarbonError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
