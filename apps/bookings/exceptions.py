"""DRF exception handler for booking errors."""

from __future__ import annotations

import logging

from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler  # type: ignore

from .domain.exceptions import (
    AccessDenied,
    AvailabilityChanged,
    BookingError,
    HoldExpired,
    NotFound,
)

logger = logging.getLogger(__name__)

STATUS_CODES = (
    (NotFound, status.HTTP_404_NOT_FOUND),
    (AccessDenied, status.HTTP_403_FORBIDDEN),
    (AvailabilityChanged, status.HTTP_409_CONFLICT),
    (HoldExpired, status.HTTP_410_GONE),
)


def status_code_for(exc: BookingError) -> int:
    for error_class, code in STATUS_CODES:
        if isinstance(exc, error_class):
            return code
    return status.HTTP_400_BAD_REQUEST


def booking_exception_handler(exc, context):
    """Render ``BookingError`` as ``{"kind", "detail", ...}``; defer everything else to DRF."""

    if isinstance(exc, BookingError):
        code = status_code_for(exc)
        view = context.get("view")
        logger.warning(
            "Booking request refused: %s (%s) in %s",
            exc.kind,
            exc.message,
            view.__class__.__name__ if view is not None else "unknown view",
        )
        return Response(exc.to_dict(), status=code)
    return exception_handler(exc, context)
