"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.db import DatabaseError  # type: ignore

from .services import BookingService

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="bookings.sweep_expired_holds")
def sweep_expired_holds() -> dict[str, int]:
    """
    Cancel payment holds whose expiry has passed.

    Runs every ``SWEEP_INTERVAL_SECONDS`` through Celery Beat. A database
    failure is logged and the run reports nothing expired; the next run
    repeats the same query.

    Returns:
        dict: {"expired_count": number of holds cancelled}
    """
    try:
        return BookingService().sweep_expired_holds()
    except DatabaseError as e:
        logger.error(f"Error sweeping expired payment holds: {e}", exc_info=True)
        return {"expired_count": 0}
