"""Subscribers for booking domain events."""

from __future__ import annotations

import structlog

from shared.application.message_bus import MessageBus

from .domain import events

logger = structlog.get_logger(__name__)

AUDITED_EVENTS = (
    events.ReservationCreated,
    events.PaymentHoldPlaced,
    events.PaymentConfirmed,
    events.PaymentFailed,
    events.PaymentCancelled,
    events.PaymentHoldExpired,
    events.ReservationAccepted,
    events.ReservationRejected,
    events.ReservationCompleted,
    events.ReservationUpdated,
    events.ReservationDatesCancelled,
)


def log_booking_event(event) -> None:
    """Audit trail: one structured log line per committed booking event."""
    logger.info("booking_event", **event.to_dict())


def register(bus: MessageBus) -> None:
    for event_type in AUDITED_EVENTS:
        bus.subscribe(event_type, log_booking_event)
