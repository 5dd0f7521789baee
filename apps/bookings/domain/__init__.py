"""Booking domain layer: aggregate, events, errors and capacity rules."""
