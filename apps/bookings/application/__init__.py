"""Booking use cases: command handlers and read-side queries."""
