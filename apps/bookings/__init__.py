"""Bookings app package.

This app encapsulates the reservation domain for rentable equipment:
per-day capacity checks, payment holds with timed expiry, the owner
approval workflow and partial date cancellation. Capacity is guarded by
locking the equipment row and by conditional status writes.
"""
