"""Equipment app package.

Holds the rentable equipment catalog entry (the "unit" that bookings
reserve). Catalog management lives in the admin; the booking engine only
reads the owner and the total quantity of identical units.
"""
