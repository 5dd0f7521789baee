"""Admin registration for reservations."""

from __future__ import annotations

from django.contrib import admin

from .models import Reservation


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "equipment",
        "renter",
        "owner",
        "status",
        "payment_status",
        "start_date",
        "end_date",
        "total_amount",
        "created_at",
    )
    list_filter = ("status", "payment_status", "start_date")
    search_fields = ("equipment__name", "renter__username", "owner__username", "transaction_id")
    readonly_fields = (
        "dates",
        "start_date",
        "end_date",
        "payment_hold_expiry",
        "created_at",
        "updated_at",
    )
