"""Admin registration for the equipment catalog."""

from __future__ import annotations

from django.contrib import admin

from .models import Equipment


@admin.register(Equipment)
class EquipmentAdmin(admin.ModelAdmin):
    list_display = ("name", "model", "category", "location", "total_quantity", "price_per_day", "owner", "is_active")
    list_filter = ("category", "is_active")
    search_fields = ("name", "model", "location", "owner__username")
    readonly_fields = ("created_at", "updated_at")
