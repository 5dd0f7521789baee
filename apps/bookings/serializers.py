"""Serializers for the booking API."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers  # type: ignore

from .models import Reservation


class ReservationSerializer(serializers.ModelSerializer):
    """Detailed reservation representation."""

    equipment_id = serializers.ReadOnlyField(source="equipment.id")
    equipment_name = serializers.ReadOnlyField(source="equipment.name")
    renter_id = serializers.ReadOnlyField(source="renter.id")
    owner_id = serializers.ReadOnlyField(source="owner.id")
    is_payment_hold = serializers.ReadOnlyField()

    class Meta:
        model = Reservation
        fields = [
            "id",
            "equipment_id",
            "equipment_name",
            "renter_id",
            "owner_id",
            "dates",
            "start_date",
            "end_date",
            "total_amount",
            "status",
            "payment_status",
            "is_payment_hold",
            "payment_hold_expiry",
            "payment_method",
            "transaction_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BookingCreateSerializer(serializers.Serializer):
    """Input for direct bookings and payment holds.

    Days come either as ``dates`` or as an inclusive ``start_date``/``end_date``
    pair. Date parsing and window checks happen in the booking service so the
    errors carry the offending date.
    """

    equipment = serializers.IntegerField()
    dates = serializers.ListField(child=serializers.CharField(), required=False, allow_empty=True)
    start_date = serializers.CharField(required=False)
    end_date = serializers.CharField(required=False)
    total_amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal("0.00"),
    )


class ConfirmPaymentSerializer(serializers.Serializer):
    payment_method = serializers.CharField(required=False, allow_blank=True, default="", max_length=50)
    transaction_id = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)


class BookingUpdateSerializer(serializers.Serializer):
    status = serializers.CharField(required=False)
    start_date = serializers.CharField(required=False)
    end_date = serializers.CharField(required=False)


class CancelDatesSerializer(serializers.Serializer):
    dates = serializers.ListField(child=serializers.CharField(), allow_empty=True)


class AvailabilityQuerySerializer(serializers.Serializer):
    """``selected_dates`` is a comma separated list and wins over the range."""

    selected_dates = serializers.CharField(required=False, allow_blank=True)
    start_date = serializers.CharField(required=False)
    end_date = serializers.CharField(required=False)
    exclude_booking = serializers.IntegerField(required=False)

    def selected(self):
        raw = self.validated_data.get("selected_dates")
        if raw is None:
            return None
        return [value.strip() for value in raw.split(",") if value.strip()]


class CalendarQuerySerializer(serializers.Serializer):
    month = serializers.IntegerField(required=False, min_value=1, max_value=12)
    year = serializers.IntegerField(required=False, min_value=1970, max_value=9999)
