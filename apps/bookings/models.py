"""Reservation storage model."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import DateSet


class Reservation(models.Model):
    """One renter occupying one unit of equipment on a set of days.

    ``dates`` holds sorted ISO day strings and is authoritative. The
    ``start_date``/``end_date`` columns mirror its bounds for range queries and
    are rewritten on every save. Rows written before ``dates`` existed only
    carry the range; ``day_set`` expands it for them.
    """

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending owner approval")
        PAYMENT_HOLD = "payment_hold", _("Payment hold")
        CONFIRMED = "confirmed", _("Confirmed")
        COMPLETED = "completed", _("Completed")
        REJECTED = "rejected", _("Rejected")
        CANCELLED = "cancelled", _("Cancelled")
        PAYMENT_FAILED = "payment_failed", _("Payment failed")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        PROCESSING = "processing", _("Processing")
        COMPLETED = "completed", _("Completed")
        FAILED = "failed", _("Failed")
        CANCELLED = "cancelled", _("Cancelled")

    equipment = models.ForeignKey(
        "equipment.Equipment",
        on_delete=models.CASCADE,
        related_name="reservations",
    )
    renter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="rentals",
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="owned_reservations",
        help_text=_("Equipment owner at the time of booking."),
    )
    dates = models.JSONField(default=list, blank=True)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    payment_hold_expiry = models.DateTimeField(null=True, blank=True)
    payment_method = models.CharField(max_length=50, blank=True)
    transaction_id = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Reservation")
        verbose_name_plural = _("Reservations")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["equipment", "status"], name="reservation_equipment_status"),
            models.Index(fields=["equipment", "start_date", "end_date"], name="reservation_equipment_range"),
            models.Index(fields=["status", "payment_hold_expiry"], name="reservation_hold_expiry"),
            models.Index(fields=["renter"], name="reservation_renter"),
            models.Index(fields=["owner"], name="reservation_owner"),
        ]

    def __str__(self) -> str:
        return f"Reservation #{self.pk} for equipment {self.equipment_id}"

    @property
    def is_payment_hold(self) -> bool:
        return self.status == self.Status.PAYMENT_HOLD

    def day_set(self) -> DateSet:
        if self.dates:
            return DateSet.of(self.dates)
        if self.start_date and self.end_date:
            return DateSet.between(self.start_date, self.end_date)
        return DateSet()

    def save(self, *args, **kwargs):
        if self.dates:
            days = DateSet.of(self.dates)
            self.dates = days.iso()
            self.start_date, self.end_date = days.start, days.end
        super().save(*args, **kwargs)
