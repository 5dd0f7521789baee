"""Equipment catalog model."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Equipment(models.Model):
    """Agricultural equipment offered for daily rental.

    ``total_quantity`` is the number of identical, interchangeable units. It
    is changed only by catalog edits, never by booking activity.
    """

    class Category(models.TextChoices):
        TRACTOR = "tractor", _("Tractor")
        HARVESTER = "harvester", _("Harvester")
        PLANTER = "planter", _("Planter")
        SPRAYER = "sprayer", _("Sprayer")
        TILLER = "tiller", _("Tiller")
        OTHER = "other", _("Other")

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="equipment",
    )
    name = models.CharField(max_length=255)
    model = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=20, choices=Category.choices, default=Category.OTHER)
    location = models.CharField(max_length=255, blank=True)
    price_per_day = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    total_quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
        help_text=_("Number of identical units available for rent."),
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Equipment")
        verbose_name_plural = _("Equipment")
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_quantity__gte=1),
                name="equipment_total_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.total_quantity})"
