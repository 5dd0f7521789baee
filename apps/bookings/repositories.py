"""
Booking Repositories

Translate between the ORM rows in ``models.py`` and the domain aggregate.
All status writes go through ``ReservationRepository.save`` which only
updates the row if it is still in the status the caller loaded.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple
import logging

from django.db import transaction  # type: ignore
from django.db.models import Q  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from shared.domain.value_objects import DateSet, Money

from apps.bookings.domain.entities import (
    CAPACITY_STATUSES,
    PaymentStatus,
    Reservation,
    ReservationStatus,
    Unit,
)
from apps.bookings.domain.exceptions import NotFound
from apps.bookings.models import Reservation as ReservationModel
from apps.equipment.models import Equipment

logger = logging.getLogger(__name__)


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


class EquipmentRepository:
    """Read-only access to rentable units."""

    def get(self, equipment_id, lock: bool = False) -> Unit:
        """
        Load a unit snapshot.

        With ``lock=True`` inside a transaction the equipment row is locked
        until commit, serialising every check-then-write on that unit.
        """
        queryset = Equipment.objects.all()
        if lock:
            queryset = _lock_queryset_if_possible(queryset)
        try:
            row = queryset.get(pk=equipment_id)
        except (Equipment.DoesNotExist, ValueError, TypeError):
            raise NotFound("Equipment not found") from None
        return Unit(
            id=row.pk,
            total_quantity=row.total_quantity,
            owner_id=row.owner_id,
            name=row.name,
        )


class ReservationRepository:

    def _to_domain(self, row: ReservationModel) -> Reservation:
        return Reservation(
            id=row.pk,
            equipment_id=row.equipment_id,
            renter_id=row.renter_id,
            owner_id=row.owner_id,
            dates=row.day_set(),
            total_amount=Money(row.total_amount),
            status=ReservationStatus(row.status),
            payment_status=PaymentStatus(row.payment_status),
            payment_hold_expiry=row.payment_hold_expiry,
            payment_method=row.payment_method,
            transaction_id=row.transaction_id,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @staticmethod
    def _columns(reservation: Reservation) -> dict:
        return {
            "dates": reservation.dates.iso(),
            "start_date": reservation.dates.start,
            "end_date": reservation.dates.end,
            "total_amount": reservation.total_amount.amount,
            "status": reservation.status.value,
            "payment_status": reservation.payment_status.value,
            "payment_hold_expiry": reservation.payment_hold_expiry,
            "payment_method": reservation.payment_method,
            "transaction_id": reservation.transaction_id,
            "updated_at": reservation.updated_at,
        }

    def get(self, reservation_id) -> Reservation:
        try:
            row = ReservationModel.objects.get(pk=reservation_id)
        except (ReservationModel.DoesNotExist, ValueError, TypeError):
            raise NotFound("Booking not found") from None
        return self._to_domain(row)

    def get_row(self, reservation_id) -> ReservationModel:
        try:
            return ReservationModel.objects.select_related("equipment", "renter", "owner").get(
                pk=reservation_id
            )
        except (ReservationModel.DoesNotExist, ValueError, TypeError):
            raise NotFound("Booking not found") from None

    def find_for_availability(
        self,
        equipment_id,
        days: DateSet,
        now: datetime,
        exclude_reservation_id=None,
    ) -> List[Reservation]:
        """
        Reservations on the unit that may occupy any of ``days``.

        Filtering by the stored range narrows the rows; the calculator then
        checks membership against each reservation's own dates.
        """
        if not days:
            return []
        live = Q(status__in=[status.value for status in CAPACITY_STATUSES]) | Q(
            status=ReservationStatus.PAYMENT_HOLD.value,
            payment_hold_expiry__gt=now,
        )
        queryset = ReservationModel.objects.filter(
            live,
            equipment_id=equipment_id,
            start_date__lte=days.end,
            end_date__gte=days.start,
        )
        if exclude_reservation_id is not None:
            queryset = queryset.exclude(pk=exclude_reservation_id)
        return [self._to_domain(row) for row in queryset]

    def insert(self, reservation: Reservation) -> Reservation:
        row = ReservationModel.objects.create(
            equipment_id=reservation.equipment_id,
            renter_id=reservation.renter_id,
            owner_id=reservation.owner_id,
            **self._columns(reservation),
        )
        reservation.id = row.pk
        reservation.created_at = row.created_at
        return reservation

    def save(
        self,
        reservation: Reservation,
        expected_status: ReservationStatus,
        hold_live_at: Optional[datetime] = None,
    ) -> bool:
        """
        Compare-and-set write.

        The row is updated only while its status is still ``expected_status``
        and, when ``hold_live_at`` is given, its hold has not yet expired at
        that instant. Returns ``False`` when no row matched.
        """
        queryset = ReservationModel.objects.filter(pk=reservation.id, status=expected_status.value)
        if hold_live_at is not None:
            queryset = queryset.filter(payment_hold_expiry__gt=hold_live_at)
        updated = queryset.update(**self._columns(reservation))
        if not updated:
            logger.warning(
                "Reservation %s was no longer %s when saving", reservation.id, expected_status.value
            )
        return updated == 1

    def expire_holds(self, now: datetime) -> Tuple[int, List[int]]:
        """
        Cancel every payment hold whose expiry is before ``now``.

        Rows that already left ``payment_hold`` are never matched, so the
        operation is idempotent and cannot undo a confirmed payment.
        """
        expired = ReservationModel.objects.filter(
            status=ReservationStatus.PAYMENT_HOLD.value,
            payment_hold_expiry__lt=now,
        )
        candidate_ids = list(expired.values_list("pk", flat=True))
        count = expired.update(
            status=ReservationStatus.CANCELLED.value,
            payment_status=PaymentStatus.FAILED.value,
            payment_hold_expiry=None,
            updated_at=now,
        )
        return count, candidate_ids

    def query(self):
        return ReservationModel.objects.select_related("equipment", "renter", "owner")
