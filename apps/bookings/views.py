"""API views for the booking domain."""

from __future__ import annotations

from django.db.models import Q  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .filters import ReservationFilterSet
from .models import Reservation
from .serializers import (
    AvailabilityQuerySerializer,
    BookingCreateSerializer,
    BookingUpdateSerializer,
    CalendarQuerySerializer,
    CancelDatesSerializer,
    ConfirmPaymentSerializer,
    ReservationSerializer,
)
from .services import BookingService


class BookingViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Viewset for creating reservations and driving their lifecycle.

    Guarded operations pass the authenticated user to the booking service,
    which answers 403 for the wrong owner or renter instead of hiding the
    reservation behind a 404.
    """

    queryset = Reservation.objects.select_related("equipment", "renter", "owner").all()
    serializer_class = ReservationSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_class = ReservationFilterSet
    service_class = BookingService

    def get_service(self) -> BookingService:
        return self.service_class()

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
            return qs
        return qs.filter(Q(renter=user) | Q(owner=user))

    def _respond(self, reservation, code=status.HTTP_200_OK, **extra):
        row = Reservation.objects.select_related("equipment", "renter", "owner").get(pk=reservation.id)
        data = {"booking": ReservationSerializer(row, context=self.get_serializer_context()).data}
        data.update(extra)
        return Response(data, status=code)

    def _create(self, request, create):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        reservation = create(
            equipment_id=data["equipment"],
            renter_id=request.user.id,
            total_amount=data["total_amount"],
            dates=data.get("dates"),
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
        )
        return reservation

    def create(self, request, *args, **kwargs):  # type: ignore
        reservation = self._create(request, self.get_service().create_booking)
        return self._respond(
            reservation,
            status.HTTP_201_CREATED,
            message="Booking request sent to the owner for approval",
        )

    @action(detail=False, methods=["post"], url_path="payment-hold")
    def payment_hold(self, request):  # type: ignore
        reservation = self._create(request, self.get_service().create_payment_hold)
        return self._respond(
            reservation,
            status.HTTP_201_CREATED,
            hold_expires_at=reservation.payment_hold_expiry,
            message="Equipment held for payment",
        )

    def update(self, request, pk=None, *args, **kwargs):  # type: ignore
        serializer = BookingUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reservation = self.get_service().update_booking(
            pk, dict(serializer.validated_data), caller_id=request.user.id,
        )
        return self._respond(reservation, message="Booking updated successfully")

    def partial_update(self, request, pk=None, *args, **kwargs):  # type: ignore
        return self.update(request, pk, *args, **kwargs)

    # ----- payment -----

    @action(detail=True, methods=["put"], url_path="confirm-payment")
    def confirm_payment(self, request, pk=None):  # type: ignore
        serializer = ConfirmPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reservation = self.get_service().confirm_payment(
            pk,
            payment_method=serializer.validated_data["payment_method"],
            transaction_id=serializer.validated_data["transaction_id"],
            renter_id=request.user.id,
        )
        return self._respond(
            reservation,
            message="Payment successful! Booking sent to owner for approval.",
        )

    @action(detail=True, methods=["put"], url_path="fail-payment")
    def fail_payment(self, request, pk=None):  # type: ignore
        reservation = self.get_service().fail_payment(pk, renter_id=request.user.id)
        return self._respond(reservation, message="Payment failed")

    @action(detail=True, methods=["put"], url_path="cancel-payment")
    def cancel_payment(self, request, pk=None):  # type: ignore
        reservation = self.get_service().cancel_payment(pk, renter_id=request.user.id)
        return self._respond(reservation, message="Payment cancelled")

    # ----- owner decisions -----

    @action(detail=True, methods=["put"])
    def accept(self, request, pk=None):  # type: ignore
        reservation = self.get_service().accept_booking(pk, owner_id=request.user.id)
        return self._respond(reservation, message="Booking accepted")

    @action(detail=True, methods=["put"])
    def reject(self, request, pk=None):  # type: ignore
        reservation = self.get_service().reject_booking(pk, owner_id=request.user.id)
        return self._respond(reservation, message="Booking rejected")

    @action(detail=True, methods=["put"])
    def complete(self, request, pk=None):  # type: ignore
        reservation = self.get_service().complete_booking(pk, owner_id=request.user.id)
        return self._respond(reservation, message="Booking marked as completed")

    # ----- partial cancellation -----

    @action(detail=True, methods=["put"], url_path="cancel-dates")
    def cancel_dates(self, request, pk=None):  # type: ignore
        serializer = CancelDatesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cancelled = serializer.validated_data["dates"]
        result = self.get_service().cancel_dates(pk, cancelled, renter_id=request.user.id)
        remaining = result.reservation.dates
        return self._respond(
            result.reservation,
            message=(
                "Selected dates cancelled successfully" if remaining else "Booking cancelled completely"
            ),
            cancelled_dates=result.availability.requested_dates.iso(),
            remaining_dates=remaining.iso(),
            new_total_amount=str(result.reservation.total_amount.amount),
            date_availability=result.availability.to_dict()["date_availability"],
        )

    # ----- equipment reads -----

    @action(
        detail=False,
        methods=["get"],
        url_path=r"equipment/(?P<equipment_id>[^/.]+)/availability",
        permission_classes=[permissions.AllowAny],
        filter_backends=[],
    )
    def availability(self, request, equipment_id=None):  # type: ignore
        serializer = AvailabilityQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        report = self.get_service().check_availability(
            equipment_id,
            dates=serializer.selected(),
            start_date=serializer.validated_data.get("start_date"),
            end_date=serializer.validated_data.get("end_date"),
            exclude_reservation_id=serializer.validated_data.get("exclude_booking"),
        )
        return Response(report.to_dict())

    @action(
        detail=False,
        methods=["get"],
        url_path=r"equipment/(?P<equipment_id>[^/.]+)/calendar",
        permission_classes=[permissions.AllowAny],
        filter_backends=[],
    )
    def calendar(self, request, equipment_id=None):  # type: ignore
        serializer = CalendarQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = self.get_service().get_calendar(
            equipment_id,
            month=serializer.validated_data.get("month"),
            year=serializer.validated_data.get("year"),
        )
        return Response(data)
