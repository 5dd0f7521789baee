"""Integration tests for booking API endpoints."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Reservation
from apps.equipment.models import Equipment

User = get_user_model()


class BookingAPITests(APITestCase):
    """Covers creation, conflicts, payment flow and owner decisions."""

    def setUp(self) -> None:
        self.renter = User.objects.create_user(username="farmer", password="FarmerPass123")
        self.other_renter = User.objects.create_user(username="neighbour", password="NeighbourPass123")
        self.owner = User.objects.create_user(username="owner", password="OwnerPass123")
        self.equipment = Equipment.objects.create(
            owner=self.owner,
            name="Mahindra 575 DI",
            model="575 DI XP Plus",
            category=Equipment.Category.TRACTOR,
            location="Nashik",
            price_per_day=Decimal("1200.00"),
            total_quantity=1,
        )
        self.today = timezone.localdate()
        self.client.force_authenticate(self.renter)
        self.list_url = reverse("booking-list")

    def _day(self, offset: int) -> str:
        return (self.today + timedelta(days=offset)).isoformat()

    def _payload(self, *offsets: int) -> dict:
        return {
            "equipment": self.equipment.id,
            "dates": [self._day(offset) for offset in offsets],
            "total_amount": str(Decimal("1200.00") * len(offsets)),
        }

    def _book(self, *offsets: int) -> int:
        response = self.client.post(self.list_url, self._payload(*offsets), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        return response.data["booking"]["id"]

    def test_renter_can_create_booking(self) -> None:
        response = self.client.post(self.list_url, self._payload(1, 2), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        booking = response.data["booking"]
        self.assertEqual(booking["status"], "pending")
        self.assertEqual(booking["owner_id"], self.owner.id)
        self.assertEqual(booking["dates"], [self._day(1), self._day(2)])
        self.assertEqual(Reservation.objects.count(), 1)

    def test_booking_the_last_unit_twice_conflicts(self) -> None:
        self._book(1, 2)
        self.client.force_authenticate(self.other_renter)

        response = self.client.post(self.list_url, self._payload(2, 3), format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)
        self.assertEqual(response.data["kind"], "availability_changed")
        self.assertEqual(response.data["unavailable_dates"], [self._day(2)])

    def test_past_date_names_the_offending_day(self) -> None:
        response = self.client.post(self.list_url, self._payload(-1), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["kind"], "invalid_date_window")
        self.assertEqual(response.data["date"], self._day(-1))

    def test_beyond_booking_window_is_rejected(self) -> None:
        response = self.client.post(self.list_url, self._payload(16), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["date"], self._day(16))

    def test_missing_dates(self) -> None:
        payload = {"equipment": self.equipment.id, "total_amount": "0.00"}
        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["kind"], "no_dates_provided")

    def test_list_only_shows_own_bookings(self) -> None:
        mine = self._book(1)
        self.client.force_authenticate(self.other_renter)
        self._book(3)

        self.client.force_authenticate(self.renter)
        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["id"] for row in response.data], [mine])

        self.client.force_authenticate(self.owner)
        response = self.client.get(self.list_url, {"status": "pending"})
        self.assertEqual(len(response.data), 2)

    def test_payment_hold_then_confirm(self) -> None:
        response = self.client.post(reverse("booking-payment-hold"), self._payload(1), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        booking_id = response.data["booking"]["id"]
        self.assertTrue(response.data["booking"]["is_payment_hold"])
        self.assertIsNotNone(response.data["hold_expires_at"])

        response = self.client.put(
            reverse("booking-confirm-payment", args=[booking_id]),
            {"payment_method": "upi", "transaction_id": "pay_123"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["booking"]["status"], "pending")
        self.assertEqual(response.data["booking"]["payment_status"], "completed")
        self.assertIsNone(response.data["booking"]["payment_hold_expiry"])

    def test_cancel_payment_frees_the_unit(self) -> None:
        response = self.client.post(reverse("booking-payment-hold"), self._payload(1), format="json")
        booking_id = response.data["booking"]["id"]

        response = self.client.put(reverse("booking-cancel-payment", args=[booking_id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["booking"]["status"], "cancelled")

        self.client.force_authenticate(self.other_renter)
        self._book(1)

    def test_accept_is_owner_only(self) -> None:
        booking_id = self._book(1)
        url = reverse("booking-accept", args=[booking_id])

        response = self.client.put(url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN, response.data)
        self.assertEqual(response.data["kind"], "access_denied")

        self.client.force_authenticate(self.owner)
        response = self.client.put(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["booking"]["status"], "confirmed")

    def test_reject_and_complete(self) -> None:
        first = self._book(1)
        self.client.force_authenticate(self.owner)

        response = self.client.put(reverse("booking-complete", args=[first]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["kind"], "invalid_status")

        response = self.client.put(reverse("booking-reject", args=[first]))
        self.assertEqual(response.data["booking"]["status"], "rejected")

    def test_cancel_some_dates(self) -> None:
        booking_id = self._book(1, 2, 3)

        response = self.client.put(
            reverse("booking-cancel-dates", args=[booking_id]),
            {"dates": [self._day(2)]},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["cancelled_dates"], [self._day(2)])
        self.assertEqual(response.data["remaining_dates"], [self._day(1), self._day(3)])
        self.assertEqual(response.data["new_total_amount"], "2400.00")
        self.assertTrue(response.data["date_availability"][self._day(2)]["available"])

    def test_owner_moves_dates(self) -> None:
        booking_id = self._book(1)
        self.client.force_authenticate(self.owner)

        response = self.client.patch(
            reverse("booking-detail", args=[booking_id]),
            {"start_date": self._day(4), "end_date": self._day(5)},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["booking"]["dates"], [self._day(4), self._day(5)])

    def test_availability_is_public(self) -> None:
        self._book(2)
        self.client.force_authenticate(None)

        response = self.client.get(
            reverse("booking-availability", kwargs={"equipment_id": self.equipment.id}),
            {"selected_dates": f"{self._day(1)},{self._day(2)}"},
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertFalse(response.data["available"])
        self.assertEqual(response.data["unavailable_dates"], [self._day(2)])
        self.assertEqual(response.data["available_per_date"][self._day(1)], 1)

    def test_availability_refuses_oversized_range(self) -> None:
        self.client.force_authenticate(None)

        response = self.client.get(
            reverse("booking-availability", kwargs={"equipment_id": self.equipment.id}),
            {"start_date": "2025-01-01", "end_date": "2124-12-31"},
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["kind"], "invalid_date_window")
        self.assertEqual(response.data["date"], "2124-12-31")

    def test_invalid_amount_is_a_bad_request(self) -> None:
        payload = self._payload(1)
        payload["total_amount"] = "-5.00"

        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(Reservation.objects.count(), 0)

    def test_calendar(self) -> None:
        self._book(1)
        self.client.force_authenticate(None)
        day = self.today + timedelta(days=1)

        response = self.client.get(
            reverse("booking-calendar", kwargs={"equipment_id": self.equipment.id}),
            {"month": day.month, "year": day.year},
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["calendar"][day.isoformat()]["available_units"], 0)

    def test_unknown_booking(self) -> None:
        self.client.force_authenticate(self.owner)
        response = self.client.put(reverse("booking-accept", args=[999999]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, response.data)
        self.assertEqual(response.data["kind"], "not_found")

    def test_unknown_equipment(self) -> None:
        response = self.client.get(reverse("booking-availability", kwargs={"equipment_id": 999999}))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, response.data)
