"""FilterSet definitions for reservation listing."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Reservation


class ReservationFilterSet(django_filters.FilterSet):
    """Filters for the reservation list.

    ``start_date`` and ``end_date`` together keep reservations whose stored
    range overlaps ``[start_date, end_date]``; either one alone is ignored.
    """

    renter = django_filters.NumberFilter(field_name="renter_id", lookup_expr="exact")
    owner = django_filters.NumberFilter(field_name="owner_id", lookup_expr="exact")
    equipment = django_filters.NumberFilter(field_name="equipment_id", lookup_expr="exact")
    status = django_filters.ChoiceFilter(choices=Reservation.Status.choices)
    start_date = django_filters.DateFilter(method="filter_bound")
    end_date = django_filters.DateFilter(method="filter_bound")

    class Meta:
        model = Reservation
        fields = ["renter", "owner", "equipment", "status"]

    def filter_bound(self, queryset, name, value):  # type: ignore
        # Applied as a pair in filter_queryset
        return queryset

    def filter_queryset(self, queryset):  # type: ignore
        queryset = super().filter_queryset(queryset)
        start = self.form.cleaned_data.get("start_date")
        end = self.form.cleaned_data.get("end_date")
        if start and end:
            queryset = queryset.filter(start_date__lte=end, end_date__gte=start)
        return queryset
