from datetime import date
from decimal import Decimal

import pytest

from shared.domain.value_objects import (
    DateRangeTooLong,
    DateSet,
    EmptyDateSet,
    InvalidDate,
    Money,
    expand,
    normalize,
)


def test_expand_is_inclusive():
    assert expand("2025-08-20", "2025-08-22") == (
        date(2025, 8, 20),
        date(2025, 8, 21),
        date(2025, 8, 22),
    )


def test_expand_single_day():
    assert expand("2025-08-20", "2025-08-20") == (date(2025, 8, 20),)


def test_expand_end_before_start_is_empty():
    assert expand("2025-08-22", "2025-08-20") == ()


@pytest.mark.parametrize(
    "start,end,count",
    [
        # US spring forward and EU fall back weekends
        ("2025-03-08", "2025-03-10", 3),
        ("2025-10-25", "2025-10-27", 3),
    ],
)
def test_expand_ignores_daylight_saving_changes(start, end, count):
    days = expand(start, end)
    assert len(days) == count
    assert len(set(days)) == count


def test_expand_crosses_month_and_leap_day():
    assert expand("2024-02-28", "2024-03-01") == (
        date(2024, 2, 28),
        date(2024, 2, 29),
        date(2024, 3, 1),
    )


def test_normalize_sorts_and_deduplicates():
    assert normalize(["2025-08-22", "2025-08-20", "2025-08-22"]) == (
        date(2025, 8, 20),
        date(2025, 8, 22),
    )


def test_normalize_prefers_explicit_list_over_range():
    assert normalize(["2025-08-25"], "2025-08-20", "2025-08-21") == (date(2025, 8, 25),)


def test_normalize_range():
    assert len(normalize(start="2025-08-20", end="2025-08-24")) == 5


def test_normalize_empty_list_is_an_error():
    with pytest.raises(EmptyDateSet):
        normalize([])


def test_normalize_without_input_is_an_error():
    with pytest.raises(EmptyDateSet):
        normalize()


def test_expand_refuses_span_over_limit():
    with pytest.raises(DateRangeTooLong) as excinfo:
        expand("2025-01-01", "9999-12-31", max_days=93)
    assert excinfo.value.day == date(9999, 12, 31)
    assert excinfo.value.max_days == 93


def test_expand_span_at_limit_is_allowed():
    assert len(expand("2025-08-01", "2025-08-31", max_days=31)) == 31


def test_normalize_limits_explicit_lists():
    days = ["2025-08-23", "2025-08-21", "2025-08-22"]
    assert len(normalize(days, max_days=3)) == 3
    with pytest.raises(DateRangeTooLong) as excinfo:
        normalize(days, max_days=2)
    assert excinfo.value.day == date(2025, 8, 23)


def test_date_set_between_passes_limit():
    with pytest.raises(DateRangeTooLong):
        DateSet.between("2025-08-20", "2025-09-30", max_days=15)


def test_malformed_date_is_reported():
    with pytest.raises(InvalidDate) as excinfo:
        normalize(["2025-13-40"])
    assert excinfo.value.value == "2025-13-40"


def test_date_set_overlap_and_difference():
    first = DateSet.of(["2025-08-20", "2025-08-21", "2025-08-22"])
    second = DateSet.of(["2025-08-22", "2025-08-23"])

    assert first.overlaps(second)
    assert first.intersection(second).iso() == ["2025-08-22"]
    assert first.difference(second).iso() == ["2025-08-20", "2025-08-21"]
    assert not first.overlaps(DateSet.of(["2025-09-01"]))


def test_date_set_bounds_are_derived():
    days = DateSet.of(["2025-08-25", "2025-08-20", "2025-08-22"])
    assert days.start == date(2025, 8, 20)
    assert days.end == date(2025, 8, 25)
    assert "2025-08-22" in days
    assert date(2025, 8, 21) not in days


def test_empty_date_set_has_no_bounds():
    days = DateSet()
    assert not days
    assert days.start is None
    assert days.end is None


def test_missing_from_lists_foreign_days():
    booked = DateSet.of(["2025-08-20", "2025-08-21"])
    requested = DateSet.of(["2025-08-21", "2025-08-23"])
    assert requested.missing_from(booked) == (date(2025, 8, 23),)


def test_money_prorate_rounds_half_up():
    assert Money(Decimal("100.00")).prorate(1, 3).amount == Decimal("33.33")
    assert Money(Decimal("0.05")).prorate(1, 2).amount == Decimal("0.03")


def test_money_rejects_negative_amount():
    with pytest.raises(ValueError):
        Money(Decimal("-1"))


def test_money_currency_mismatch():
    with pytest.raises(ValueError):
        Money(Decimal("1"), "INR") + Money(Decimal("1"), "USD")
