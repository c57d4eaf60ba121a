"""Tests for the month partition and month-key helpers."""

from __future__ import annotations

import pytest
from datetime import date

from budget_recon.core.dates import (
    days_in_month,
    month_key,
    month_name,
    parse_month_key,
    partition_month,
)


@pytest.mark.parametrize("year", [2023, 2024, 2025, 2026])
@pytest.mark.parametrize("month", range(1, 13))
def test_weeks_cover_every_day_once(year: int, month: int) -> None:
    weeks = partition_month(year, month)
    days = [d for w in weeks for d in w.days]
    assert days == list(range(1, days_in_month(year, month) + 1))
    assert [w.index for w in weeks] == list(range(len(weeks)))


@pytest.mark.parametrize("year", [2024, 2025])
@pytest.mark.parametrize("month", range(1, 13))
def test_weeks_after_the_first_start_on_monday(year: int, month: int) -> None:
    for w in partition_month(year, month)[1:]:
        assert date(year, month, w.start_date).weekday() == 0


def test_thirty_day_month_starting_wednesday() -> None:
    # April 2026: 1st is a Wednesday
    weeks = partition_month(2026, 4)
    assert len(weeks) == 5
    assert (weeks[0].start_date, weeks[0].end_date) == (1, 5)
    assert (weeks[-1].start_date, weeks[-1].end_date) == (27, 30)
    assert [w.date_range_label for w in weeks] == ["1-5", "6-12", "13-19", "20-26", "27-30"]


def test_sunday_first_is_a_one_day_week() -> None:
    # June 2025: 1st is a Sunday
    weeks = partition_month(2025, 6)
    assert weeks[0].date_range_label == "1-1"
    assert weeks[1].date_range_label == "2-8"
    assert weeks[-1].date_range_label == "30-30"
    assert len(weeks) == 6


def test_february_starting_monday_has_four_full_weeks() -> None:
    weeks = partition_month(2021, 2)
    assert [w.date_range_label for w in weeks] == ["1-7", "8-14", "15-21", "22-28"]


def test_leap_february() -> None:
    assert days_in_month(2024, 2) == 29
    assert partition_month(2024, 2)[-1].end_date == 29


def test_month_key_round_trip_and_errors() -> None:
    assert month_key(2025, 4) == "2025-04"
    assert parse_month_key("2025-04") == (2025, 4)
    assert month_name(4) == "April"
    with pytest.raises(ValueError):
        month_key(2025, 13)
    with pytest.raises(ValueError):
        parse_month_key("April-2025")
    with pytest.raises(ValueError):
        parse_month_key("2025-04-01")
