from datetime import date, datetime, time, timezone

import pytest
from pydantic import ValidationError

from src.core import CalculationException
from src.shared.domain import (
    BusinessHoursCalendar,
    LocationContext,
    end_of_day_utc,
    local_to_utc,
    next_business_day,
    to_local_time,
)


def test_explicit_offset_wins_over_timezone_id():
    location = LocationContext("LOC-1", utc_offset_hours=-6, timezone_id="America/New_York")
    instant = datetime(2025, 7, 1, 12, 0, tzinfo=timezone.utc)

    assert location.offset_at(instant) == -6


def test_timezone_id_follows_daylight_saving():
    location = LocationContext("LOC-1", timezone_id="America/New_York")

    assert location.offset_at(datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)) == -5
    assert location.offset_at(datetime(2025, 7, 15, 12, 0, tzinfo=timezone.utc)) == -4


def test_unknown_timezone_raises_calculation_error():
    location = LocationContext("LOC-1", timezone_id="Mars/Olympus_Mons")

    with pytest.raises(CalculationException):
        location.offset_at(datetime(2025, 1, 15, tzinfo=timezone.utc))


def test_location_without_zone_is_utc():
    assert LocationContext().offset_at(datetime(2025, 1, 15, tzinfo=timezone.utc)) == 0


def test_to_local_time_shifts_wall_clock():
    local = to_local_time(datetime(2025, 1, 6, 10, 0, tzinfo=timezone.utc), -5)

    assert (local.date(), local.hour) == (date(2025, 1, 6), 5)


def test_to_local_time_rejects_naive_datetime():
    with pytest.raises(CalculationException):
        to_local_time(datetime(2025, 1, 6, 10, 0), -5)


def test_local_to_utc_and_end_of_day():
    assert local_to_utc(date(2025, 1, 8), time(17, 0), -5) == datetime(
        2025, 1, 8, 22, 0, tzinfo=timezone.utc
    )
    assert end_of_day_utc(date(2025, 1, 8), -5) == datetime(
        2025, 1, 9, 4, 59, 59, tzinfo=timezone.utc
    )


def test_calendar_defaults_to_weekdays():
    calendar = BusinessHoursCalendar()

    assert calendar.is_within(date(2025, 1, 10))      # Friday
    assert not calendar.is_within(date(2025, 1, 11))  # Saturday


def test_calendar_honours_holidays_and_opening_window(calendar):
    assert not calendar.is_within(date(2025, 1, 1))
    assert calendar.is_within(datetime(2025, 1, 2, 9, 30))
    assert not calendar.is_within(datetime(2025, 1, 2, 17, 0))
    assert not calendar.is_within(datetime(2025, 1, 2, 7, 59))


def test_calendar_normalises_weekday_names():
    calendar = BusinessHoursCalendar(working_days=["saturday", " Sunday "])

    assert calendar.working_days == ["Saturday", "Sunday"]
    assert calendar.is_within(date(2025, 1, 11))


@pytest.mark.parametrize("kwargs", [
    {"working_days": []},
    {"working_days": ["Funday"]},
    {"open_time": time(17, 0), "close_time": time(8, 0)},
])
def test_calendar_rejects_invalid_definitions(kwargs):
    with pytest.raises(ValidationError):
        BusinessHoursCalendar(**kwargs)


def test_next_business_day_skips_weekend_and_holiday(calendar):
    assert next_business_day(date(2025, 1, 2), calendar) == date(2025, 1, 2)
    assert next_business_day(date(2025, 1, 11), calendar) == date(2025, 1, 13)
    assert next_business_day(date(2025, 1, 1), calendar) == date(2025, 1, 2)


def test_next_business_day_gives_up_when_every_day_is_a_holiday():
    start = date(2025, 1, 6)
    calendar = BusinessHoursCalendar(
        working_days=["Monday"],
        holidays=[date.fromordinal(start.toordinal() + i) for i in range(0, 400, 7)],
    )

    with pytest.raises(CalculationException):
        next_business_day(start, calendar)
