from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from careslot.scheduling import availability
from careslot.scheduling.clock import is_skipped_wall_time, parse_day_of_week, weekday_of
from careslot.scheduling.dates import dates_for_weekdays, resolve_dates_for_month
from careslot.scheduling.errors import NoAvailabilityConfigured, NotFoundError, ValidationError


def test_weekday_of_counts_from_sunday() -> None:
    assert weekday_of(date(2026, 1, 4)) == 0
    assert weekday_of(date(2026, 1, 5)) == 1
    assert weekday_of(date(2026, 1, 10)) == 6


@pytest.mark.parametrize(('value', 'expected'), [(0, 0), (6, 6), ('Monday', 1), (' saturday ', 6), ('3', 3)])
def test_parse_day_of_week_accepts_numbers_and_names(value, expected: int) -> None:
    assert parse_day_of_week(value) == expected


@pytest.mark.parametrize('value', [7, -1, 'Funday', True])
def test_parse_day_of_week_rejects_unknown_values(value) -> None:
    with pytest.raises(ValidationError):
        parse_day_of_week(value)


def test_is_skipped_wall_time_flags_spring_forward_gap_only() -> None:
    zone = ZoneInfo('America/New_York')

    assert is_skipped_wall_time(datetime(2026, 3, 8, 2, 30), zone)
    assert not is_skipped_wall_time(datetime(2026, 3, 8, 3, 0), zone)
    assert not is_skipped_wall_time(datetime(2026, 11, 1, 1, 30), zone)


def test_dates_for_weekdays_returns_matching_days_in_order() -> None:
    dates = dates_for_weekdays(2026, 1, {1, 3})

    assert dates == [
        date(2026, 1, 5),
        date(2026, 1, 7),
        date(2026, 1, 12),
        date(2026, 1, 14),
        date(2026, 1, 19),
        date(2026, 1, 21),
        date(2026, 1, 26),
        date(2026, 1, 28),
    ]


def test_dates_for_weekdays_handles_leap_february() -> None:
    # 2028-02-29 is a Tuesday
    assert dates_for_weekdays(2028, 2, {2})[-1] == date(2028, 2, 29)


def test_dates_for_weekdays_rejects_bad_month() -> None:
    with pytest.raises(ValidationError):
        dates_for_weekdays(2026, 13, {1})


def test_resolve_dates_for_month_uses_doctor_weekdays(db, doctor) -> None:
    availability.set_availability(db, doctor.id, 'Monday', [{'start_time': '09:00', 'end_time': '10:00'}])
    availability.set_availability(db, doctor.id, 'Wednesday', [{'start_time': '09:00', 'end_time': '10:00'}])

    dates = resolve_dates_for_month(db, doctor.id, 2026, 1)

    assert all(weekday_of(day) in {1, 3} for day in dates)
    assert len(dates) == 8
    assert dates == sorted(dates)


def test_resolve_dates_for_month_reports_missing_configuration(db, doctor) -> None:
    with pytest.raises(NoAvailabilityConfigured):
        resolve_dates_for_month(db, doctor.id, 2026, 1)


def test_resolve_dates_for_month_rejects_unknown_doctor(db) -> None:
    with pytest.raises(NotFoundError):
        resolve_dates_for_month(db, 404, 2026, 1)
