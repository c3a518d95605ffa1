"""Weekday and timezone conversions.

Weekdays are integers with 0=Sunday through 6=Saturday everywhere in the
core. Names are only accepted at the HTTP boundary and converted here.
Appointment instants are stored as naive UTC datetimes.
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from careslot.core import config
from careslot.scheduling.errors import ValidationError

WEEKDAY_NAMES = ('Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday')


def weekday_of(day: date) -> int:
    # date.weekday() counts from Monday=0
    return (day.weekday() + 1) % 7


def parse_day_of_week(value: int | str) -> int:
    if isinstance(value, bool):
        raise ValidationError('day_of_week must be an integer 0-6 or a weekday name.')

    if isinstance(value, int):
        if 0 <= value <= 6:
            return value
        raise ValidationError('day_of_week must be between 0 (Sunday) and 6 (Saturday).')

    normalized = str(value).strip()
    if normalized.isdigit():
        return parse_day_of_week(int(normalized))

    for index, name in enumerate(WEEKDAY_NAMES):
        if name.lower() == normalized.lower():
            return index

    raise ValidationError(f'Unknown day_of_week {value!r}.')


def parse_time_of_day(value: str | time) -> time:
    if isinstance(value, time):
        parsed = value
    else:
        try:
            parsed = time.fromisoformat(str(value).strip())
        except ValueError as exc:
            raise ValidationError(f'Invalid time {value!r}; expected HH:MM.') from exc

    if parsed.second or parsed.microsecond:
        raise ValidationError('Times must have minute precision.')

    return parsed.replace(tzinfo=None)


def get_zone(name: str | None) -> tzinfo:
    try:
        return ZoneInfo(name or config.DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValidationError(f'Unknown timezone {name!r}.') from exc


def to_utc_naive(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        raise ValueError('to_utc_naive expects an aware datetime')
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def localize(moment: datetime, zone: tzinfo) -> datetime:
    """Return ``moment`` in ``zone``; naive values are read as wall-clock time in that zone.

    A naive value that occurs twice when the clocks go back resolves to its
    first occurrence.
    """
    if moment.tzinfo is None:
        return moment.replace(tzinfo=zone)
    return moment.astimezone(zone)


def is_skipped_wall_time(moment: datetime, zone: tzinfo) -> bool:
    """Whether naive ``moment`` never shows on a clock in ``zone`` (a spring-forward gap)."""
    local = moment.replace(tzinfo=zone)
    round_trip = local.astimezone(timezone.utc).astimezone(zone)
    return round_trip.replace(tzinfo=None) != moment.replace(tzinfo=None)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_naive() -> datetime:
    # column default for the naive-UTC timestamp columns
    return utc_now().replace(tzinfo=None)


def local_day_bounds(day: date, zone: tzinfo) -> tuple[datetime, datetime]:
    """UTC-naive [start, end) covering the local calendar day in ``zone``."""
    start = datetime.combine(day, time(0, 0), tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time(0, 0), tzinfo=zone)
    return to_utc_naive(start), to_utc_naive(end)
