import calendar
from datetime import date
from typing import Iterable

from sqlalchemy.orm import Session

from careslot.scheduling.availability import configured_weekdays
from careslot.scheduling.clock import weekday_of
from careslot.scheduling.errors import NoAvailabilityConfigured, ValidationError
from careslot.scheduling.store import get_doctor


def dates_for_weekdays(year: int, month: int, weekdays: Iterable[int]) -> list[date]:
    """Every date of the month whose weekday (0=Sunday) is in ``weekdays``, ascending."""
    if not 1 <= month <= 12:
        raise ValidationError('month must be between 1 and 12.')
    if not 1 <= year <= 9999:
        raise ValidationError('year must be between 1 and 9999.')

    wanted = set(weekdays)
    days_in_month = calendar.monthrange(year, month)[1]

    return [
        day
        for day in (date(year, month, number) for number in range(1, days_in_month + 1))
        if weekday_of(day) in wanted
    ]


def resolve_dates_for_month(db: Session, doctor_id: int, year: int, month: int) -> list[date]:
    """Dates in the month falling on one of the doctor's weekly availability days.

    Booked-out days are still returned; slots are checked per date later.
    """
    get_doctor(db, doctor_id)

    weekdays = configured_weekdays(db, doctor_id)
    if not weekdays:
        raise NoAvailabilityConfigured('No availability found for the doctor.')

    return dates_for_weekdays(year, month, weekdays)
