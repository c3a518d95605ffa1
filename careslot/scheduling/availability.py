"""Doctor availability: recurring weekly windows and their invariants.

A doctor has at most one ``DoctorAvailability`` row per weekday, holding one
or more non-overlapping ``AvailabilityWindow`` rows. Windows that merely
touch (one ends when the next starts) are allowed.
"""

import logging
from datetime import time
from typing import Iterable, NamedTuple

from sqlalchemy.orm import Session

from careslot.models.availability import AvailabilityWindow, DoctorAvailability
from careslot.scheduling.clock import WEEKDAY_NAMES, parse_day_of_week, parse_time_of_day
from careslot.scheduling.errors import (
    AvailabilityExists,
    NotFoundError,
    NotOwner,
    OverlapError,
    ValidationError,
)
from careslot.scheduling.store import commit, get_doctor

logger = logging.getLogger(__name__)


class WindowSpec(NamedTuple):
    start_time: time
    end_time: time


def normalize_windows(windows: Iterable) -> list[WindowSpec]:
    """Parse submitted windows, which may be objects or mappings with start/end times."""
    normalized: list[WindowSpec] = []

    for window in windows:
        if isinstance(window, dict):
            raw_start, raw_end = window.get('start_time'), window.get('end_time')
        else:
            raw_start, raw_end = window.start_time, window.end_time

        start = parse_time_of_day(raw_start)
        end = parse_time_of_day(raw_end)
        if start >= end:
            raise ValidationError(f'Window start {start:%H:%M} must be before its end {end:%H:%M}.')
        normalized.append(WindowSpec(start, end))

    if not normalized:
        raise ValidationError('Provide at least one time slot.')

    return normalized


def check_overlaps(windows: Iterable) -> None:
    ordered = sorted(windows, key=lambda window: window.start_time)

    for previous, following in zip(ordered, ordered[1:]):
        if previous.end_time > following.start_time:
            raise OverlapError(
                f'Time slot {previous.start_time:%H:%M}-{previous.end_time:%H:%M} overlaps '
                f'{following.start_time:%H:%M}-{following.end_time:%H:%M}.'
            )


def _find_day(db: Session, doctor_id: int, day_of_week: int) -> DoctorAvailability | None:
    return db.query(DoctorAvailability).filter(
        DoctorAvailability.doctor_id == doctor_id,
        DoctorAvailability.day_of_week == day_of_week,
    ).first()


def _get_owned_day(db: Session, doctor_id: int, availability_id: int) -> DoctorAvailability:
    day = db.query(DoctorAvailability).filter(DoctorAvailability.id == availability_id).first()

    if day is None:
        raise NotFoundError('Availability not found.')
    if day.doctor_id != doctor_id:
        raise NotOwner('You are not authorized to change this availability.')

    return day


def _build_windows(windows: list[WindowSpec]) -> list[AvailabilityWindow]:
    return [
        AvailabilityWindow(start_time=window.start_time, end_time=window.end_time)
        for window in sorted(windows, key=lambda window: window.start_time)
    ]


def list_availability(db: Session, doctor_id: int) -> list[DoctorAvailability]:
    return db.query(DoctorAvailability).filter(
        DoctorAvailability.doctor_id == doctor_id,
    ).order_by(DoctorAvailability.day_of_week.asc()).all()


def windows_for_day(db: Session, doctor_id: int, day_of_week: int) -> list[AvailabilityWindow]:
    return db.query(AvailabilityWindow).join(DoctorAvailability).filter(
        DoctorAvailability.doctor_id == doctor_id,
        DoctorAvailability.day_of_week == day_of_week,
    ).order_by(AvailabilityWindow.start_time.asc()).all()


def configured_weekdays(db: Session, doctor_id: int) -> set[int]:
    rows = db.query(DoctorAvailability.day_of_week).select_from(DoctorAvailability).join(AvailabilityWindow).filter(
        DoctorAvailability.doctor_id == doctor_id,
    ).distinct().all()

    return {day_of_week for (day_of_week,) in rows}


def set_availability(db: Session, doctor_id: int, day_of_week: int | str, windows: Iterable) -> DoctorAvailability:
    """Create the availability for a day that has none yet."""
    day_of_week = parse_day_of_week(day_of_week)
    specs = normalize_windows(windows)
    check_overlaps(specs)
    get_doctor(db, doctor_id)

    exists_error = AvailabilityExists(f'Availability for {WEEKDAY_NAMES[day_of_week]} already exists.')
    if _find_day(db, doctor_id, day_of_week) is not None:
        raise exists_error

    day = DoctorAvailability(doctor_id=doctor_id, day_of_week=day_of_week, windows=_build_windows(specs))
    db.add(day)
    commit(db, conflict_error=exists_error)
    db.refresh(day)

    logger.info('Doctor %s set availability for %s', doctor_id, WEEKDAY_NAMES[day_of_week])
    return day


def add_windows(db: Session, doctor_id: int, day_of_week: int | str, windows: Iterable) -> DoctorAvailability:
    """Append windows to a day, checking them against the ones already stored."""
    day_of_week = parse_day_of_week(day_of_week)
    specs = normalize_windows(windows)
    get_doctor(db, doctor_id)

    day = _find_day(db, doctor_id, day_of_week)
    existing = [WindowSpec(window.start_time, window.end_time) for window in day.windows] if day else []
    check_overlaps(existing + specs)

    if day is None:
        day = DoctorAvailability(doctor_id=doctor_id, day_of_week=day_of_week, windows=[])
        db.add(day)

    day.windows.extend(_build_windows(specs))
    commit(db, conflict_error=AvailabilityExists('Availability for this day changed concurrently; retry.'))
    db.refresh(day)

    logger.info('Doctor %s added %d window(s) to %s', doctor_id, len(specs), WEEKDAY_NAMES[day_of_week])
    return day


def replace_availability(db: Session, doctor_id: int, day_of_week: int | str, windows: Iterable) -> DoctorAvailability:
    """Swap every window of an existing day for ``windows``."""
    day_of_week = parse_day_of_week(day_of_week)
    specs = normalize_windows(windows)
    check_overlaps(specs)

    day = _find_day(db, doctor_id, day_of_week)
    if day is None:
        raise NotFoundError(f'First create availability for {WEEKDAY_NAMES[day_of_week]} before updating it.')

    day.windows = _build_windows(specs)
    commit(db)
    db.refresh(day)

    logger.info('Doctor %s replaced availability for %s', doctor_id, WEEKDAY_NAMES[day_of_week])
    return day


def delete_availability(db: Session, doctor_id: int, availability_id: int) -> None:
    day = _get_owned_day(db, doctor_id, availability_id)

    db.delete(day)
    commit(db)

    logger.info('Doctor %s deleted availability %s', doctor_id, availability_id)


def delete_window(db: Session, doctor_id: int, availability_id: int, window_id: int) -> None:
    """Delete one window; the day itself goes too once it has no windows left."""
    day = _get_owned_day(db, doctor_id, availability_id)

    window = next((candidate for candidate in day.windows if candidate.id == window_id), None)
    if window is None:
        raise NotFoundError('Time slot not found.')

    day.windows.remove(window)
    if not day.windows:
        db.delete(day)
    commit(db)

    logger.info('Doctor %s deleted window %s of availability %s', doctor_id, window_id, availability_id)
