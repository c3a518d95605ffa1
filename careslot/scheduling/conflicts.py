"""Conflict detection against existing appointments.

Every appointment occupies its time regardless of status: a pending booking
blocks the slot exactly like a confirmed one. All datetimes passed to the
query helpers are naive UTC, the way ``Appointment.appointment_time`` is
stored.
"""

from datetime import datetime
from typing import Iterable

from sqlalchemy.orm import Session

from careslot.models.appointment import Appointment
from careslot.scheduling.clock import to_utc_naive
from careslot.scheduling.slots import Slot


def _as_utc_naive(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return to_utc_naive(moment)


def has_conflict(db: Session, doctor_id: int, slot: Slot) -> bool:
    start = _as_utc_naive(slot.start_time)
    end = _as_utc_naive(slot.end_time)

    existing = db.query(Appointment.id).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.appointment_time >= start,
        Appointment.appointment_time < end,
    ).first()

    return existing is not None


def is_time_taken(db: Session, doctor_id: int, appointment_time: datetime) -> bool:
    existing = db.query(Appointment.id).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.appointment_time == _as_utc_naive(appointment_time),
    ).first()

    return existing is not None


def booked_times_between(db: Session, doctor_id: int, start: datetime, end: datetime) -> set[datetime]:
    rows = db.query(Appointment.appointment_time).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.appointment_time >= _as_utc_naive(start),
        Appointment.appointment_time < _as_utc_naive(end),
    ).all()

    return {appointment_time for (appointment_time,) in rows}


def filter_free_slots(slots: Iterable[Slot], booked_times: set[datetime]) -> list[Slot]:
    """Drop every slot with a booked instant in ``[start, end)``; order is kept."""
    free_slots: list[Slot] = []

    for slot in slots:
        start = _as_utc_naive(slot.start_time)
        end = _as_utc_naive(slot.end_time)
        if any(start <= booked < end for booked in booked_times):
            continue
        free_slots.append(slot)

    return free_slots
