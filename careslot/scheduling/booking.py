"""Booking: turning a free slot into an appointment, and the appointment lifecycle.

The availability and conflict checks below are pre-checks that give
precise errors in the common case. Two requests for the same doctor and
instant can both pass them; the unique ``(doctor_id, appointment_time)``
constraint decides which insert wins and the loser gets ``SlotTaken``.
"""

import logging
from datetime import date, datetime, timedelta, timezone

from sqlalchemy.orm import Session

from careslot.core import config
from careslot.models.appointment import (
    APPOINTMENT_STATUSES,
    CANCELLED,
    COMPLETED,
    CONFIRMED,
    PENDING,
    Appointment,
    AppointmentStatusLog,
)
from careslot.notifications import BOOKING_CREATED, STATUS_CHANGED, Notifier, event_for, publish
from careslot.scheduling.availability import configured_weekdays, windows_for_day
from careslot.scheduling.clock import (
    get_zone,
    is_skipped_wall_time,
    local_day_bounds,
    localize,
    to_utc_naive,
    utc_now,
    weekday_of,
)
from careslot.scheduling.conflicts import booked_times_between, filter_free_slots, is_time_taken
from careslot.scheduling.errors import (
    InvalidTransition,
    NoAvailabilityConfigured,
    NotAvailable,
    NotFoundError,
    NotOwner,
    SlotTaken,
    ValidationError,
)
from careslot.scheduling.slots import Slot, generate_slots
from careslot.scheduling.store import PATIENT_ROLE, commit, get_doctor, get_user_with_role

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    PENDING: {CONFIRMED, CANCELLED},
    CONFIRMED: {COMPLETED, CANCELLED},
    CANCELLED: set(),
    COMPLETED: set(),
}

PATIENT_VIEWS = ('upcoming', 'past', 'cancelled')


def _aware_now(now: datetime | None) -> datetime:
    if now is None:
        return utc_now()
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def get_available_slots(db: Session, doctor_id: int, slot_date: date, now: datetime | None = None) -> list[Slot]:
    """Free slots for ``slot_date`` in the doctor's timezone, earliest first.

    Slots starting within ``BOOKING_LEAD_MINUTES`` of ``now`` are left out.
    """
    doctor = get_doctor(db, doctor_id)
    zone = get_zone(doctor.timezone)

    if not configured_weekdays(db, doctor_id):
        raise NoAvailabilityConfigured('No availability found for the doctor.')

    windows = windows_for_day(db, doctor_id, weekday_of(slot_date))
    slots = generate_slots(windows, slot_date, zone)
    if not slots:
        return []

    day_start, day_end = local_day_bounds(slot_date, zone)
    free_slots = filter_free_slots(slots, booked_times_between(db, doctor_id, day_start, day_end))

    cutoff = _aware_now(now) + timedelta(minutes=config.BOOKING_LEAD_MINUTES)
    return [slot for slot in free_slots if slot.start_time >= cutoff]


def book_appointment(
    db: Session,
    doctor_id: int,
    patient_id: int,
    appointment_time: datetime,
    notes: str | None = None,
    now: datetime | None = None,
    notifier: Notifier | None = None,
) -> Appointment:
    doctor = get_doctor(db, doctor_id)
    get_user_with_role(db, patient_id, PATIENT_ROLE)

    if notes is not None and len(notes) > config.MAX_APPOINTMENT_NOTES_LENGTH:
        raise ValidationError(f'Notes must be {config.MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

    zone = get_zone(doctor.timezone)
    if appointment_time.tzinfo is None and is_skipped_wall_time(appointment_time, zone):
        raise NotAvailable('That local time is skipped by a daylight-saving change.')

    local_time = localize(appointment_time, zone)
    if local_time <= _aware_now(now):
        raise ValidationError('Appointments must be scheduled in the future.')

    stored_time = to_utc_naive(local_time)
    slot_date = local_time.date()
    windows = windows_for_day(db, doctor_id, weekday_of(slot_date))
    # compare in UTC; aware values sharing a tzinfo compare by wall time and ignore fold
    slot_starts = {to_utc_naive(slot.start_time) for slot in generate_slots(windows, slot_date, zone)}
    if stored_time not in slot_starts:
        raise NotAvailable('The doctor is not available at this time.')

    taken_error = SlotTaken('The selected time slot is already booked.')
    if is_time_taken(db, doctor_id, stored_time):
        raise taken_error

    appointment = Appointment(
        doctor_id=doctor_id,
        patient_id=patient_id,
        appointment_time=stored_time,
        status=PENDING,
        notes=notes,
    )
    appointment.status_logs.append(AppointmentStatusLog(status=PENDING, changed_by=patient_id))
    db.add(appointment)
    commit(db, conflict_error=taken_error)
    db.refresh(appointment)

    logger.info('Booked appointment %s for doctor %s at %s UTC', appointment.id, doctor_id, stored_time)
    publish(notifier, event_for(appointment, BOOKING_CREATED))
    return appointment


def _get_appointment(db: Session, appointment_id: int) -> Appointment:
    appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if appointment is None:
        raise NotFoundError('Appointment not found.')
    return appointment


def _transition(
    db: Session,
    appointment: Appointment,
    new_status: str,
    changed_by: int,
    notifier: Notifier | None,
) -> Appointment:
    previous_status = appointment.status
    if new_status not in ALLOWED_TRANSITIONS.get(previous_status, set()):
        raise InvalidTransition(f'Cannot change an appointment from {previous_status} to {new_status}.')

    appointment.status = new_status
    appointment.status_logs.append(AppointmentStatusLog(status=new_status, changed_by=changed_by))
    commit(db)
    db.refresh(appointment)

    logger.info('Appointment %s moved %s -> %s', appointment.id, previous_status, new_status)
    publish(notifier, event_for(appointment, STATUS_CHANGED, previous_status=previous_status))
    return appointment


def update_appointment_status(
    db: Session,
    appointment_id: int,
    doctor_id: int,
    new_status: str,
    notifier: Notifier | None = None,
) -> Appointment:
    normalized = (new_status or '').strip().upper()
    if normalized not in APPOINTMENT_STATUSES:
        raise ValidationError(f'Status must be one of: {", ".join(APPOINTMENT_STATUSES)}.')

    appointment = _get_appointment(db, appointment_id)
    if appointment.doctor_id != doctor_id:
        raise NotOwner('Not authorized to update this appointment.')

    return _transition(db, appointment, normalized, doctor_id, notifier)


def cancel_appointment(
    db: Session,
    appointment_id: int,
    patient_id: int,
    notifier: Notifier | None = None,
) -> Appointment:
    appointment = _get_appointment(db, appointment_id)
    if appointment.patient_id != patient_id:
        raise NotOwner('Only the patient who booked this appointment can cancel it.')

    return _transition(db, appointment, CANCELLED, patient_id, notifier)


def get_appointment_for_user(db: Session, appointment_id: int, user_id: int) -> Appointment:
    appointment = _get_appointment(db, appointment_id)
    # Hide appointments from non-participants instead of revealing they exist.
    if user_id not in (appointment.doctor_id, appointment.patient_id):
        raise NotFoundError('Appointment not found.')
    return appointment


def list_doctor_appointments(db: Session, doctor_id: int) -> list[Appointment]:
    return db.query(Appointment).filter(
        Appointment.doctor_id == doctor_id,
    ).order_by(Appointment.appointment_time.asc()).all()


def list_patient_appointments(
    db: Session,
    patient_id: int,
    view: str | None = None,
    now: datetime | None = None,
) -> list[Appointment]:
    query = db.query(Appointment).filter(Appointment.patient_id == patient_id)

    if view:
        normalized = view.strip().lower()
        if normalized not in PATIENT_VIEWS:
            raise ValidationError(f'view must be one of: {", ".join(PATIENT_VIEWS)}.')

        current = to_utc_naive(_aware_now(now))
        if normalized == 'upcoming':
            query = query.filter(Appointment.appointment_time >= current)
        elif normalized == 'past':
            query = query.filter(Appointment.appointment_time < current)
        else:
            query = query.filter(Appointment.status == CANCELLED)

    return query.order_by(Appointment.appointment_time.asc()).all()
