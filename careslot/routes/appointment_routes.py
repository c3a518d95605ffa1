from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from careslot.auth.dependencies import get_current_user, require_doctor, require_patient
from careslot.core import config
from careslot.database import get_db
from careslot.models.appointment import Appointment
from careslot.models.user import User
from careslot.notifications import Notifier
from careslot.routes.errors import handle_scheduling_errors
from careslot.scheduling import booking
from careslot.scheduling.dates import resolve_dates_for_month
from careslot.scheduling.slots import Slot

router = APIRouter(tags=['appointments'])

_notifier = Notifier()


def get_notifier() -> Notifier:
    return _notifier


class AvailableSlotsRequest(BaseModel):
    doctor_id: int
    date: date


class AvailableSlotResponse(BaseModel):
    start_time: datetime
    end_time: datetime
    display_time: str


class AvailableSlotsResponse(BaseModel):
    available_slots: list[AvailableSlotResponse]


class AvailableDatesResponse(BaseModel):
    available_dates: list[str]


class CreateAppointmentRequest(BaseModel):
    doctor_id: int
    appointment_time: datetime
    notes: str | None = None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > config.MAX_APPOINTMENT_NOTES_LENGTH:
            raise ValueError(f'Notes must be {config.MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

        return normalized


class UpdateStatusRequest(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        return value.strip().upper()


class AppointmentResponse(BaseModel):
    id: int
    doctor_id: int
    patient_id: int
    appointment_time: datetime
    status: str
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TimelineEntryResponse(BaseModel):
    status: str
    changed_by: int | None = None
    changed_at: datetime


class AppointmentDetailResponse(AppointmentResponse):
    timeline: list[TimelineEntryResponse]


def _utc(moment: datetime | None) -> datetime | None:
    if moment is None:
        return None
    return moment.replace(tzinfo=timezone.utc)


def to_slot_response(slot: Slot) -> AvailableSlotResponse:
    return AvailableSlotResponse(
        start_time=slot.start_time.astimezone(timezone.utc),
        end_time=slot.end_time.astimezone(timezone.utc),
        display_time=slot.start_time.strftime('%I:%M %p'),
    )


def to_appointment_response(appointment: Appointment) -> AppointmentResponse:
    return AppointmentResponse(
        id=appointment.id,
        doctor_id=appointment.doctor_id,
        patient_id=appointment.patient_id,
        appointment_time=_utc(appointment.appointment_time),
        status=appointment.status,
        notes=appointment.notes,
        created_at=_utc(appointment.created_at),
        updated_at=_utc(appointment.updated_at),
    )


def to_detail_response(appointment: Appointment) -> AppointmentDetailResponse:
    return AppointmentDetailResponse(
        **to_appointment_response(appointment).model_dump(),
        timeline=[
            TimelineEntryResponse(status=log.status, changed_by=log.changed_by, changed_at=_utc(log.changed_at))
            for log in appointment.status_logs
        ],
    )


@router.get('/available-dates', response_model=AvailableDatesResponse)
def get_available_dates(
    doctor_id: int = Query(...),
    year: int = Query(..., ge=1, le=9999),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
):
    with handle_scheduling_errors(db):
        dates = resolve_dates_for_month(db, doctor_id, year, month)
        return AvailableDatesResponse(available_dates=[day.isoformat() for day in dates])


@router.post('/available-slots', response_model=AvailableSlotsResponse)
def get_available_slots(data: AvailableSlotsRequest, db: Session = Depends(get_db)):
    with handle_scheduling_errors(db):
        slots = booking.get_available_slots(db, data.doctor_id, data.date)
        return AvailableSlotsResponse(available_slots=[to_slot_response(slot) for slot in slots])


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(
    data: CreateAppointmentRequest,
    db: Session = Depends(get_db),
    patient: User = Depends(require_patient),
    notifier: Notifier = Depends(get_notifier),
):
    with handle_scheduling_errors(db):
        appointment = booking.book_appointment(
            db,
            doctor_id=data.doctor_id,
            patient_id=patient.id,
            appointment_time=data.appointment_time,
            notes=data.notes,
            notifier=notifier,
        )
        return to_appointment_response(appointment)


@router.get('/mine', response_model=list[AppointmentResponse])
def list_my_appointments(
    view: str | None = Query(default=None),
    db: Session = Depends(get_db),
    patient: User = Depends(require_patient),
):
    with handle_scheduling_errors(db):
        appointments = booking.list_patient_appointments(db, patient.id, view=view)
        return [to_appointment_response(appointment) for appointment in appointments]


@router.get('/doctor', response_model=list[AppointmentResponse])
def list_doctor_appointments(
    db: Session = Depends(get_db),
    doctor: User = Depends(require_doctor),
):
    with handle_scheduling_errors(db):
        appointments = booking.list_doctor_appointments(db, doctor.id)
        return [to_appointment_response(appointment) for appointment in appointments]


@router.get('/{appointment_id}', response_model=AppointmentDetailResponse)
def get_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    with handle_scheduling_errors(db):
        appointment = booking.get_appointment_for_user(db, appointment_id, user.id)
        return to_detail_response(appointment)


@router.put('/{appointment_id}/status', response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: int,
    data: UpdateStatusRequest,
    db: Session = Depends(get_db),
    doctor: User = Depends(require_doctor),
    notifier: Notifier = Depends(get_notifier),
):
    with handle_scheduling_errors(db):
        appointment = booking.update_appointment_status(db, appointment_id, doctor.id, data.status, notifier=notifier)
        return to_appointment_response(appointment)


@router.post('/{appointment_id}/cancel', response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    patient: User = Depends(require_patient),
    notifier: Notifier = Depends(get_notifier),
):
    with handle_scheduling_errors(db):
        appointment = booking.cancel_appointment(db, appointment_id, patient.id, notifier=notifier)
        return to_appointment_response(appointment)
