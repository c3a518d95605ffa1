from datetime import time

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from careslot.auth.dependencies import require_doctor
from careslot.database import get_db
from careslot.models.availability import DoctorAvailability
from careslot.models.user import User
from careslot.routes.errors import handle_scheduling_errors
from careslot.scheduling import availability as availability_service
from careslot.scheduling.clock import WEEKDAY_NAMES, parse_day_of_week
from careslot.scheduling.errors import SchedulingError

router = APIRouter(tags=['availability'])


class TimeSlotRequest(BaseModel):
    start_time: time
    end_time: time


class AvailabilityRequest(BaseModel):
    day_of_week: int | str
    time_slots: list[TimeSlotRequest]

    @field_validator('day_of_week')
    @classmethod
    def validate_day_of_week(cls, value: int | str) -> int:
        try:
            return parse_day_of_week(value)
        except SchedulingError as exc:
            raise ValueError(exc.message) from exc

    @field_validator('time_slots')
    @classmethod
    def validate_time_slots(cls, value: list[TimeSlotRequest]) -> list[TimeSlotRequest]:
        if not value:
            raise ValueError('Provide at least one time slot.')
        return value


class AvailabilityWindowResponse(BaseModel):
    id: int
    start_time: time
    end_time: time

    class Config:
        from_attributes = True


class AvailabilityDayResponse(BaseModel):
    id: int
    doctor_id: int
    day_of_week: int
    day_name: str
    windows: list[AvailabilityWindowResponse]


def to_day_response(day: DoctorAvailability) -> AvailabilityDayResponse:
    return AvailabilityDayResponse(
        id=day.id,
        doctor_id=day.doctor_id,
        day_of_week=day.day_of_week,
        day_name=WEEKDAY_NAMES[day.day_of_week],
        windows=[AvailabilityWindowResponse.model_validate(window) for window in day.windows],
    )


@router.post('', response_model=AvailabilityDayResponse, status_code=status.HTTP_201_CREATED)
def set_availability(
    data: AvailabilityRequest,
    db: Session = Depends(get_db),
    doctor: User = Depends(require_doctor),
):
    with handle_scheduling_errors(db):
        day = availability_service.set_availability(db, doctor.id, data.day_of_week, data.time_slots)
        return to_day_response(day)


@router.post('/windows', response_model=AvailabilityDayResponse, status_code=status.HTTP_201_CREATED)
def add_availability_windows(
    data: AvailabilityRequest,
    db: Session = Depends(get_db),
    doctor: User = Depends(require_doctor),
):
    with handle_scheduling_errors(db):
        day = availability_service.add_windows(db, doctor.id, data.day_of_week, data.time_slots)
        return to_day_response(day)


@router.put('', response_model=AvailabilityDayResponse)
def update_availability(
    data: AvailabilityRequest,
    db: Session = Depends(get_db),
    doctor: User = Depends(require_doctor),
):
    with handle_scheduling_errors(db):
        day = availability_service.replace_availability(db, doctor.id, data.day_of_week, data.time_slots)
        return to_day_response(day)


@router.get('', response_model=list[AvailabilityDayResponse])
def list_my_availability(
    db: Session = Depends(get_db),
    doctor: User = Depends(require_doctor),
):
    with handle_scheduling_errors(db):
        return [to_day_response(day) for day in availability_service.list_availability(db, doctor.id)]


@router.get('/doctors/{doctor_id}', response_model=list[AvailabilityDayResponse])
def list_doctor_availability(doctor_id: int, db: Session = Depends(get_db)):
    with handle_scheduling_errors(db):
        return [to_day_response(day) for day in availability_service.list_availability(db, doctor_id)]


@router.delete('/{availability_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_availability(
    availability_id: int,
    db: Session = Depends(get_db),
    doctor: User = Depends(require_doctor),
):
    with handle_scheduling_errors(db):
        availability_service.delete_availability(db, doctor.id, availability_id)


@router.delete('/{availability_id}/windows/{window_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_availability_window(
    availability_id: int,
    window_id: int,
    db: Session = Depends(get_db),
    doctor: User = Depends(require_doctor),
):
    with handle_scheduling_errors(db):
        availability_service.delete_window(db, doctor.id, availability_id, window_id)
