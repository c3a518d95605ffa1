from datetime import time

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from careslot.models.availability import DoctorAvailability
from careslot.routes.availability_routes import (
    AvailabilityRequest,
    add_availability_windows,
    delete_availability,
    delete_availability_window,
    list_doctor_availability,
    list_my_availability,
    set_availability,
    update_availability,
)


def _request(day_of_week, *windows: tuple[str, str]) -> AvailabilityRequest:
    return AvailabilityRequest(
        day_of_week=day_of_week,
        time_slots=[{'start_time': start, 'end_time': end} for start, end in windows],
    )


def test_availability_request_converts_weekday_name() -> None:
    request = _request('Wednesday', ('09:00', '10:00'))

    assert request.day_of_week == 3
    assert request.time_slots[0].start_time == time(9, 0)


@pytest.mark.parametrize('day_of_week', [7, 'Someday'])
def test_availability_request_rejects_invalid_weekday(day_of_week) -> None:
    with pytest.raises(ValidationError):
        _request(day_of_week, ('09:00', '10:00'))


def test_availability_request_requires_time_slots() -> None:
    with pytest.raises(ValidationError):
        AvailabilityRequest(day_of_week=1, time_slots=[])


def test_set_availability_returns_created_day(db, doctor) -> None:
    response = set_availability(_request(1, ('09:00', '12:00')), db=db, doctor=doctor)

    assert response.day_name == 'Monday'
    assert [(window.start_time, window.end_time) for window in response.windows] == [(time(9, 0), time(12, 0))]


def test_set_availability_conflicts_when_day_exists(db, doctor) -> None:
    set_availability(_request(1, ('09:00', '12:00')), db=db, doctor=doctor)

    with pytest.raises(HTTPException) as exception_info:
        set_availability(_request(1, ('13:00', '14:00')), db=db, doctor=doctor)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail['code'] == 'AVAILABILITY_EXISTS'


def test_add_windows_rejects_overlap(db, doctor) -> None:
    set_availability(_request(1, ('09:00', '12:00')), db=db, doctor=doctor)

    with pytest.raises(HTTPException) as exception_info:
        add_availability_windows(_request(1, ('11:00', '13:00')), db=db, doctor=doctor)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail['code'] == 'OVERLAP'


def test_add_windows_rejects_inverted_window(db, doctor) -> None:
    with pytest.raises(HTTPException) as exception_info:
        add_availability_windows(_request(1, ('13:00', '11:00')), db=db, doctor=doctor)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail['code'] == 'VALIDATION_ERROR'


def test_update_availability_requires_existing_day(db, doctor) -> None:
    with pytest.raises(HTTPException) as exception_info:
        update_availability(_request(2, ('09:00', '10:00')), db=db, doctor=doctor)

    assert exception_info.value.status_code == 404


def test_update_availability_replaces_windows(db, doctor) -> None:
    set_availability(_request(1, ('09:00', '10:00'), ('11:00', '12:00')), db=db, doctor=doctor)

    response = update_availability(_request(1, ('15:00', '16:00')), db=db, doctor=doctor)

    assert [(window.start_time, window.end_time) for window in response.windows] == [(time(15, 0), time(16, 0))]


def test_delete_availability_rejects_non_owner(db, doctor, other_doctor) -> None:
    created = set_availability(_request(1, ('09:00', '10:00')), db=db, doctor=doctor)

    with pytest.raises(HTTPException) as exception_info:
        delete_availability(created.id, db=db, doctor=other_doctor)

    assert exception_info.value.status_code == 403
    assert exception_info.value.detail['code'] == 'NOT_OWNER'


def test_delete_availability_window_cascades_empty_day(db, doctor) -> None:
    created = set_availability(_request(1, ('09:00', '10:00')), db=db, doctor=doctor)

    delete_availability_window(created.id, created.windows[0].id, db=db, doctor=doctor)

    assert db.query(DoctorAvailability).count() == 0


def test_delete_availability_returns_not_found(db, doctor) -> None:
    with pytest.raises(HTTPException) as exception_info:
        delete_availability(12345, db=db, doctor=doctor)

    assert exception_info.value.status_code == 404


def test_list_routes_return_days_for_doctor(db, doctor) -> None:
    set_availability(_request('Friday', ('09:00', '10:00')), db=db, doctor=doctor)
    set_availability(_request('Tuesday', ('09:00', '10:00')), db=db, doctor=doctor)

    mine = list_my_availability(db=db, doctor=doctor)
    public = list_doctor_availability(doctor.id, db=db)

    assert [day.day_name for day in mine] == ['Tuesday', 'Friday']
    assert mine == public
