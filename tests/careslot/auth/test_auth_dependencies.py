import logging

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.exc import OperationalError

from careslot.auth import jwt_handler
from careslot.auth.dependencies import get_current_user, require_doctor, require_role
from careslot.routes.errors import handle_scheduling_errors
from careslot.scheduling.errors import SlotTaken


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


def test_access_token_round_trip_keeps_subject_and_role() -> None:
    token = jwt_handler.create_access_token('doctor@example.com', 'doctor')

    payload = jwt_handler.decode_access_token(token)

    assert payload['sub'] == 'doctor@example.com'
    assert payload['role'] == 'doctor'


def test_get_current_user_resolves_token_subject(db, doctor) -> None:
    token = jwt_handler.create_access_token(doctor.email, doctor.role)

    assert get_current_user(credentials=_credentials(token), db=db).id == doctor.id


def test_get_current_user_rejects_garbage_token(db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials('not-a-token'), db=db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid token'


def test_get_current_user_rejects_unknown_user(db) -> None:
    token = jwt_handler.create_access_token('ghost@example.com', 'patient')

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials(token), db=db)

    assert exception_info.value.detail == 'User not found'


def test_require_role_blocks_other_roles(patient) -> None:
    with pytest.raises(HTTPException) as exception_info:
        require_doctor(user=patient)

    assert exception_info.value.status_code == 403


def test_require_role_accepts_any_listed_role(doctor, patient) -> None:
    dependency = require_role('doctor', 'patient')

    assert dependency(user=doctor) is doctor
    assert dependency(user=patient) is patient


def test_handle_scheduling_errors_maps_domain_errors(db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        with handle_scheduling_errors(db):
            raise SlotTaken('taken')

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail == {'code': 'SLOT_TAKEN', 'message': 'taken'}


def test_handle_scheduling_errors_maps_database_failures(db, caplog) -> None:
    with caplog.at_level(logging.ERROR, logger='careslot.routes.errors'):
        with pytest.raises(HTTPException) as exception_info:
            with handle_scheduling_errors(db):
                raise OperationalError('SELECT 1', {}, Exception('connection refused'))

    assert exception_info.value.status_code == 503
    assert exception_info.value.detail['code'] == 'STORE_ERROR'
    assert 'Database failure while handling request' in caplog.text
    assert 'connection refused' in caplog.text
