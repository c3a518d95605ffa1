import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from careslot.database import Base  # noqa: E402
from careslot.models.appointment import Appointment, AppointmentStatusLog  # noqa: E402
from careslot.models.availability import AvailabilityWindow, DoctorAvailability  # noqa: E402
from careslot.models.user import User  # noqa: E402

TABLES = [
    User.__table__,
    DoctorAvailability.__table__,
    AvailabilityWindow.__table__,
    Appointment.__table__,
    AppointmentStatusLog.__table__,
]


@pytest.fixture
def db_engine():
    engine = create_engine('sqlite:///:memory:')
    Base.metadata.create_all(bind=engine, tables=TABLES)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine, tables=list(reversed(TABLES)))
        engine.dispose()


@pytest.fixture
def db(db_engine):
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()


def _add_user(session, email: str, role: str, timezone: str | None = None) -> User:
    user = User(email=email, role=role, timezone=timezone)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def doctor(db) -> User:
    return _add_user(db, 'doctor@example.com', 'doctor', timezone='UTC')


@pytest.fixture
def other_doctor(db) -> User:
    return _add_user(db, 'other.doctor@example.com', 'doctor', timezone='UTC')


@pytest.fixture
def patient(db) -> User:
    return _add_user(db, 'patient@example.com', 'patient')


@pytest.fixture
def other_patient(db) -> User:
    return _add_user(db, 'other.patient@example.com', 'patient')
