from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from careslot.core import config


def _connect_args(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    config.DATABASE_URL,
    echo=config.DEBUG_SQL,
    connect_args=_connect_args(config.DATABASE_URL),
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_scheduling_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_scheduling_schema(bind=None) -> None:
    """Add the indexes the booking invariants rely on to tables created before they existed."""
    global _scheduling_schema_checked

    if _scheduling_schema_checked and bind is None:
        return

    with _schema_lock:
        if _scheduling_schema_checked and bind is None:
            return

        target = bind if bind is not None else engine
        table_names = set(inspect(target).get_table_names())

        with target.begin() as connection:
            if 'appointments' in table_names:
                connection.execute(
                    text(
                        'CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_doctor_time '
                        'ON appointments(doctor_id, appointment_time)'
                    )
                )
                connection.execute(
                    text('CREATE INDEX IF NOT EXISTS idx_appointments_patient_time ON appointments(patient_id, appointment_time)')
                )
            if 'doctor_availability' in table_names:
                connection.execute(
                    text(
                        'CREATE UNIQUE INDEX IF NOT EXISTS uq_doctor_availability_day '
                        'ON doctor_availability(doctor_id, day_of_week)'
                    )
                )
            if 'availability_windows' in table_names:
                connection.execute(
                    text(
                        'CREATE INDEX IF NOT EXISTS idx_availability_windows_start '
                        'ON availability_windows(availability_id, start_time)'
                    )
                )

        if bind is None:
            _scheduling_schema_checked = True
