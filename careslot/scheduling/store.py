import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from careslot.models.user import User
from careslot.scheduling.errors import NotFoundError, SchedulingError, StoreError

logger = logging.getLogger(__name__)

DOCTOR_ROLE = 'doctor'
PATIENT_ROLE = 'patient'


def commit(db: Session, conflict_error: SchedulingError | None = None) -> None:
    """Commit ``db``, rolling back on failure.

    A uniqueness violation is re-raised as ``conflict_error`` when one is
    given; every other database failure becomes ``StoreError``.
    """
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if conflict_error is not None:
            logger.info('Unique constraint rejected write: %s', conflict_error.message)
            raise conflict_error from exc
        logger.exception('Integrity error while committing')
        raise StoreError('The change could not be saved.') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Database failure while committing')
        raise StoreError('Database unavailable. Verify DATABASE_URL and database credentials.') from exc


def get_user_with_role(db: Session, user_id: int, role: str) -> User:
    user = db.query(User).filter(User.id == user_id, User.role == role).first()
    if user is None:
        raise NotFoundError(f'{role.capitalize()} {user_id} not found.')
    return user


def get_doctor(db: Session, doctor_id: int) -> User:
    return get_user_with_role(db, doctor_id, DOCTOR_ROLE)
