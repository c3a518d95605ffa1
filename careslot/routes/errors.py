import logging
from contextlib import contextmanager

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from careslot.scheduling.errors import SchedulingError, StoreError

logger = logging.getLogger(__name__)

DATABASE_UNAVAILABLE = StoreError('Database unavailable. Verify DATABASE_URL and database credentials.')


@contextmanager
def handle_scheduling_errors(db: Session | None):
    """Turn domain and database errors raised inside the block into HTTP responses."""
    try:
        yield
    except SchedulingError as exc:
        if db is not None:
            db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_detail()) from exc
    except SQLAlchemyError as exc:
        if db is not None:
            db.rollback()
        logger.exception('Database failure while handling request')
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE.to_detail(),
        ) from exc
