"""Domain errors raised by the scheduling core.

Each error carries a stable ``code`` and the HTTP status the routes answer
with, so callers can branch on the code instead of parsing messages.
"""


class SchedulingError(Exception):
    code = 'SCHEDULING_ERROR'
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        return {'code': self.code, 'message': self.message}


class ValidationError(SchedulingError):
    code = 'VALIDATION_ERROR'
    status_code = 400


class OverlapError(SchedulingError):
    code = 'OVERLAP'
    status_code = 400


class AvailabilityExists(SchedulingError):
    code = 'AVAILABILITY_EXISTS'
    status_code = 409


class NotFoundError(SchedulingError):
    code = 'NOT_FOUND'
    status_code = 404


class NotOwner(SchedulingError):
    code = 'NOT_OWNER'
    status_code = 403


class NoAvailabilityConfigured(SchedulingError):
    code = 'NO_AVAILABILITY'
    status_code = 404


class NotAvailable(SchedulingError):
    code = 'NOT_AVAILABLE'
    status_code = 400


class SlotTaken(SchedulingError):
    """Raised for any existing appointment at the time, pending ones included."""
    code = 'SLOT_TAKEN'
    status_code = 409


class InvalidTransition(SchedulingError):
    code = 'INVALID_TRANSITION'
    status_code = 409


class StoreError(SchedulingError):
    code = 'STORE_ERROR'
    status_code = 503
