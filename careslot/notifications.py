"""Appointment events handed to the notification collaborator.

Email delivery lives outside this service. The core only publishes events;
a failing notifier is logged and never affects the booking that triggered it.
"""

import logging
from datetime import datetime

from pydantic import BaseModel

logger = logging.getLogger(__name__)

BOOKING_CREATED = 'booking_created'
STATUS_CHANGED = 'status_changed'


class AppointmentEvent(BaseModel):
    event: str
    appointment_id: int
    doctor_id: int
    patient_id: int
    appointment_time: datetime
    status: str
    previous_status: str | None = None


class Notifier:
    """Default notifier: records the event in the application log."""

    def send(self, event: AppointmentEvent) -> None:
        logger.info(
            'Appointment %s %s (doctor=%s patient=%s status=%s)',
            event.appointment_id,
            event.event,
            event.doctor_id,
            event.patient_id,
            event.status,
        )


def publish(notifier: Notifier | None, event: AppointmentEvent) -> None:
    if notifier is None:
        return

    try:
        notifier.send(event)
    except Exception:
        logger.exception('Failed to deliver %s notification for appointment %s', event.event, event.appointment_id)


def event_for(appointment, event: str, previous_status: str | None = None) -> AppointmentEvent:
    return AppointmentEvent(
        event=event,
        appointment_id=appointment.id,
        doctor_id=appointment.doctor_id,
        patient_id=appointment.patient_id,
        appointment_time=appointment.appointment_time,
        status=appointment.status,
        previous_status=previous_status,
    )
