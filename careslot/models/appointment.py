"""Appointment model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from careslot.database import Base
from careslot.scheduling.clock import utc_now_naive

PENDING = "PENDING"
CONFIRMED = "CONFIRMED"
CANCELLED = "CANCELLED"
COMPLETED = "COMPLETED"
APPOINTMENT_STATUSES = (PENDING, CONFIRMED, CANCELLED, COMPLETED)


class Appointment(Base):
    """Represents a booked appointment.

    ``appointment_time`` is the slot's start instant stored as naive UTC.
    """
    __tablename__ = "appointments"
    __table_args__ = (
        UniqueConstraint("doctor_id", "appointment_time", name="uq_appointments_doctor_time"),
    )

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    appointment_time = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default=PENDING)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=utc_now_naive)
    updated_at = Column(DateTime, default=utc_now_naive, onupdate=utc_now_naive)

    status_logs = relationship(
        "AppointmentStatusLog",
        back_populates="appointment",
        cascade="all, delete-orphan",
        order_by="AppointmentStatusLog.id",
    )


class AppointmentStatusLog(Base):
    """One entry in an appointment's status timeline."""
    __tablename__ = "appointment_status_logs"

    id = Column(Integer, primary_key=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False)
    status = Column(String, nullable=False)
    changed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    changed_at = Column(DateTime, default=utc_now_naive)

    appointment = relationship("Appointment", back_populates="status_logs")
