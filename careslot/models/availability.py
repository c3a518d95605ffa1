"""Availability model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Time, UniqueConstraint
from sqlalchemy.orm import relationship
from careslot.database import Base
from careslot.scheduling.clock import utc_now_naive


class DoctorAvailability(Base):
    """A doctor's recurring availability for one day of the week."""
    __tablename__ = "doctor_availability"
    __table_args__ = (
        UniqueConstraint("doctor_id", "day_of_week", name="uq_doctor_availability_day"),
    )

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)  # 0=Sunday .. 6=Saturday
    created_at = Column(DateTime, default=utc_now_naive)
    updated_at = Column(DateTime, default=utc_now_naive, onupdate=utc_now_naive)

    windows = relationship(
        "AvailabilityWindow",
        back_populates="availability",
        cascade="all, delete-orphan",
        order_by="AvailabilityWindow.start_time",
    )


class AvailabilityWindow(Base):
    """A wall-clock time range, in the doctor's timezone, on an availability day."""
    __tablename__ = "availability_windows"

    id = Column(Integer, primary_key=True)
    availability_id = Column(
        Integer,
        ForeignKey("doctor_availability.id", ondelete="CASCADE"),
        nullable=False,
    )
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    availability = relationship("DoctorAvailability", back_populates="windows")
