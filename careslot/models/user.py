"""User model definitions."""

from sqlalchemy import Column, Integer, String
from careslot.database import Base


class User(Base):
    """Represents a doctor, patient or admin account."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    role = Column(String)  # doctor/patient/admin
    timezone = Column(String, nullable=True)  # IANA name, doctors only
