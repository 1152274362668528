"""Doctor model definitions."""


from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String

from frontdesk.database import Base, utc_now
from frontdesk.scheduling.availability import WeeklyAvailability


class Doctor(Base):
    """A doctor profile with its recurring weekly availability."""
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True)
    phone = Column(String)
    specialization = Column(String, index=True)
    availability = Column(JSON, nullable=False, default=dict)
    slot_duration_minutes = Column(Integer, nullable=True)  # falls back to config
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utc_now)

    @property
    def full_name(self) -> str:
        return f'{self.first_name} {self.last_name}'

    @property
    def weekly_availability(self) -> WeeklyAvailability:
        return WeeklyAvailability.from_json(self.availability)
