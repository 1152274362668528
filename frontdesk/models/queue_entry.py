"""Walk-in queue model definitions."""


from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from frontdesk.database import Base, utc_now
from frontdesk.scheduling.status import QueuePriority, QueueStatus


class QueueEntry(Base):
    """A walk-in patient waiting to be seen."""
    __tablename__ = "queue_entries"

    id = Column(Integer, primary_key=True)
    patient_name = Column(String, nullable=False)
    patient_phone = Column(String)
    symptoms = Column(String)
    notes = Column(String)
    priority = Column(String, nullable=False, default=QueuePriority.NORMAL.value)
    arrival_time = Column(DateTime, nullable=False, default=utc_now)
    status = Column(String, nullable=False, default=QueueStatus.WAITING.value, index=True)
    estimated_wait_minutes = Column(Integer, default=0)
    position = Column(Integer)
    assigned_doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=True)
    called_at = Column(DateTime)
    completed_at = Column(DateTime)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)
