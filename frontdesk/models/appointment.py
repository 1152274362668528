"""Appointment model definitions."""


from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String, Time, text

from frontdesk.database import Base, utc_now
from frontdesk.scheduling.status import AppointmentStatus


class Appointment(Base):
    """A booked consultation slot with one doctor.

    Rows are never deleted by the application; cancelling moves the status
    to ``cancelled`` and releases the slot.
    """
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            'uq_appointments_active_slot',
            'doctor_id',
            'date',
            'start_time',
            unique=True,
            sqlite_where=text("status <> 'cancelled'"),
            postgresql_where=text("status <> 'cancelled'"),
        ),
        Index('idx_appointments_doctor_date', 'doctor_id', 'date'),
    )

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False)
    patient_name = Column(String, nullable=False)
    patient_phone = Column(String)
    patient_email = Column(String)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(String, nullable=False, default=AppointmentStatus.SCHEDULED.value)
    appointment_type = Column(String, default='consultation')
    is_urgent = Column(Boolean, default=False, nullable=False)
    notes = Column(String)
    cancellation_reason = Column(String)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)
