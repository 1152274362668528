from datetime import date, datetime, time

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from frontdesk.core.errors import SchedulingError
from frontdesk.database import get_db
from frontdesk.routes.common import database_unavailable, ensure_database_ready, to_http_exception
from frontdesk.scheduling.slots import TimeSlot
from frontdesk.services import appointments as appointment_service

router = APIRouter(tags=['appointments'])

MAX_APPOINTMENT_NOTES_LENGTH = 600


class TimeSlotResponse(BaseModel):
    date: date
    start_time: time
    end_time: time
    duration_minutes: int

    @classmethod
    def from_slot(cls, slot: TimeSlot) -> 'TimeSlotResponse':
        return cls(
            date=slot.date,
            start_time=slot.start,
            end_time=slot.end,
            duration_minutes=slot.duration_minutes,
        )


class CreateAppointmentRequest(BaseModel):
    doctor_id: int
    date: date
    start_time: time
    end_time: time
    patient_name: str
    patient_phone: str | None = None
    patient_email: str | None = None
    appointment_type: str = 'consultation'
    is_urgent: bool = False
    notes: str | None = None

    @field_validator('patient_name')
    @classmethod
    def validate_patient_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Patient name is required.')
        return normalized

    @field_validator('patient_email')
    @classmethod
    def validate_patient_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        return normalized or None

    @field_validator('appointment_type')
    @classmethod
    def validate_appointment_type(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError('Appointment type is required.')
        return normalized

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

        return normalized

    def to_booking_request(self) -> appointment_service.BookingRequest:
        return appointment_service.BookingRequest(**self.model_dump())


class UpdateAppointmentStatusRequest(BaseModel):
    status: str


class AppointmentResponse(BaseModel):
    id: int
    doctor_id: int
    patient_name: str
    patient_phone: str | None = None
    patient_email: str | None = None
    date: date
    start_time: time
    end_time: time
    status: str
    appointment_type: str | None = None
    is_urgent: bool
    notes: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


@router.get('/slots/{doctor_id}/{slot_date}', response_model=list[TimeSlotResponse])
def list_available_slots(doctor_id: int, slot_date: date, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        slots = appointment_service.list_open_slots(db, doctor_id, slot_date)
        return [TimeSlotResponse.from_slot(slot) for slot in slots]
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('', response_model=list[AppointmentResponse])
def list_appointments(
    appointment_date: date | None = Query(default=None, alias='date'),
    doctor_id: int | None = Query(default=None),
    appointment_status: str | None = Query(default=None, alias='status'),
    patient_name: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return appointment_service.list_appointments(
            db,
            appointment_date=appointment_date,
            doctor_id=doctor_id,
            status=appointment_status,
            patient_name=patient_name,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return appointment_service.get_appointment(db, appointment_id)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(data: CreateAppointmentRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return appointment_service.book_appointment(db, data.to_booking_request())
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.patch('/{appointment_id}/status', response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: int,
    data: UpdateAppointmentStatusRequest,
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return appointment_service.transition_appointment(db, appointment_id, data.status)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{appointment_id}', response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    reason: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return appointment_service.cancel_appointment(db, appointment_id, reason=reason)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
