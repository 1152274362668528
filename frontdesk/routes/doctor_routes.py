from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from frontdesk.core.errors import SchedulingError
from frontdesk.database import get_db
from frontdesk.routes.common import database_unavailable, ensure_database_ready, to_http_exception
from frontdesk.scheduling.availability import WeeklyAvailability
from frontdesk.services import doctors as doctor_service

router = APIRouter(tags=['doctors'])


class CreateDoctorRequest(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    specialization: str | None = None
    availability: WeeklyAvailability = WeeklyAvailability()
    slot_duration_minutes: int | None = Field(default=None, gt=0)

    @field_validator('first_name', 'last_name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if '@' not in normalized:
            raise ValueError('A valid email is required.')
        return normalized


class UpdateActiveRequest(BaseModel):
    is_active: bool


class DoctorResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    full_name: str
    email: str
    phone: str | None = None
    specialization: str | None = None
    availability: WeeklyAvailability
    slot_duration_minutes: int | None = None
    is_active: bool

    class Config:
        from_attributes = True


@router.get('', response_model=list[DoctorResponse])
def list_doctors(
    specialization: str | None = Query(default=None),
    is_active: bool | None = Query(default=None),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return doctor_service.list_doctors(db, specialization=specialization, is_active=is_active)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{doctor_id}', response_model=DoctorResponse)
def get_doctor(doctor_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return doctor_service.get_doctor(db, doctor_id)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('', response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
def create_doctor(data: CreateDoctorRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return doctor_service.create_doctor(
            db,
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            availability=data.availability,
            phone=data.phone,
            specialization=data.specialization,
            slot_duration_minutes=data.slot_duration_minutes,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.patch('/{doctor_id}/availability', response_model=DoctorResponse)
def update_doctor_availability(doctor_id: int, data: WeeklyAvailability, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return doctor_service.update_availability(db, doctor_id, data)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.patch('/{doctor_id}/active', response_model=DoctorResponse)
def update_doctor_active(doctor_id: int, data: UpdateActiveRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return doctor_service.set_active(db, doctor_id, data.is_active)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
