import logging

from sqlalchemy.orm import Session

from frontdesk.core import config
from frontdesk.core.errors import ConflictError, NotFoundError, ValidationError
from frontdesk.models.doctor import Doctor
from frontdesk.scheduling.availability import WeeklyAvailability

logger = logging.getLogger(__name__)


def get_doctor(db: Session, doctor_id: int) -> Doctor:
    doctor = db.get(Doctor, doctor_id)
    if doctor is None:
        raise NotFoundError('Doctor not found.')
    return doctor


def get_active_doctor(db: Session, doctor_id: int) -> Doctor:
    doctor = get_doctor(db, doctor_id)
    if not doctor.is_active:
        raise NotFoundError('Doctor not found.')
    return doctor


def slot_duration_for(doctor: Doctor) -> int:
    return doctor.slot_duration_minutes or config.SLOT_DURATION_MINUTES


def list_doctors(db: Session, specialization: str | None = None, is_active: bool | None = None) -> list[Doctor]:
    query = db.query(Doctor)

    if specialization:
        query = query.filter(Doctor.specialization == specialization.strip())
    if is_active is not None:
        query = query.filter(Doctor.is_active.is_(is_active))

    return query.order_by(Doctor.last_name.asc(), Doctor.first_name.asc()).all()


def create_doctor(
    db: Session,
    first_name: str,
    last_name: str,
    email: str,
    availability: WeeklyAvailability,
    phone: str | None = None,
    specialization: str | None = None,
    slot_duration_minutes: int | None = None,
) -> Doctor:
    if slot_duration_minutes is not None and slot_duration_minutes <= 0:
        raise ValidationError('Slot duration must be positive.')

    normalized_email = email.strip().lower()
    if db.query(Doctor).filter(Doctor.email == normalized_email).first():
        raise ConflictError('A doctor with this email already exists.')

    doctor = Doctor(
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        email=normalized_email,
        phone=phone,
        specialization=specialization,
        availability=availability.to_json(),
        slot_duration_minutes=slot_duration_minutes,
        is_active=True,
    )
    db.add(doctor)
    db.commit()
    db.refresh(doctor)

    logger.info('Created doctor %s (%s)', doctor.id, doctor.full_name)
    return doctor


def update_availability(db: Session, doctor_id: int, availability: WeeklyAvailability) -> Doctor:
    doctor = get_doctor(db, doctor_id)
    doctor.availability = availability.to_json()
    db.commit()
    db.refresh(doctor)

    logger.info('Updated availability for doctor %s: working days %s', doctor.id, availability.working_days())
    return doctor


def set_active(db: Session, doctor_id: int, is_active: bool) -> Doctor:
    doctor = get_doctor(db, doctor_id)
    doctor.is_active = is_active
    db.commit()
    db.refresh(doctor)
    return doctor
