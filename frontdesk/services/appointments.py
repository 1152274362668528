"""Booking and appointment lifecycle against the store.

A booking is accepted only if the requested interval is one of the slots
currently open for the doctor. The check and the insert happen under one
lock and one commit; the partial unique index on the slot key turns a
lost race between processes into a ``ConflictError`` as well.
"""

import logging
from dataclasses import dataclass
from datetime import date, time
from threading import Lock

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from frontdesk.core.errors import ConflictError, IllegalTransitionError, NotFoundError, ValidationError
from frontdesk.models.appointment import Appointment
from frontdesk.models.doctor import Doctor
from frontdesk.scheduling.slots import TimeSlot, find_slots, intervals_overlap
from frontdesk.scheduling.status import AppointmentStatus, appointment_status_machine
from frontdesk.services.doctors import get_active_doctor, slot_duration_for

logger = logging.getLogger(__name__)

_booking_lock = Lock()


@dataclass(frozen=True)
class BookingRequest:
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


def get_booked_intervals(db: Session, doctor_id: int, slot_date: date) -> list[tuple[time, time]]:
    rows = db.query(Appointment.start_time, Appointment.end_time).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.date == slot_date,
        Appointment.status != AppointmentStatus.CANCELLED.value,
    ).all()
    return [(start_time, end_time) for start_time, end_time in rows]


def find_open_slots(db: Session, doctor: Doctor, slot_date: date) -> list[TimeSlot]:
    return find_slots(
        doctor.weekly_availability,
        slot_date,
        get_booked_intervals(db, doctor.id, slot_date),
        slot_duration_for(doctor),
    )


def list_open_slots(db: Session, doctor_id: int, slot_date: date) -> list[TimeSlot]:
    return find_open_slots(db, get_active_doctor(db, doctor_id), slot_date)


def validate_booking_request(request: BookingRequest) -> None:
    # Stored slot times are naive clinic-local times.
    if request.start_time.tzinfo is not None or request.end_time.tzinfo is not None:
        raise ValidationError('Times must not carry a timezone offset.')
    if request.end_time <= request.start_time:
        raise ValidationError('End time must be after start time.')
    if not request.patient_name or not request.patient_name.strip():
        raise ValidationError('Patient name is required.')


def book_appointment(db: Session, request: BookingRequest) -> Appointment:
    validate_booking_request(request)
    doctor = get_active_doctor(db, request.doctor_id)
    requested = TimeSlot(date=request.date, start=request.start_time, end=request.end_time)

    with _booking_lock:
        booked = get_booked_intervals(db, doctor.id, request.date)
        if any(intervals_overlap(requested.start, requested.end, start, end) for start, end in booked):
            logger.warning(
                'Rejected booking for doctor %s on %s %s-%s: slot taken',
                doctor.id, request.date, request.start_time, request.end_time,
            )
            raise ConflictError('This time is already booked.')

        open_slots = find_slots(doctor.weekly_availability, request.date, booked, slot_duration_for(doctor))
        if requested not in open_slots:
            raise ValidationError('Requested time is not a bookable slot for this doctor.')

        appointment = Appointment(
            doctor_id=doctor.id,
            patient_name=request.patient_name.strip(),
            patient_phone=request.patient_phone,
            patient_email=request.patient_email,
            date=request.date,
            start_time=request.start_time,
            end_time=request.end_time,
            status=appointment_status_machine.initial.value,
            appointment_type=request.appointment_type,
            is_urgent=request.is_urgent,
            notes=request.notes,
        )
        db.add(appointment)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            logger.warning('Rejected booking for doctor %s on %s %s: concurrent insert', doctor.id, request.date, request.start_time)
            raise ConflictError('This time is already booked.') from exc

    db.refresh(appointment)
    logger.info(
        'Booked appointment %s for doctor %s on %s %s-%s',
        appointment.id, doctor.id, appointment.date, appointment.start_time, appointment.end_time,
    )
    return appointment


def get_appointment(db: Session, appointment_id: int) -> Appointment:
    appointment = db.get(Appointment, appointment_id)
    if appointment is None:
        raise NotFoundError('Appointment not found.')
    return appointment


def list_appointments(
    db: Session,
    appointment_date: date | None = None,
    doctor_id: int | None = None,
    status: str | None = None,
    patient_name: str | None = None,
) -> list[Appointment]:
    query = db.query(Appointment)

    if appointment_date is not None:
        query = query.filter(Appointment.date == appointment_date)
    if doctor_id is not None:
        query = query.filter(Appointment.doctor_id == doctor_id)
    if status:
        query = query.filter(Appointment.status == appointment_status_machine.parse(status).value)
    if patient_name and patient_name.strip():
        query = query.filter(Appointment.patient_name.ilike(f'%{patient_name.strip()}%'))

    return query.order_by(Appointment.date.asc(), Appointment.start_time.asc(), Appointment.id.asc()).all()


def transition_appointment(db: Session, appointment_id: int, target_status: str, reason: str | None = None) -> Appointment:
    appointment = get_appointment(db, appointment_id)
    previous = appointment.status
    try:
        new_status = appointment_status_machine.transition(previous, target_status)
    except IllegalTransitionError:
        logger.warning('Refused appointment %s transition from %s to %s', appointment.id, previous, target_status)
        raise

    appointment.status = new_status.value
    if new_status == AppointmentStatus.CANCELLED and reason:
        appointment.cancellation_reason = reason.strip() or None
    db.commit()
    db.refresh(appointment)

    logger.info('Appointment %s moved from %s to %s', appointment.id, previous, appointment.status)
    return appointment


def cancel_appointment(db: Session, appointment_id: int, reason: str | None = None) -> Appointment:
    return transition_appointment(db, appointment_id, AppointmentStatus.CANCELLED.value, reason=reason)
