from concurrent.futures import ThreadPoolExecutor
from datetime import date, time, timezone
from threading import Barrier

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from frontdesk.core.errors import ConflictError, IllegalTransitionError, NotFoundError, ValidationError
from frontdesk.database import Base
from frontdesk.models.appointment import Appointment
from frontdesk.models.doctor import Doctor
from frontdesk.services import appointments as appointment_service
from frontdesk.services.appointments import BookingRequest, book_appointment, find_open_slots

MONDAY = date(2026, 1, 5)
SATURDAY = date(2026, 1, 10)


def _request(doctor_id: int, start: time, end: time, slot_date: date = MONDAY, **overrides) -> BookingRequest:
    fields = {
        'doctor_id': doctor_id,
        'date': slot_date,
        'start_time': start,
        'end_time': end,
        'patient_name': 'Alex Patient',
        'patient_phone': '+1-555-0101',
    }
    fields.update(overrides)
    return BookingRequest(**fields)


def test_booking_creates_scheduled_appointment(db, make_doctor) -> None:
    doctor = make_doctor()

    appointment = book_appointment(db, _request(doctor.id, time(9, 0), time(9, 30)))

    assert appointment.id is not None
    assert appointment.status == 'scheduled'
    assert appointment.doctor_id == doctor.id
    assert (appointment.start_time, appointment.end_time) == (time(9, 0), time(9, 30))


def test_booked_slot_disappears_from_open_slots(db, make_doctor) -> None:
    doctor = make_doctor()
    before = find_open_slots(db, doctor, MONDAY)

    book_appointment(db, _request(doctor.id, time(9, 30), time(10, 0)))
    after = find_open_slots(db, doctor, MONDAY)

    assert len(after) == len(before) - 1
    assert time(9, 30) not in [slot.start for slot in after]


def test_second_booking_for_same_slot_conflicts(db, make_doctor) -> None:
    doctor = make_doctor()
    book_appointment(db, _request(doctor.id, time(9, 0), time(9, 30)))

    with pytest.raises(ConflictError):
        book_appointment(db, _request(doctor.id, time(9, 0), time(9, 30), patient_name='Second Patient'))


def test_same_slot_with_another_doctor_is_fine(db, make_doctor) -> None:
    first = make_doctor()
    second = make_doctor()

    book_appointment(db, _request(first.id, time(9, 0), time(9, 30)))
    appointment = book_appointment(db, _request(second.id, time(9, 0), time(9, 30)))

    assert appointment.doctor_id == second.id


def test_cancelled_appointment_releases_slot(db, make_doctor) -> None:
    doctor = make_doctor()
    first = book_appointment(db, _request(doctor.id, time(9, 0), time(9, 30)))

    appointment_service.cancel_appointment(db, first.id, reason='Patient called in sick')
    rebooked = book_appointment(db, _request(doctor.id, time(9, 0), time(9, 30), patient_name='Next Patient'))

    assert rebooked.id != first.id
    assert db.get(Appointment, first.id).status == 'cancelled'
    assert db.get(Appointment, first.id).cancellation_reason == 'Patient called in sick'


def test_inverted_range_is_a_validation_error(db, make_doctor) -> None:
    doctor = make_doctor()

    with pytest.raises(ValidationError) as exception_info:
        book_appointment(db, _request(doctor.id, time(10, 0), time(9, 30)))

    assert exception_info.value.status_code == 400


@pytest.mark.parametrize(
    ('start', 'end'),
    [
        (time(9, 0, tzinfo=timezone.utc), time(9, 30, tzinfo=timezone.utc)),
        (time(9, 0), time(9, 30, tzinfo=timezone.utc)),
    ],
)
def test_times_with_offset_are_a_validation_error(db, make_doctor, start: time, end: time) -> None:
    doctor = make_doctor()

    with pytest.raises(ValidationError) as exception_info:
        book_appointment(db, _request(doctor.id, start, end))

    assert exception_info.value.status_code == 400
    assert db.query(Appointment).count() == 0


@pytest.mark.parametrize(
    ('start', 'end', 'slot_date'),
    [
        (time(9, 15), time(9, 45), MONDAY),
        (time(9, 0), time(10, 0), MONDAY),
        (time(8, 30), time(9, 0), MONDAY),
        (time(11, 30), time(12, 0), SATURDAY),
    ],
)
def test_request_outside_slot_grid_is_rejected(db, make_doctor, start: time, end: time, slot_date: date) -> None:
    doctor = make_doctor()

    with pytest.raises(ValidationError):
        book_appointment(db, _request(doctor.id, start, end, slot_date=slot_date))


def test_overlapping_off_grid_request_reports_conflict(db, make_doctor) -> None:
    doctor = make_doctor()
    book_appointment(db, _request(doctor.id, time(9, 0), time(9, 30)))

    with pytest.raises(ConflictError):
        book_appointment(db, _request(doctor.id, time(9, 15), time(9, 45)))


def test_unknown_or_inactive_doctor_is_not_found(db, make_doctor) -> None:
    inactive = make_doctor(is_active=False)

    with pytest.raises(NotFoundError):
        book_appointment(db, _request(999, time(9, 0), time(9, 30)))
    with pytest.raises(NotFoundError):
        book_appointment(db, _request(inactive.id, time(9, 0), time(9, 30)))


def test_doctor_slot_duration_override(db, make_doctor) -> None:
    doctor = make_doctor(slot_duration_minutes=20)

    appointment = book_appointment(db, _request(doctor.id, time(9, 20), time(9, 40)))

    assert appointment.end_time == time(9, 40)
    with pytest.raises(ValidationError):
        book_appointment(db, _request(doctor.id, time(10, 0), time(10, 30)))


def test_stale_read_is_caught_by_unique_slot_index(db, make_doctor, monkeypatch: pytest.MonkeyPatch) -> None:
    doctor = make_doctor()
    book_appointment(db, _request(doctor.id, time(9, 0), time(9, 30)))
    monkeypatch.setattr(appointment_service, 'get_booked_intervals', lambda *_args: [])

    with pytest.raises(ConflictError):
        book_appointment(db, _request(doctor.id, time(9, 0), time(9, 30), patient_name='Racer'))

    active = db.query(Appointment).filter(Appointment.status != 'cancelled').all()
    assert len(active) == 1


def test_unique_index_ignores_cancelled_rows(db, make_doctor) -> None:
    doctor = make_doctor()
    slot = {'doctor_id': doctor.id, 'date': MONDAY, 'start_time': time(9, 0), 'end_time': time(9, 30)}

    db.add(Appointment(patient_name='A', status='cancelled', **slot))
    db.add(Appointment(patient_name='B', status='scheduled', **slot))
    db.commit()

    db.add(Appointment(patient_name='C', status='confirmed', **slot))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_concurrent_requests_for_one_slot_book_exactly_once(tmp_path, weekday_availability) -> None:
    engine = create_engine(
        f'sqlite:///{tmp_path / "booking.db"}',
        connect_args={'check_same_thread': False, 'timeout': 30},
    )
    Base.metadata.create_all(bind=engine)
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with session_factory() as setup:
        doctor = Doctor(
            first_name='Michael',
            last_name='Chen',
            email='michael.chen@clinic.example',
            availability=weekday_availability.to_json(),
            is_active=True,
        )
        setup.add(doctor)
        setup.commit()
        doctor_id = doctor.id

    attempts = 8
    barrier = Barrier(attempts)

    def attempt(index: int) -> str:
        with session_factory() as session:
            barrier.wait()
            try:
                book_appointment(
                    session,
                    _request(doctor_id, time(9, 0), time(9, 30), patient_name=f'Patient {index}'),
                )
            except ConflictError:
                return 'conflict'
            return 'booked'

    with ThreadPoolExecutor(max_workers=attempts) as executor:
        outcomes = list(executor.map(attempt, range(attempts)))

    assert outcomes.count('booked') == 1
    assert outcomes.count('conflict') == attempts - 1

    with session_factory() as check:
        assert check.query(Appointment).filter(Appointment.doctor_id == doctor_id).count() == 1

    engine.dispose()


def test_appointment_lifecycle_and_illegal_rollback(db, make_doctor) -> None:
    doctor = make_doctor()
    appointment = book_appointment(db, _request(doctor.id, time(9, 0), time(9, 30)))

    for target in ('confirmed', 'in_progress', 'completed'):
        appointment = appointment_service.transition_appointment(db, appointment.id, target)
        assert appointment.status == target

    with pytest.raises(IllegalTransitionError) as exception_info:
        appointment_service.transition_appointment(db, appointment.id, 'scheduled')

    assert exception_info.value.allowed_transitions == []
    assert db.get(Appointment, appointment.id).status == 'completed'


def test_list_appointments_filters(db, make_doctor) -> None:
    first = make_doctor()
    second = make_doctor()
    book_appointment(db, _request(first.id, time(10, 0), time(10, 30), patient_name='Jordan Lee'))
    book_appointment(db, _request(first.id, time(9, 0), time(9, 30), patient_name='Casey Jordan'))
    other = book_appointment(db, _request(second.id, time(9, 0), time(9, 30), patient_name='Robin Fox'))
    appointment_service.transition_appointment(db, other.id, 'confirmed')

    by_doctor = appointment_service.list_appointments(db, doctor_id=first.id)
    by_name = appointment_service.list_appointments(db, patient_name='jordan')
    by_status = appointment_service.list_appointments(db, status='confirmed')

    assert [appointment.start_time for appointment in by_doctor] == [time(9, 0), time(10, 0)]
    assert {appointment.patient_name for appointment in by_name} == {'Jordan Lee', 'Casey Jordan'}
    assert [appointment.id for appointment in by_status] == [other.id]
    with pytest.raises(ValidationError):
        appointment_service.list_appointments(db, status='unknown')
