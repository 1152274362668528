import os
from datetime import time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')

from frontdesk.core import config  # noqa: E402
from frontdesk.database import Base  # noqa: E402
from frontdesk.models import appointment, doctor, queue_entry, user  # noqa: E402,F401
from frontdesk.models.doctor import Doctor  # noqa: E402
from frontdesk.scheduling.availability import DayAvailability, WeeklyAvailability  # noqa: E402

WEEKDAY_HOURS = DayAvailability(start=time(9, 0), end=time(12, 0), available=True)


@pytest.fixture(autouse=True)
def scheduling_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'SLOT_DURATION_MINUTES', 30)
    monkeypatch.setattr(config, 'AVERAGE_SERVICE_MINUTES', 12.0)
    monkeypatch.setattr(config, 'USE_HISTORICAL_SERVICE_TIME', False)
    monkeypatch.setattr(config, 'HISTORICAL_SERVICE_SAMPLE_SIZE', 20)


@pytest.fixture(autouse=True)
def skip_schema_guard(monkeypatch: pytest.MonkeyPatch) -> None:
    # Test sessions run against their own engines, not the module-level one.
    for module in ('appointment_routes', 'doctor_routes', 'queue_routes'):
        monkeypatch.setattr(f'frontdesk.routes.{module}.ensure_database_ready', lambda: None)


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(db_engine):
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def weekday_availability() -> WeeklyAvailability:
    return WeeklyAvailability(
        monday=WEEKDAY_HOURS,
        tuesday=WEEKDAY_HOURS,
        wednesday=WEEKDAY_HOURS,
        thursday=WEEKDAY_HOURS,
        friday=WEEKDAY_HOURS,
    )


@pytest.fixture
def make_doctor(db, weekday_availability):
    created = 0

    def _make_doctor(availability: WeeklyAvailability | None = None, **overrides) -> Doctor:
        nonlocal created
        created += 1
        fields = {
            'first_name': 'Sarah',
            'last_name': f'Johnson{created}',
            'email': f'doctor{created}@clinic.example',
            'specialization': 'General Medicine',
            'availability': (availability or weekday_availability).to_json(),
            'is_active': True,
        }
        fields.update(overrides)
        doctor_row = Doctor(**fields)
        db.add(doctor_row)
        db.commit()
        db.refresh(doctor_row)
        return doctor_row

    return _make_doctor
