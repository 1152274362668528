from datetime import datetime, timezone
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from frontdesk.core import config


def _connect_args(database_url: str) -> dict:
    # FastAPI runs sync handlers in a threadpool.
    if database_url.startswith('sqlite'):
        return {'check_same_thread': False}
    return {}


engine = create_engine(config.DATABASE_URL, connect_args=_connect_args(config.DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


_schema_lock = Lock()
_appointment_schema_checked = False
_queue_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_appointment_schema() -> None:
    global _appointment_schema_checked

    if _appointment_schema_checked:
        return

    with _schema_lock:
        if _appointment_schema_checked:
            return

        inspector = inspect(engine)

        if 'appointments' not in inspector.get_table_names():
            _appointment_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
        migration_steps = [
            ('is_urgent', 'ALTER TABLE appointments ADD COLUMN is_urgent BOOLEAN DEFAULT FALSE'),
            ('notes', 'ALTER TABLE appointments ADD COLUMN notes VARCHAR'),
            ('cancellation_reason', 'ALTER TABLE appointments ADD COLUMN cancellation_reason VARCHAR'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_active_slot '
                    "ON appointments(doctor_id, date, start_time) WHERE status <> 'cancelled'"
                )
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_doctor_date ON appointments(doctor_id, date)')
            )

        _appointment_schema_checked = True


def ensure_queue_schema() -> None:
    global _queue_schema_checked

    if _queue_schema_checked:
        return

    with _schema_lock:
        if _queue_schema_checked:
            return

        inspector = inspect(engine)

        if 'queue_entries' not in inspector.get_table_names():
            _queue_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('queue_entries')}
        migration_steps = [
            ('called_at', 'ALTER TABLE queue_entries ADD COLUMN called_at TIMESTAMP'),
            ('completed_at', 'ALTER TABLE queue_entries ADD COLUMN completed_at TIMESTAMP'),
            ('position', 'ALTER TABLE queue_entries ADD COLUMN position INTEGER'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_queue_entries_status_arrival ON queue_entries(status, arrival_time)')
            )

        _queue_schema_checked = True
