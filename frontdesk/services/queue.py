"""Walk-in queue operations against the store.

Every queue-affecting event (admission, status change, priority change,
removal) runs under one process-wide lock: apply the change, recompute
order and estimates for all active entries, commit. A reorder therefore
never interleaves with another one.
"""

import logging
from threading import Lock

from sqlalchemy import func
from sqlalchemy.orm import Session

from frontdesk.core import config
from frontdesk.core.errors import ConflictError, IllegalTransitionError, NotFoundError, ValidationError
from frontdesk.database import utc_now
from frontdesk.models.queue_entry import QueueEntry
from frontdesk.scheduling.queue_order import apply_queue_order, is_active, order_active_entries
from frontdesk.scheduling.status import (
    ACTIVE_QUEUE_STATUSES,
    QueuePriority,
    QueueStatus,
    queue_status_machine,
)
from frontdesk.services.doctors import get_active_doctor

logger = logging.getLogger(__name__)

_queue_lock = Lock()

ACTIVE_STATUS_VALUES = [status.value for status in ACTIVE_QUEUE_STATUSES]


def parse_priority(value: str | QueuePriority) -> QueuePriority:
    try:
        return QueuePriority(value)
    except ValueError as exc:
        choices = ', '.join(priority.value for priority in QueuePriority)
        raise ValidationError(f'Unknown priority {value!r}. Expected one of: {choices}.') from exc


def resolve_average_service_minutes(db: Session) -> float:
    """Per-patient service time used for wait estimates.

    The configured constant, unless historical derivation is switched on and
    there are completed entries with both timestamps to average over.
    """
    if not config.USE_HISTORICAL_SERVICE_TIME:
        return config.AVERAGE_SERVICE_MINUTES

    rows = db.query(QueueEntry.called_at, QueueEntry.completed_at).filter(
        QueueEntry.status == QueueStatus.COMPLETED.value,
        QueueEntry.called_at.is_not(None),
        QueueEntry.completed_at.is_not(None),
    ).order_by(QueueEntry.completed_at.desc()).limit(config.HISTORICAL_SERVICE_SAMPLE_SIZE).all()

    durations = [
        (completed_at - called_at).total_seconds() / 60
        for called_at, completed_at in rows
        if completed_at >= called_at
    ]
    if not durations:
        return config.AVERAGE_SERVICE_MINUTES

    return sum(durations) / len(durations)


def get_active_entries(db: Session) -> list[QueueEntry]:
    return db.query(QueueEntry).filter(QueueEntry.status.in_(ACTIVE_STATUS_VALUES)).all()


def reorder_queue(db: Session) -> list[QueueEntry]:
    """Recompute position and wait estimate of every active entry.

    Callers hold ``_queue_lock`` and commit afterwards.
    """
    db.flush()
    ordered = apply_queue_order(get_active_entries(db), resolve_average_service_minutes(db))
    db.flush()
    return ordered


def get_queue_entry(db: Session, entry_id: int) -> QueueEntry:
    entry = db.get(QueueEntry, entry_id)
    if entry is None:
        raise NotFoundError('Queue entry not found.')
    return entry


def admit_patient(
    db: Session,
    patient_name: str,
    priority: str | QueuePriority = QueuePriority.NORMAL,
    patient_phone: str | None = None,
    symptoms: str | None = None,
    notes: str | None = None,
    assigned_doctor_id: int | None = None,
) -> QueueEntry:
    if not patient_name or not patient_name.strip():
        raise ValidationError('Patient name is required.')

    parsed_priority = parse_priority(priority)
    if assigned_doctor_id is not None:
        get_active_doctor(db, assigned_doctor_id)

    with _queue_lock:
        entry = QueueEntry(
            patient_name=patient_name.strip(),
            patient_phone=patient_phone,
            symptoms=symptoms,
            notes=notes,
            priority=parsed_priority.value,
            arrival_time=utc_now(),
            status=queue_status_machine.initial.value,
            assigned_doctor_id=assigned_doctor_id,
        )
        db.add(entry)
        reorder_queue(db)
        db.commit()

    db.refresh(entry)
    logger.info(
        'Admitted queue entry %s (%s) at position %s, estimated wait %s min',
        entry.id, entry.priority, entry.position, entry.estimated_wait_minutes,
    )
    return entry


def transition_queue_entry(db: Session, entry_id: int, target_status: str) -> QueueEntry:
    with _queue_lock:
        entry = get_queue_entry(db, entry_id)
        previous = entry.status
        try:
            new_status = queue_status_machine.transition(previous, target_status)
        except IllegalTransitionError:
            logger.warning('Refused queue entry %s transition from %s to %s', entry.id, previous, target_status)
            raise

        now = utc_now()
        entry.status = new_status.value
        if new_status == QueueStatus.WITH_DOCTOR:
            entry.called_at = now
        elif new_status == QueueStatus.COMPLETED:
            entry.completed_at = now

        if not is_active(entry):
            entry.position = None
            entry.estimated_wait_minutes = 0

        reorder_queue(db)
        db.commit()

    db.refresh(entry)
    logger.info('Queue entry %s moved from %s to %s', entry.id, previous, entry.status)
    return entry


def remove_queue_entry(db: Session, entry_id: int) -> QueueEntry:
    return transition_queue_entry(db, entry_id, QueueStatus.CANCELLED.value)


def update_priority(db: Session, entry_id: int, priority: str | QueuePriority) -> QueueEntry:
    parsed_priority = parse_priority(priority)

    with _queue_lock:
        entry = get_queue_entry(db, entry_id)
        if not is_active(entry):
            raise ConflictError('Only active queue entries can change priority.')

        entry.priority = parsed_priority.value
        reorder_queue(db)
        db.commit()

    db.refresh(entry)
    logger.info('Queue entry %s priority set to %s, now at position %s', entry.id, entry.priority, entry.position)
    return entry


def list_queue(db: Session, include_inactive: bool = False) -> list[QueueEntry]:
    entries = order_active_entries(get_active_entries(db))

    if include_inactive:
        history = db.query(QueueEntry).filter(
            QueueEntry.status.not_in(ACTIVE_STATUS_VALUES),
        ).order_by(QueueEntry.arrival_time.desc(), QueueEntry.id.desc()).all()
        entries.extend(history)

    return entries


def queue_stats(db: Session) -> dict:
    counts = dict(
        db.query(QueueEntry.status, func.count(QueueEntry.id)).group_by(QueueEntry.status).all()
    )
    return {
        'counts': {status.value: counts.get(status.value, 0) for status in QueueStatus},
        'average_service_minutes': resolve_average_service_minutes(db),
    }
