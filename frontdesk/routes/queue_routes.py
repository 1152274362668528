from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from frontdesk.core.errors import SchedulingError
from frontdesk.database import get_db
from frontdesk.routes.common import database_unavailable, ensure_database_ready, to_http_exception
from frontdesk.services import queue as queue_service

router = APIRouter(tags=['queue'])


class AdmitPatientRequest(BaseModel):
    patient_name: str
    patient_phone: str | None = None
    priority: str = 'normal'
    symptoms: str | None = None
    notes: str | None = None
    assigned_doctor_id: int | None = None

    @field_validator('patient_name')
    @classmethod
    def validate_patient_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Patient name is required.')
        return normalized

    @field_validator('priority')
    @classmethod
    def normalize_priority(cls, value: str) -> str:
        return value.strip().lower()


class UpdateQueueStatusRequest(BaseModel):
    status: str


class UpdateQueuePriorityRequest(BaseModel):
    priority: str

    @field_validator('priority')
    @classmethod
    def normalize_priority(cls, value: str) -> str:
        return value.strip().lower()


class QueueEntryResponse(BaseModel):
    id: int
    patient_name: str
    patient_phone: str | None = None
    symptoms: str | None = None
    notes: str | None = None
    priority: str
    arrival_time: datetime
    status: str
    estimated_wait_minutes: int
    position: int | None = None
    assigned_doctor_id: int | None = None
    called_at: datetime | None = None
    completed_at: datetime | None = None

    class Config:
        from_attributes = True


class QueueStatsResponse(BaseModel):
    counts: dict[str, int]
    average_service_minutes: float


@router.get('', response_model=list[QueueEntryResponse])
def list_queue(
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return queue_service.list_queue(db, include_inactive=include_inactive)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/stats', response_model=QueueStatsResponse)
def get_queue_stats(db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return queue_service.queue_stats(db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('', response_model=QueueEntryResponse, status_code=status.HTTP_201_CREATED)
def admit_patient(data: AdmitPatientRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return queue_service.admit_patient(
            db,
            patient_name=data.patient_name,
            priority=data.priority,
            patient_phone=data.patient_phone,
            symptoms=data.symptoms,
            notes=data.notes,
            assigned_doctor_id=data.assigned_doctor_id,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.patch('/{entry_id}/status', response_model=QueueEntryResponse)
def update_queue_status(entry_id: int, data: UpdateQueueStatusRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return queue_service.transition_queue_entry(db, entry_id, data.status)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.patch('/{entry_id}/priority', response_model=QueueEntryResponse)
def update_queue_priority(entry_id: int, data: UpdateQueuePriorityRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return queue_service.update_priority(db, entry_id, data.priority)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{entry_id}', response_model=QueueEntryResponse)
def remove_queue_entry(entry_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return queue_service.remove_queue_entry(db, entry_id)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
