from datetime import timedelta

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session
from typing import List, Optional

from sitekeeper.core.clock import Clock, get_clock
from sitekeeper.core.config import settings
from sitekeeper.core.database import get_db
from sitekeeper.models.enums import AssetType, MaintenanceStatus
from sitekeeper.models.maintenance import MaintenanceRecord
from sitekeeper.schemas.execution import ChecklistUpdate
from sitekeeper.schemas.maintenance import (
    ChecklistStatusResponse,
    MaintenanceComplete,
    MaintenanceCreate,
    MaintenanceResponse,
    MaintenanceUpdate,
    StatusSummary,
    UpcomingResponse,
)
from sitekeeper.services import maintenance_lifecycle as lifecycle
from sitekeeper.services import scheduling

router = APIRouter()


def to_response(record: MaintenanceRecord, now) -> MaintenanceResponse:
    """Serialize a record with its derived status."""
    return MaintenanceResponse(
        id=record.id,
        title=record.title,
        asset_type=record.asset_type,
        asset_id=record.asset_id,
        asset_name=record.asset_name,
        status=scheduling.derive_status(record, now),
        stored_status=record.status,
        scheduled_at=record.scheduled_at,
        completed_at=record.completed_at,
        recurrence=record.recurrence,
        checklist=lifecycle.load_checklist(record),
        notes=record.notes,
        technician_id=record.technician_id,
        photos=list(record.photos or []),
        activity_id=record.activity_id,
        follow_up_id=record.follow_up_id,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


@router.get("/schedule/upcoming", response_model=UpcomingResponse)
def get_upcoming(
    days: int = Query(default=settings.UPCOMING_WINDOW_DAYS, ge=0),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Open records scheduled within the next ``days`` days."""
    now = clock()
    records = scheduling.upcoming(db, days, now)
    return UpcomingResponse(
        records=[to_response(r, now) for r in records],
        total=len(records),
        window_start=now,
        window_end=now + timedelta(days=days),
        days=days,
    )


@router.get("/schedule/overdue", response_model=List[MaintenanceResponse])
def get_overdue(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    now = clock()
    return [to_response(r, now) for r in scheduling.overdue(db, now)]


@router.get("/summary", response_model=StatusSummary)
def get_summary(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    """Record counts per derived status."""
    counts = scheduling.status_summary(db, clock())
    return StatusSummary(counts=counts, total=sum(counts.values()))


@router.get("", response_model=List[MaintenanceResponse])
def list_maintenance_records(
    status: Optional[MaintenanceStatus] = None,
    asset_type: Optional[AssetType] = None,
    asset_id: Optional[int] = None,
    technician_id: Optional[int] = None,
    template_id: Optional[int] = None,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """List maintenance records; ``status`` filters on the derived status."""
    now = clock()
    records = lifecycle.list_records(
        db, now,
        status=status,
        asset_type=asset_type,
        asset_id=asset_id,
        technician_id=technician_id,
        template_id=template_id,
    )
    return [to_response(r, now) for r in records]


@router.post("", response_model=MaintenanceResponse, status_code=201)
def create_maintenance_record(
    record: MaintenanceCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Schedule a maintenance record, optionally with a checklist."""
    created = lifecycle.create_record(db, record, clock=clock)
    return to_response(created, clock())


@router.get("/{record_id}", response_model=MaintenanceResponse)
def get_maintenance_record(record_id: int, db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    return to_response(lifecycle.get_record(db, record_id), clock())


@router.patch("/{record_id}", response_model=MaintenanceResponse)
def update_maintenance_record(
    record_id: int,
    record: MaintenanceUpdate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Edit descriptive fields of an open record."""
    updated = lifecycle.update_details(db, record_id, record, clock=clock)
    return to_response(updated, clock())


@router.delete("/{record_id}", status_code=204)
def delete_maintenance_record(record_id: int, db: Session = Depends(get_db)):
    lifecycle.delete_record(db, record_id)
    return Response(status_code=204)


@router.post("/{record_id}/start", response_model=MaintenanceResponse)
def start_maintenance(record_id: int, db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    started = lifecycle.start_record(db, record_id, clock=clock)
    return to_response(started, clock())


@router.put("/{record_id}/checklist", response_model=MaintenanceResponse)
def update_maintenance_checklist(
    record_id: int,
    body: ChecklistUpdate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Apply checklist answers. Safe to retry with the same body."""
    updated = lifecycle.update_checklist(db, record_id, body.responses, clock=clock)
    return to_response(updated, clock())


@router.get("/{record_id}/checklist/status", response_model=ChecklistStatusResponse)
def get_checklist_status(record_id: int, db: Session = Depends(get_db)):
    """Advisory completeness of the record's checklist."""
    summary = lifecycle.checklist_summary(db, record_id)
    if summary is None:
        return ChecklistStatusResponse(record_id=record_id, has_checklist=False, is_complete=True, progress=0)
    return ChecklistStatusResponse(
        record_id=record_id,
        has_checklist=True,
        is_complete=summary.is_complete,
        progress=summary.progress,
        missing_required=summary.missing_required,
    )


@router.post("/{record_id}/complete", response_model=MaintenanceResponse)
def complete_maintenance(
    record_id: int,
    body: Optional[MaintenanceComplete] = None,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Complete a record. Not idempotent: a second call returns 409."""
    body = body or MaintenanceComplete()
    completed = lifecycle.complete_record(
        db, record_id,
        final_notes=body.final_notes,
        final_photos=body.final_photos,
        clock=clock,
    )
    return to_response(completed, clock())


@router.post("/{record_id}/follow-up", response_model=MaintenanceResponse, status_code=201)
def create_follow_up(record_id: int, db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    """Schedule the next occurrence of a completed recurring record."""
    follow_up = lifecycle.schedule_follow_up(db, record_id, clock=clock)
    return to_response(follow_up, clock())
