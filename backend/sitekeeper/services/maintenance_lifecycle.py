"""
Maintenance record lifecycle.

Persisted states:  scheduled -> in_progress -> completed (terminal)

Actions:
  start     scheduled            -> in_progress
  complete  scheduled|in_progress -> completed

"overdue" is not a state; see services.scheduling.derive_status.
Checklist answers are independent of status: they can be filled in
before a record is started, and are frozen once it is completed.

Usage:
    from sitekeeper.services.maintenance_lifecycle import create_record, complete_record

    record = create_record(db, MaintenanceCreate(...), clock=clock)
    record = complete_record(db, record.id, final_notes="Done", clock=clock)
"""
import logging
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from sitekeeper.core.clock import Clock, as_utc, utcnow
from sitekeeper.core.config import settings
from sitekeeper.core.exceptions import (
    AlreadyCompletedError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from sitekeeper.models.checklist import ChecklistTemplate
from sitekeeper.models.enums import AssetType, MaintenanceStatus, Recurrence
from sitekeeper.models.maintenance import MaintenanceRecord
from sitekeeper.schemas.checklist import ChecklistItemCreate
from sitekeeper.schemas.execution import ChecklistExecution, ChecklistItemUpdate, ChecklistSummary
from sitekeeper.schemas.maintenance import MaintenanceCreate, MaintenanceUpdate
from sitekeeper.services import checklist_tracker, scheduling
from sitekeeper.services.assets import AssetDirectory
from sitekeeper.services.template_registry import lock_template

logger = logging.getLogger(__name__)

SCHEDULED = MaintenanceStatus.SCHEDULED.value
IN_PROGRESS = MaintenanceStatus.IN_PROGRESS.value
COMPLETED = MaintenanceStatus.COMPLETED.value

RECORD_TRANSITIONS = {
    "start": {"from": [SCHEDULED], "to": IN_PROGRESS},
    "complete": {"from": [SCHEDULED, IN_PROGRESS], "to": COMPLETED},
}

# Actions that only need the record to be open
OPEN_STATUSES = [SCHEDULED, IN_PROGRESS]


def _check_transition(record: MaintenanceRecord, action: str) -> str:
    """Return the target status of ``action`` or raise."""
    rule = RECORD_TRANSITIONS[action]
    if record.status not in rule["from"]:
        logger.warning(f"Rejected '{action}' on maintenance record {record.id} (status={record.status})")
        if record.status == COMPLETED:
            raise AlreadyCompletedError(record.id, action)
        raise InvalidTransitionError(record.id, action, record.status,
                                     reason=f"allowed from {rule['from']}")
    return rule["to"]


def _require_open(record: MaintenanceRecord, action: str) -> None:
    if record.status not in OPEN_STATUSES:
        logger.warning(f"Rejected '{action}' on completed maintenance record {record.id}")
        raise AlreadyCompletedError(record.id, action)


def load_checklist(record: MaintenanceRecord) -> Optional[ChecklistExecution]:
    if record.checklist is None:
        return None
    return ChecklistExecution.model_validate(record.checklist)


def _store_checklist(record: MaintenanceRecord, execution: Optional[ChecklistExecution]) -> None:
    # Always assign a fresh document so the JSON column is flagged dirty
    record.checklist = execution.model_dump(mode="json") if execution is not None else None
    record.checklist_template_id = execution.template_id if execution is not None else None


def _require_title(title: Optional[str]) -> str:
    if not title or not title.strip():
        raise ValidationError("Title is required", details={"title": "must not be empty"})
    return title.strip()


def _clean_photos(photos: Sequence[str]) -> List[str]:
    blank = [i for i, url in enumerate(photos) if not url or not url.strip()]
    if blank:
        raise ValidationError("Photo references must be non-empty URLs",
                              details={"photos": f"blank entries at {blank}"})
    return [url.strip() for url in photos]


def _build_checklist(
    db: Session,
    template_id: Optional[int],
    item_defs: Optional[Sequence[ChecklistItemCreate]],
) -> Optional[ChecklistExecution]:
    if template_id is not None and item_defs is not None:
        raise ValidationError(
            "Give either a template or ad hoc checklist items, not both",
            details={"template_id": template_id},
        )
    if template_id is not None:
        # Row lock keeps the template alive until this record is committed
        template = lock_template(db, template_id)
        return checklist_tracker.instantiate(template)
    if item_defs is not None:
        return checklist_tracker.instantiate_ad_hoc(item_defs)
    return None


def get_record(db: Session, record_id: int) -> MaintenanceRecord:
    record = db.get(MaintenanceRecord, record_id)
    if record is None:
        raise NotFoundError(resource="Maintenance record", resource_id=record_id)
    return record


def list_records(
    db: Session,
    now: datetime,
    status: Optional[MaintenanceStatus] = None,
    asset_type: Optional[AssetType] = None,
    asset_id: Optional[int] = None,
    technician_id: Optional[int] = None,
    template_id: Optional[int] = None,
) -> List[MaintenanceRecord]:
    """List records, filtering on the derived status when one is given."""
    query = db.query(MaintenanceRecord)
    if status:
        query = scheduling.filter_by_status(query, status, as_utc(now))
    if asset_type:
        query = query.filter(MaintenanceRecord.asset_type == AssetType(asset_type).value)
    if asset_id is not None:
        query = query.filter(MaintenanceRecord.asset_id == asset_id)
    if technician_id is not None:
        query = query.filter(MaintenanceRecord.technician_id == technician_id)
    if template_id is not None:
        query = query.filter(MaintenanceRecord.checklist_template_id == template_id)
    return query.order_by(MaintenanceRecord.scheduled_at.asc(), MaintenanceRecord.id.asc()).all()


def create_record(
    db: Session,
    data: MaintenanceCreate,
    clock: Clock = utcnow,
    assets: Optional[AssetDirectory] = None,
) -> MaintenanceRecord:
    """Create a scheduled record, embedding a fresh checklist when asked to."""
    title = _require_title(data.title)
    assets = assets or AssetDirectory(db)
    asset_type = AssetType(data.asset_type)
    asset_name = assets.display_name(asset_type, data.asset_id)
    if asset_name is None:
        raise ValidationError(
            f"Unknown {asset_type.value} id={data.asset_id}",
            details={"asset_id": data.asset_id},
        )

    photos = _clean_photos(data.photos)
    checklist = _build_checklist(db, data.template_id, data.checklist_items)
    now = clock()

    record = MaintenanceRecord(
        title=title,
        asset_type=asset_type.value,
        asset_id=data.asset_id,
        asset_name=asset_name,
        status=SCHEDULED,
        scheduled_at=as_utc(data.scheduled_at),
        completed_at=None,
        recurrence=Recurrence(data.recurrence).value,
        notes=data.notes,
        technician_id=data.technician_id,
        photos=photos,
        activity_id=data.activity_id,
        created_at=now,
        updated_at=now,
    )
    _store_checklist(record, checklist)
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(
        f"Created maintenance record {record.id} for {record.asset_type} {record.asset_id} "
        f"scheduled at {record.scheduled_at.isoformat()}"
    )
    return record


def update_details(
    db: Session,
    record_id: int,
    data: MaintenanceUpdate,
    clock: Clock = utcnow,
) -> MaintenanceRecord:
    """Edit descriptive fields of an open record."""
    record = get_record(db, record_id)
    _require_open(record, "update")

    update_data = data.model_dump(exclude_unset=True)
    if "title" in update_data:
        update_data["title"] = _require_title(update_data["title"])
    if update_data.get("scheduled_at") is not None:
        update_data["scheduled_at"] = as_utc(update_data["scheduled_at"])
    elif "scheduled_at" in update_data:
        raise ValidationError("scheduled_at cannot be cleared", details={"scheduled_at": None})
    if update_data.get("recurrence") is not None:
        update_data["recurrence"] = Recurrence(update_data["recurrence"]).value
    elif "recurrence" in update_data:
        update_data.pop("recurrence")

    for key, value in update_data.items():
        setattr(record, key, value)
    record.updated_at = clock()

    db.commit()
    db.refresh(record)
    return record


def start_record(db: Session, record_id: int, clock: Clock = utcnow) -> MaintenanceRecord:
    record = get_record(db, record_id)
    record.status = _check_transition(record, "start")
    record.updated_at = clock()
    db.commit()
    db.refresh(record)
    logger.info(f"Maintenance record {record.id} started")
    return record


def update_checklist(
    db: Session,
    record_id: int,
    responses: Sequence[ChecklistItemUpdate],
    clock: Clock = utcnow,
) -> MaintenanceRecord:
    """Fold checklist answers into an open record; status is left alone."""
    record = get_record(db, record_id)
    _require_open(record, "update_checklist")

    execution = load_checklist(record)
    if execution is None:
        raise ValidationError(
            f"Maintenance record {record.id} has no checklist",
            details={"checklist": None},
        )

    _store_checklist(record, checklist_tracker.apply_responses(execution, responses))
    record.updated_at = clock()
    db.commit()
    db.refresh(record)
    logger.debug(f"Checklist of maintenance record {record.id} updated ({len(responses)} responses)")
    return record


def checklist_summary(db: Session, record_id: int) -> Optional[ChecklistSummary]:
    execution = load_checklist(get_record(db, record_id))
    if execution is None:
        return None
    return checklist_tracker.summarize(execution)


def is_checklist_complete(db: Session, record_id: int) -> bool:
    """Advisory: a record without a checklist counts as complete."""
    summary = checklist_summary(db, record_id)
    return summary is None or summary.is_complete


def complete_record(
    db: Session,
    record_id: int,
    final_notes: Optional[str] = None,
    final_photos: Optional[Sequence[str]] = None,
    clock: Clock = utcnow,
    require_complete_checklist: Optional[bool] = None,
) -> MaintenanceRecord:
    """Finish a record. A second call raises AlreadyCompletedError.

    The checklist does not gate completion unless
    ``require_complete_checklist`` (default: REQUIRE_CHECKLIST_COMPLETE) is set.
    """
    if require_complete_checklist is None:
        require_complete_checklist = settings.REQUIRE_CHECKLIST_COMPLETE

    record = get_record(db, record_id)
    target = _check_transition(record, "complete")
    photos = _clean_photos(final_photos or [])

    execution = load_checklist(record)
    if require_complete_checklist and execution is not None:
        summary = checklist_tracker.summarize(execution)
        if not summary.is_complete:
            raise ValidationError(
                "Required checklist items are not completed",
                details={"missing_required": summary.missing_required},
            )

    now = clock()
    record.status = target
    record.completed_at = now
    record.photos = list(record.photos or []) + photos
    if final_notes is not None:
        record.notes = final_notes
    record.updated_at = now

    db.commit()
    db.refresh(record)
    logger.info(f"Maintenance record {record.id} completed at {now.isoformat()}")
    return record


def delete_record(db: Session, record_id: int) -> None:
    """Remove a record in any status."""
    record = get_record(db, record_id)
    status = record.status
    db.delete(record)
    db.commit()
    logger.info(f"Deleted maintenance record {record_id} (status={status})")


def schedule_follow_up(db: Session, record_id: int, clock: Clock = utcnow) -> MaintenanceRecord:
    """Create the next occurrence of a completed recurring record.

    A record gets at most one follow-up; asking again while it still exists
    raises InvalidTransitionError.
    """
    record = get_record(db, record_id)
    next_at = scheduling.recurrence_next_date(record)
    if record.follow_up_id is not None and db.get(MaintenanceRecord, record.follow_up_id) is not None:
        logger.warning(f"Follow-up of maintenance record {record.id} already scheduled as {record.follow_up_id}")
        raise InvalidTransitionError(record.id, "schedule_follow_up", record.status,
                                     reason=f"follow-up {record.follow_up_id} already scheduled")

    checklist = None
    previous = load_checklist(record)
    if previous is not None:
        if previous.template_id is not None:
            template = db.get(ChecklistTemplate, previous.template_id)
            if template is not None:
                checklist = checklist_tracker.instantiate(lock_template(db, template.id))
        if checklist is None:
            # Template gone or ad hoc: rebuild from the item snapshot
            checklist = checklist_tracker.instantiate_ad_hoc([
                ChecklistItemCreate(
                    item_key=item.item_key,
                    title=item.title,
                    kind=item.kind,
                    required=item.required,
                    options=list(item.options),
                )
                for item in previous.items
            ])

    now = clock()
    follow_up = MaintenanceRecord(
        title=record.title,
        asset_type=record.asset_type,
        asset_id=record.asset_id,
        asset_name=record.asset_name,
        status=SCHEDULED,
        scheduled_at=next_at,
        recurrence=record.recurrence,
        technician_id=record.technician_id,
        photos=[],
        activity_id=record.activity_id,
        created_at=now,
        updated_at=now,
    )
    _store_checklist(follow_up, checklist)
    db.add(follow_up)
    db.flush()
    record.follow_up_id = follow_up.id
    record.updated_at = now
    db.commit()
    db.refresh(follow_up)
    logger.info(
        f"Scheduled follow-up {follow_up.id} of maintenance record {record.id} "
        f"at {follow_up.scheduled_at.isoformat()}"
    )
    return follow_up
