"""
Scheduling and overdue derivation.

"overdue" is never stored. It is computed from the stored status, the
scheduled time and the current time every time a record is read.
"""
from datetime import datetime, timedelta
from typing import Dict, List

from dateutil.relativedelta import relativedelta
from sqlalchemy import func
from sqlalchemy.orm import Session

from sitekeeper.core.clock import as_utc
from sitekeeper.core.exceptions import InvalidTransitionError, ValidationError
from sitekeeper.models.enums import MaintenanceStatus, Recurrence
from sitekeeper.models.maintenance import MaintenanceRecord

COMPLETED = MaintenanceStatus.COMPLETED.value


def derive_status(record: MaintenanceRecord, now: datetime) -> MaintenanceStatus:
    if record.status == COMPLETED:
        return MaintenanceStatus.COMPLETED
    if as_utc(now) > as_utc(record.scheduled_at):
        return MaintenanceStatus.OVERDUE
    return MaintenanceStatus(record.status)


def filter_by_status(query, status: MaintenanceStatus, now: datetime):
    """Restrict a MaintenanceRecord query to one *derived* status."""
    status = MaintenanceStatus(status)
    if status == MaintenanceStatus.COMPLETED:
        return query.filter(MaintenanceRecord.status == COMPLETED)
    if status == MaintenanceStatus.OVERDUE:
        return query.filter(
            MaintenanceRecord.status != COMPLETED,
            MaintenanceRecord.scheduled_at < now,
        )
    return query.filter(
        MaintenanceRecord.status == status.value,
        MaintenanceRecord.scheduled_at >= now,
    )


def upcoming(db: Session, within_days: int, now: datetime) -> List[MaintenanceRecord]:
    """Open records scheduled in [now, now + within_days], soonest first."""
    if within_days < 0:
        raise ValidationError("within_days must not be negative", details={"days": within_days})
    now = as_utc(now)
    window_end = now + timedelta(days=within_days)
    return (
        db.query(MaintenanceRecord)
        .filter(
            MaintenanceRecord.status != COMPLETED,
            MaintenanceRecord.scheduled_at >= now,
            MaintenanceRecord.scheduled_at <= window_end,
        )
        .order_by(MaintenanceRecord.scheduled_at.asc(), MaintenanceRecord.id.asc())
        .all()
    )


def overdue(db: Session, now: datetime) -> List[MaintenanceRecord]:
    """Open records whose scheduled time has passed, oldest first."""
    query = filter_by_status(db.query(MaintenanceRecord), MaintenanceStatus.OVERDUE, as_utc(now))
    return query.order_by(MaintenanceRecord.scheduled_at.asc(), MaintenanceRecord.id.asc()).all()


def recurrence_next_date(record: MaintenanceRecord) -> datetime:
    """Next scheduled time of a completed recurring record.

    Counted from the original scheduled time, not the completion time, so
    late completions do not push the whole series back.
    """
    recurrence = Recurrence(record.recurrence)
    if record.status != COMPLETED:
        raise InvalidTransitionError(record.id, "schedule_follow_up", record.status,
                                     reason="record is not completed")
    if recurrence == Recurrence.ONCE:
        raise InvalidTransitionError(record.id, "schedule_follow_up", record.status,
                                     reason="record does not recur")
    return as_utc(record.scheduled_at) + relativedelta(months=recurrence.months)


def status_summary(db: Session, now: datetime) -> Dict[str, int]:
    """Number of records per derived status."""
    now = as_utc(now)
    counts: Dict[str, int] = {status.value: 0 for status in MaintenanceStatus}
    for status in MaintenanceStatus:
        query = filter_by_status(db.query(func.count(MaintenanceRecord.id)), status, now)
        counts[status.value] = query.scalar() or 0
    return counts
