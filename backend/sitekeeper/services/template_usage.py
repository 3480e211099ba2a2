"""Guards destructive template operations against references from maintenance history."""
import logging

from sqlalchemy.orm import Session

from sitekeeper.core.exceptions import ConflictError, NotFoundError
from sitekeeper.models.checklist import ChecklistTemplate
from sitekeeper.models.maintenance import MaintenanceRecord
from sitekeeper.schemas.checklist import TemplateUsageEntry, TemplateUsageReport

logger = logging.getLogger(__name__)


def is_in_use(db: Session, template_id: int) -> bool:
    """True if any record, completed ones included, was instantiated from the template."""
    query = db.query(MaintenanceRecord.id).filter(
        MaintenanceRecord.checklist_template_id == template_id
    )
    return db.query(query.exists()).scalar()


def usage_report(db: Session, template_id: int) -> TemplateUsageReport:
    template = db.get(ChecklistTemplate, template_id)
    if template is None:
        raise NotFoundError(resource="Checklist template", resource_id=template_id)

    records = (
        db.query(MaintenanceRecord)
        .filter(MaintenanceRecord.checklist_template_id == template_id)
        .order_by(MaintenanceRecord.scheduled_at, MaintenanceRecord.id)
        .all()
    )
    return TemplateUsageReport(
        template_id=template.id,
        template_name=template.name,
        usage_count=len(records),
        used_in=[
            TemplateUsageEntry(
                id=r.id,
                title=r.title,
                status=r.status,
                scheduled_at=r.scheduled_at,
            )
            for r in records
        ],
    )


def assert_deletable(db: Session, template_id: int) -> None:
    if not is_in_use(db, template_id):
        return
    report = usage_report(db, template_id)
    logger.warning(
        f"Refusing to delete checklist template {template_id}: "
        f"referenced by {report.usage_count} maintenance record(s)"
    )
    raise ConflictError(
        f"Checklist template {template_id} is used by {report.usage_count} maintenance record(s)",
        details=report.model_dump(mode="json"),
    )
