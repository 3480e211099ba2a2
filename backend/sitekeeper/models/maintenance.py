from sqlalchemy import Column, Integer, String, Text, JSON, ForeignKey
from sitekeeper.core.database import Base, UTCDateTime


class MaintenanceRecord(Base):
    __tablename__ = "maintenance_records"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)

    # Asset reference; asset_name is a snapshot taken at creation
    asset_type = Column(String(20), nullable=False, index=True)  # site, generator
    asset_id = Column(Integer, nullable=False, index=True)
    asset_name = Column(String(200), nullable=False)

    # Stored status is scheduled, in_progress or completed; overdue is derived on read
    status = Column(String(20), nullable=False, default="scheduled", index=True)
    scheduled_at = Column(UTCDateTime, nullable=False, index=True)
    completed_at = Column(UTCDateTime)
    recurrence = Column(String(20), nullable=False, default="once")

    # Embedded checklist execution (JSON document), replaced wholesale on every write.
    # The template id is mirrored in its own column for the usage guard scan.
    checklist = Column(JSON)
    checklist_template_id = Column(Integer, ForeignKey("checklist_templates.id"), index=True)

    notes = Column(Text)
    technician_id = Column(Integer, index=True)
    photos = Column(JSON, nullable=False, default=list)  # list of photo URLs
    activity_id = Column(Integer)
    # Next occurrence created by schedule_follow_up
    follow_up_id = Column(Integer, ForeignKey("maintenance_records.id", ondelete="SET NULL"))

    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)

    # Optimistic concurrency: stale writes raise StaleDataError
    version = Column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}
