from pydantic import BaseModel, Field
from datetime import datetime
from typing import Dict, List, Optional

from sitekeeper.models.enums import AssetType, MaintenanceStatus, Recurrence
from sitekeeper.schemas.checklist import ChecklistItemCreate
from sitekeeper.schemas.execution import ChecklistExecution


class MaintenanceBase(BaseModel):
    title: str
    scheduled_at: datetime
    recurrence: Recurrence = Recurrence.ONCE


class MaintenanceCreate(MaintenanceBase):
    asset_type: AssetType
    asset_id: int
    # At most one of the two; neither means no checklist
    template_id: Optional[int] = None
    checklist_items: Optional[List[ChecklistItemCreate]] = None
    notes: Optional[str] = None
    technician_id: Optional[int] = None
    photos: List[str] = Field(default_factory=list)
    activity_id: Optional[int] = None


class MaintenanceUpdate(BaseModel):
    title: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    recurrence: Optional[Recurrence] = None
    notes: Optional[str] = None
    technician_id: Optional[int] = None
    activity_id: Optional[int] = None


class MaintenanceComplete(BaseModel):
    final_notes: Optional[str] = None
    final_photos: List[str] = Field(default_factory=list)


class MaintenanceResponse(MaintenanceBase):
    id: int
    asset_type: AssetType
    asset_id: int
    asset_name: str
    # Derived status (may be "overdue"); stored_status is the persisted state
    status: MaintenanceStatus
    stored_status: MaintenanceStatus
    completed_at: Optional[datetime] = None
    checklist: Optional[ChecklistExecution] = None
    notes: Optional[str] = None
    technician_id: Optional[int] = None
    photos: List[str] = Field(default_factory=list)
    activity_id: Optional[int] = None
    follow_up_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class ChecklistStatusResponse(BaseModel):
    record_id: int
    has_checklist: bool
    is_complete: bool
    progress: int
    missing_required: List[str] = Field(default_factory=list)


class UpcomingResponse(BaseModel):
    records: List[MaintenanceResponse]
    total: int
    window_start: datetime
    window_end: datetime
    days: int


class StatusSummary(BaseModel):
    counts: Dict[str, int]
    total: int
