"""Value types for a checklist execution embedded in a maintenance record.

Executions are frozen: every change goes through the tracker, which returns
a new ``ChecklistExecution`` instead of mutating the one a caller holds.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Union

from sitekeeper.models.enums import ItemKind

# bool for yes_no, number for number, str for text/choice,
# list of str for multi-choice and photo items
ResponseValue = Union[bool, int, float, str, List[str]]


class ChecklistItemResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    item_key: str
    # Snapshot of the definition at instantiation time
    title: str
    kind: ItemKind
    required: bool = False
    options: List[str] = Field(default_factory=list)

    completed: bool = False
    value: Optional[ResponseValue] = None
    notes: Optional[str] = None
    photos: List[str] = Field(default_factory=list)


class ChecklistExecution(BaseModel):
    model_config = ConfigDict(frozen=True)

    template_id: Optional[int] = None
    template_name: Optional[str] = None
    items: List[ChecklistItemResponse] = Field(default_factory=list)
    progress: int = 0


class ChecklistItemUpdate(BaseModel):
    """Incoming answer for one item; omitted fields keep their current value."""

    item_key: str
    completed: Optional[bool] = None
    value: Optional[ResponseValue] = None
    notes: Optional[str] = None
    photos: Optional[List[str]] = None


class ChecklistUpdate(BaseModel):
    responses: List[ChecklistItemUpdate]


class ChecklistSummary(BaseModel):
    total: int
    completed: int
    required: int
    required_completed: int
    progress: int
    is_complete: bool
    missing_required: List[str]
