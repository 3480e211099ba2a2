from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

from sitekeeper.models.enums import ItemKind


class ChecklistItemBase(BaseModel):
    title: str
    description: Optional[str] = None
    kind: ItemKind = ItemKind.TASK
    required: bool = False
    options: List[str] = Field(default_factory=list)  # choice items only


class ChecklistItemCreate(ChecklistItemBase):
    # Generated by the registry when omitted
    item_key: Optional[str] = None
    order: Optional[int] = None


class ChecklistItemDefinition(ChecklistItemBase):
    item_key: str
    order: int

    class Config:
        from_attributes = True


class ChecklistTemplateBase(BaseModel):
    name: str
    description: Optional[str] = None
    category: Optional[str] = None


class ChecklistTemplateCreate(ChecklistTemplateBase):
    items: List[ChecklistItemCreate]


class ChecklistTemplateReplace(ChecklistTemplateBase):
    items: List[ChecklistItemCreate]
    is_active: bool = True


class ChecklistTemplateDuplicate(BaseModel):
    new_name: Optional[str] = None


class ChecklistTemplateResponse(ChecklistTemplateBase):
    id: int
    is_active: bool
    items: List[ChecklistItemDefinition]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TemplateUsageEntry(BaseModel):
    id: int
    title: str
    status: str
    scheduled_at: datetime


class TemplateUsageReport(BaseModel):
    template_id: int
    template_name: str
    usage_count: int
    used_in: List[TemplateUsageEntry]
