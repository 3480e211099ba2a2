from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
from typing import List, Optional

from sitekeeper.core.clock import Clock, get_clock
from sitekeeper.core.database import get_db
from sitekeeper.schemas.checklist import (
    ChecklistTemplateCreate,
    ChecklistTemplateDuplicate,
    ChecklistTemplateReplace,
    ChecklistTemplateResponse,
    TemplateUsageReport,
)
from sitekeeper.services import template_registry, template_usage

router = APIRouter()


@router.get("", response_model=List[ChecklistTemplateResponse])
def list_templates(active: Optional[bool] = None, db: Session = Depends(get_db)):
    """List checklist templates, filtered by active flag when given."""
    return template_registry.list_templates(db, active=active)


@router.post("", response_model=ChecklistTemplateResponse, status_code=201)
def create_template(
    template: ChecklistTemplateCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Create a checklist template."""
    return template_registry.create_template(db, template, clock=clock)


@router.get("/{template_id}", response_model=ChecklistTemplateResponse)
def get_template(template_id: int, db: Session = Depends(get_db)):
    return template_registry.get_template(db, template_id)


@router.put("/{template_id}", response_model=ChecklistTemplateResponse)
def replace_template(
    template_id: int,
    template: ChecklistTemplateReplace,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Replace a template's metadata and items. Existing executions are unaffected."""
    return template_registry.replace_template(db, template_id, template, clock=clock)


@router.delete("/{template_id}", status_code=204)
def delete_template(template_id: int, db: Session = Depends(get_db)):
    """Delete a template; 409 with the usage report while records reference it."""
    template_registry.delete_template(db, template_id)
    return Response(status_code=204)


@router.post("/{template_id}/duplicate", response_model=ChecklistTemplateResponse, status_code=201)
def duplicate_template(
    template_id: int,
    body: Optional[ChecklistTemplateDuplicate] = None,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    new_name = body.new_name if body else None
    return template_registry.duplicate_template(db, template_id, new_name=new_name, clock=clock)


@router.get("/{template_id}/usage", response_model=TemplateUsageReport)
def get_template_usage(template_id: int, db: Session = Depends(get_db)):
    """Maintenance records that reference this template."""
    return template_usage.usage_report(db, template_id)
