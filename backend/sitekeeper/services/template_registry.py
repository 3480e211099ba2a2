"""
Checklist template registry.

Templates are named, ordered sets of checklist item definitions. Updates
are full replacements of metadata and items; executions already embedded in
maintenance records keep their own snapshot and are never touched here.

Usage:
    from sitekeeper.services.template_registry import create_template

    template = create_template(db, ChecklistTemplateCreate(
        name="Generator Check",
        items=[ChecklistItemCreate(title="Oil level ok", kind="yes_no", required=True)],
    ))
"""
import logging
import uuid
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from sitekeeper.core.clock import Clock, utcnow
from sitekeeper.core.exceptions import ConflictError, NotFoundError, ValidationError
from sitekeeper.models.checklist import ChecklistTemplate, ChecklistItem
from sitekeeper.models.enums import ItemKind
from sitekeeper.schemas.checklist import (
    ChecklistItemCreate,
    ChecklistTemplateCreate,
    ChecklistTemplateReplace,
)
from sitekeeper.services.template_usage import assert_deletable

logger = logging.getLogger(__name__)


def new_item_key() -> str:
    return uuid.uuid4().hex[:12]


def normalize_items(items: Sequence[ChecklistItemCreate]) -> List[ChecklistItemCreate]:
    """Validate item definitions and fill in generated keys and ordering.

    Collects every problem before raising so the caller sees all of them.
    """
    errors: Dict[str, str] = {}
    seen = set()
    normalized = []

    for index, item in enumerate(items):
        key = (item.item_key or "").strip() or None
        label = key or f"items[{index}]"
        title = (item.title or "").strip()
        options = [o.strip() for o in item.options if o.strip()]
        if not title:
            errors[label] = "title is required"
        if item.kind == ItemKind.CHOICE and not options:
            errors[label] = "choice items need at least one option"
        if key is not None:
            if key in seen:
                errors[label] = "duplicate item_key within template"
            seen.add(key)

        normalized.append(item.model_copy(update={
            "title": title,
            "item_key": key,
            "order": item.order if item.order is not None else index,
            "options": options if item.kind == ItemKind.CHOICE else [],
        }))

    if errors:
        raise ValidationError("Invalid checklist items", details=errors)

    # Generated keys are assigned last so they never collide with explicit ones
    for i, item in enumerate(normalized):
        if item.item_key is None:
            key = new_item_key()
            while key in seen:
                key = new_item_key()
            seen.add(key)
            normalized[i] = item.model_copy(update={"item_key": key})

    return sorted(normalized, key=lambda i: i.order)


def _validate_template(name: str, items: Sequence[ChecklistItemCreate]) -> List[ChecklistItemCreate]:
    if not name or not name.strip():
        raise ValidationError("Template name is required", details={"name": "must not be empty"})
    if not items:
        raise ValidationError("A template needs at least one item", details={"items": "must not be empty"})
    return normalize_items(items)


def _build_items(items: Sequence[ChecklistItemCreate]) -> List[ChecklistItem]:
    return [
        ChecklistItem(
            item_key=item.item_key,
            title=item.title,
            description=item.description,
            kind=ItemKind(item.kind).value,
            required=item.required,
            order=item.order,
            options=list(item.options),
        )
        for item in items
    ]


def create_template(
    db: Session,
    data: ChecklistTemplateCreate,
    clock: Clock = utcnow,
) -> ChecklistTemplate:
    """Persist a new template with a database-assigned id."""
    items = _validate_template(data.name, data.items)
    now = clock()
    template = ChecklistTemplate(
        name=data.name.strip(),
        description=data.description,
        category=data.category,
        is_active=True,
        items=_build_items(items),
        created_at=now,
        updated_at=now,
    )
    db.add(template)
    db.commit()
    db.refresh(template)
    logger.info(f"Created checklist template {template.id} '{template.name}' with {len(items)} items")
    return template


def get_template(db: Session, template_id: int) -> ChecklistTemplate:
    template = db.get(ChecklistTemplate, template_id)
    if template is None:
        raise NotFoundError(resource="Checklist template", resource_id=template_id)
    return template


def list_templates(db: Session, active: Optional[bool] = None) -> List[ChecklistTemplate]:
    """All templates, or only active (True) or only inactive (False) ones."""
    query = db.query(ChecklistTemplate)
    if active is not None:
        query = query.filter(ChecklistTemplate.is_active.is_(active))
    return query.order_by(ChecklistTemplate.id).all()


def replace_template(
    db: Session,
    template_id: int,
    data: ChecklistTemplateReplace,
    clock: Clock = utcnow,
) -> ChecklistTemplate:
    """Replace a template's metadata and item list wholesale."""
    template = get_template(db, template_id)
    items = _validate_template(data.name, data.items)

    template.name = data.name.strip()
    template.description = data.description
    template.category = data.category
    template.is_active = data.is_active

    # Remove the old rows first: new items may reuse the same keys
    template.items.clear()
    db.flush()
    template.items = _build_items(items)
    template.updated_at = clock()

    db.commit()
    db.refresh(template)
    logger.info(f"Replaced checklist template {template.id} ({len(items)} items)")
    return template


def duplicate_template(
    db: Session,
    template_id: int,
    new_name: Optional[str] = None,
    clock: Clock = utcnow,
) -> ChecklistTemplate:
    """Clone a template under a new id with freshly generated item keys."""
    source = get_template(db, template_id)
    name = new_name.strip() if new_name and new_name.strip() else f"{source.name} (Copy)"
    now = clock()

    copy = ChecklistTemplate(
        name=name,
        description=source.description,
        category=source.category,
        is_active=True,
        items=[
            ChecklistItem(
                item_key=new_item_key(),
                title=item.title,
                description=item.description,
                kind=item.kind,
                required=item.required,
                order=item.order,
                options=list(item.options or []),
            )
            for item in source.items
        ],
        created_at=now,
        updated_at=now,
    )
    db.add(copy)
    db.commit()
    db.refresh(copy)
    logger.info(f"Duplicated checklist template {source.id} as {copy.id} '{copy.name}'")
    return copy


def lock_template(db: Session, template_id: int) -> ChecklistTemplate:
    """Load a template with a row lock held until the current transaction ends.

    Record creation and template deletion both take this lock, so a usage
    check and the delete that follows it cannot interleave with a new reference.
    """
    template = (
        db.query(ChecklistTemplate)
        .filter(ChecklistTemplate.id == template_id)
        .with_for_update()
        .first()
    )
    if template is None:
        raise NotFoundError(resource="Checklist template", resource_id=template_id)
    return template


def delete_template(db: Session, template_id: int) -> None:
    """Delete a template unless any maintenance record still references it."""
    template = lock_template(db, template_id)
    try:
        assert_deletable(db, template_id)
    except ConflictError:
        db.rollback()
        raise
    db.delete(template)
    db.commit()
    logger.info(f"Deleted checklist template {template_id}")
