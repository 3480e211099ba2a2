"""
Checklist execution tracker.

Turns a template (or an ad hoc list of item definitions) into a per-record
execution and folds incoming answers into it.

Two predicates are kept apart on purpose:
  - progress counts every item, required or not;
  - completeness only looks at required items.
"""
from typing import Dict, List, Sequence

from sitekeeper.core.exceptions import ValidationError
from sitekeeper.models.checklist import ChecklistTemplate
from sitekeeper.models.enums import ItemKind
from sitekeeper.schemas.checklist import ChecklistItemCreate
from sitekeeper.schemas.execution import (
    ChecklistExecution,
    ChecklistItemResponse,
    ChecklistItemUpdate,
    ChecklistSummary,
)
from sitekeeper.services.template_registry import normalize_items


def compute_progress(completed: int, total: int) -> int:
    """round(100 * completed / total), halves rounded up; 0 for an empty checklist."""
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def _with_progress(template_id, template_name, items: List[ChecklistItemResponse]) -> ChecklistExecution:
    done = sum(1 for item in items if item.completed)
    return ChecklistExecution(
        template_id=template_id,
        template_name=template_name,
        items=items,
        progress=compute_progress(done, len(items)),
    )


def instantiate(template: ChecklistTemplate) -> ChecklistExecution:
    items = [
        ChecklistItemResponse(
            item_key=item.item_key,
            title=item.title,
            kind=ItemKind(item.kind),
            required=item.required,
            options=list(item.options or []),
        )
        for item in sorted(template.items, key=lambda i: i.order)
    ]
    return _with_progress(template.id, template.name, items)


def instantiate_ad_hoc(item_defs: Sequence[ChecklistItemCreate]) -> ChecklistExecution:
    """Build an execution that is not backed by a stored template."""
    items = [
        ChecklistItemResponse(
            item_key=item.item_key,
            title=item.title,
            kind=item.kind,
            required=item.required,
            options=list(item.options),
        )
        for item in normalize_items(item_defs)
    ]
    return _with_progress(None, None, items)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_str_list(value) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def check_value(item: ChecklistItemResponse, value) -> None:
    """Raise ValidationError unless ``value`` fits the item's kind."""
    if value is None:
        return

    kind = item.kind
    if kind == ItemKind.TASK:
        problem = "task items do not take a value"
    elif kind == ItemKind.YES_NO:
        problem = None if isinstance(value, bool) else "expected true or false"
    elif kind == ItemKind.NUMBER:
        problem = None if _is_number(value) else "expected a number"
    elif kind == ItemKind.TEXT:
        problem = None if isinstance(value, str) else "expected text"
    elif kind == ItemKind.CHOICE:
        chosen = [value] if isinstance(value, str) else value
        if not _is_str_list(chosen):
            problem = "expected an option label or a list of option labels"
        elif any(c not in item.options for c in chosen):
            problem = f"expected one of {item.options}"
        else:
            problem = None
    elif kind == ItemKind.PHOTO:
        problem = None if _is_str_list(value) else "expected a list of photo URLs"
    else:
        problem = f"unsupported item kind {kind}"

    if problem:
        raise ValidationError(
            f"Invalid value for checklist item '{item.item_key}'",
            details={item.item_key: problem},
        )


def apply_responses(
    execution: ChecklistExecution,
    responses: Sequence[ChecklistItemUpdate],
) -> ChecklistExecution:
    """Merge answers by item key and return a new execution.

    The whole batch is rejected if any key is unknown or repeated, or any
    value does not match its item kind. Applying the same batch twice gives
    the same result.
    """
    by_key: Dict[str, ChecklistItemResponse] = {item.item_key: item for item in execution.items}

    unknown = [r.item_key for r in responses if r.item_key not in by_key]
    if unknown:
        raise ValidationError(
            "Responses reference items that are not part of this checklist",
            details={key: "unknown item" for key in unknown},
        )

    keys = [r.item_key for r in responses]
    repeated = sorted({k for k in keys if keys.count(k) > 1})
    if repeated:
        raise ValidationError(
            "Each item may only be answered once per update",
            details={key: "duplicate response" for key in repeated},
        )

    updated = dict(by_key)
    for response in responses:
        current = by_key[response.item_key]
        changes = response.model_dump(exclude_unset=True, exclude={"item_key"})
        if changes.get("completed") is None:
            changes.pop("completed", None)
        if "photos" in changes and changes["photos"] is None:
            changes["photos"] = []
        if "value" in changes:
            check_value(current, response.value)
            changes["value"] = response.value
        updated[response.item_key] = current.model_copy(update=changes)

    items = [updated[item.item_key] for item in execution.items]
    return _with_progress(execution.template_id, execution.template_name, items)


def is_complete(execution: ChecklistExecution) -> bool:
    """Every required item is completed; optional items never block."""
    return all(item.completed for item in execution.items if item.required)


def summarize(execution: ChecklistExecution) -> ChecklistSummary:
    required = [item for item in execution.items if item.required]
    missing = [item.title for item in required if not item.completed]
    return ChecklistSummary(
        total=len(execution.items),
        completed=sum(1 for item in execution.items if item.completed),
        required=len(required),
        required_completed=len(required) - len(missing),
        progress=execution.progress,
        is_complete=not missing,
        missing_required=missing,
    )
