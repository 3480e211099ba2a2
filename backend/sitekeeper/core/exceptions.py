"""
Exception hierarchy shared by all services.

Services raise these types; ``main.py`` registers one handler per type so
every router gets the same HTTP status codes and JSON body shape:

    ValidationError         -> 422
    NotFoundError           -> 404
    InvalidTransitionError  -> 409
    AlreadyCompletedError   -> 409 (code="already_completed")
    ConflictError           -> 409

Usage:
    from sitekeeper.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Maintenance record", resource_id=42)
    raise ValidationError("Template name is required", details={"name": "empty"})
"""
from typing import Any, Dict, Optional, Union


class SiteKeeperError(Exception):
    """Base class; ``code`` is a stable machine-readable identifier."""

    code = "error"
    status_code = 400

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": str(self), "code": self.code}


class ValidationError(SiteKeeperError):
    """Input was well-formed JSON but violates a business rule.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown, keyed by field or item key.
    """

    code = "validation_error"
    status_code = 422

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.details:
            body["details"] = self.details
        return body


class NotFoundError(SiteKeeperError):
    """Raised when a template or record id does not exist."""

    code = "not_found"
    status_code = 404

    def __init__(self, resource: str, resource_id: Union[int, str, None] = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class InvalidTransitionError(SiteKeeperError):
    """Raised when an action is not allowed from the record's current status."""

    code = "invalid_transition"
    status_code = 409

    def __init__(
        self,
        record_id: Optional[int],
        action: str,
        current: str,
        reason: Optional[str] = None,
    ) -> None:
        self.record_id = record_id
        self.action = action
        self.current_status = current
        msg = f"Cannot '{action}' maintenance record {record_id} (status={current})"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["action"] = self.action
        body["current_status"] = self.current_status
        return body


class AlreadyCompletedError(InvalidTransitionError):
    """The record is already completed; callers show "already done" instead of a generic error."""

    code = "already_completed"

    def __init__(self, record_id: Optional[int], action: str) -> None:
        super().__init__(record_id, action, "completed", reason="record is already completed")


class ConflictError(SiteKeeperError):
    """Raised when an operation is blocked by existing references.

    Args:
        message: Human-readable explanation.
        details: Structured context for the caller, e.g. a template usage report.
    """

    code = "conflict"
    status_code = 409

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.details:
            body["details"] = self.details
        return body
