from enum import Enum


class AssetType(str, Enum):
    SITE = "site"
    GENERATOR = "generator"


class MaintenanceStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    # Read-time view only, never written to the status column
    OVERDUE = "overdue"


class Recurrence(str, Enum):
    ONCE = "once"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMIANNUAL = "semiannual"

    @property
    def months(self) -> int:
        return RECURRENCE_MONTHS[self]


RECURRENCE_MONTHS = {
    Recurrence.ONCE: 0,
    Recurrence.MONTHLY: 1,
    Recurrence.QUARTERLY: 3,
    Recurrence.SEMIANNUAL: 6,
}


class ItemKind(str, Enum):
    TASK = "task"
    TEXT = "text"
    NUMBER = "number"
    CHOICE = "choice"
    YES_NO = "yes_no"
    PHOTO = "photo"
