from sitekeeper.schemas.asset import SiteCreate, SiteResponse, GeneratorCreate, GeneratorResponse
from sitekeeper.schemas.checklist import (
    ChecklistItemCreate, ChecklistItemDefinition,
    ChecklistTemplateCreate, ChecklistTemplateReplace, ChecklistTemplateDuplicate,
    ChecklistTemplateResponse, TemplateUsageEntry, TemplateUsageReport,
)
from sitekeeper.schemas.execution import (
    ChecklistExecution, ChecklistItemResponse, ChecklistItemUpdate, ChecklistUpdate, ChecklistSummary,
)
from sitekeeper.schemas.maintenance import (
    MaintenanceCreate, MaintenanceUpdate, MaintenanceComplete, MaintenanceResponse,
    ChecklistStatusResponse, UpcomingResponse, StatusSummary,
)

__all__ = [
    "SiteCreate", "SiteResponse", "GeneratorCreate", "GeneratorResponse",
    "ChecklistItemCreate", "ChecklistItemDefinition",
    "ChecklistTemplateCreate", "ChecklistTemplateReplace", "ChecklistTemplateDuplicate",
    "ChecklistTemplateResponse", "TemplateUsageEntry", "TemplateUsageReport",
    "ChecklistExecution", "ChecklistItemResponse", "ChecklistItemUpdate", "ChecklistUpdate", "ChecklistSummary",
    "MaintenanceCreate", "MaintenanceUpdate", "MaintenanceComplete", "MaintenanceResponse",
    "ChecklistStatusResponse", "UpcomingResponse", "StatusSummary",
]
