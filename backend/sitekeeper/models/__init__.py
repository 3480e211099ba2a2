from sitekeeper.models.asset import Site, Generator
from sitekeeper.models.checklist import ChecklistTemplate, ChecklistItem
from sitekeeper.models.maintenance import MaintenanceRecord

__all__ = ["Site", "Generator", "ChecklistTemplate", "ChecklistItem", "MaintenanceRecord"]
