"""Asset directory lookups used when a maintenance record is created."""
from typing import Optional
from sqlalchemy.orm import Session

from sitekeeper.models.asset import Site, Generator
from sitekeeper.models.enums import AssetType

ASSET_MODELS = {
    AssetType.SITE: Site,
    AssetType.GENERATOR: Generator,
}


class AssetDirectory:
    """Answers whether an asset exists and what it is currently called."""

    def __init__(self, db: Session):
        self.db = db

    def display_name(self, asset_type: AssetType, asset_id: int) -> Optional[str]:
        model = ASSET_MODELS[AssetType(asset_type)]
        asset = self.db.get(model, asset_id)
        return asset.name if asset else None

    def exists(self, asset_type: AssetType, asset_id: int) -> bool:
        return self.display_name(asset_type, asset_id) is not None
