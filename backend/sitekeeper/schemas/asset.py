from pydantic import BaseModel
from typing import Optional


class SiteCreate(BaseModel):
    name: str
    city: Optional[str] = None
    state: Optional[str] = None
    site_type: Optional[str] = None


class SiteResponse(SiteCreate):
    id: int

    class Config:
        from_attributes = True


class GeneratorCreate(BaseModel):
    name: str
    site_id: Optional[int] = None
    model: Optional[str] = None
    manufacturer: Optional[str] = None
    power_kva: Optional[float] = None
    fuel_type: Optional[str] = None


class GeneratorResponse(GeneratorCreate):
    id: int

    class Config:
        from_attributes = True
