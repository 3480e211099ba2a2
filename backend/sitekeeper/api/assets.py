from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from sitekeeper.core.database import get_db
from sitekeeper.models.asset import Site, Generator
from sitekeeper.schemas.asset import SiteCreate, SiteResponse, GeneratorCreate, GeneratorResponse

router = APIRouter()


@router.get("/sites", response_model=List[SiteResponse])
def list_sites(db: Session = Depends(get_db)):
    return db.query(Site).order_by(Site.id).all()


@router.post("/sites", response_model=SiteResponse, status_code=201)
def create_site(site: SiteCreate, db: Session = Depends(get_db)):
    """Register a site so maintenance can be scheduled against it."""
    db_site = Site(**site.model_dump())
    db.add(db_site)
    db.commit()
    db.refresh(db_site)
    return db_site


@router.get("/generators", response_model=List[GeneratorResponse])
def list_generators(db: Session = Depends(get_db)):
    return db.query(Generator).order_by(Generator.id).all()


@router.post("/generators", response_model=GeneratorResponse, status_code=201)
def create_generator(generator: GeneratorCreate, db: Session = Depends(get_db)):
    """Register a generator so maintenance can be scheduled against it."""
    if generator.site_id is not None and db.get(Site, generator.site_id) is None:
        raise HTTPException(status_code=404, detail="Site not found")
    db_generator = Generator(**generator.model_dump())
    db.add(db_generator)
    db.commit()
    db.refresh(db_generator)
    return db_generator
