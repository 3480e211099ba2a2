from sqlalchemy import Column, Integer, String, Float, ForeignKey
from sitekeeper.core.database import Base


class Site(Base):
    __tablename__ = "sites"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    city = Column(String(100))
    state = Column(String(50))
    site_type = Column(String(50))  # backbone, distribution, client, ...


class Generator(Base):
    __tablename__ = "generators"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    site_id = Column(Integer, ForeignKey("sites.id"))
    model = Column(String(100))
    manufacturer = Column(String(100))
    power_kva = Column(Float)
    fuel_type = Column(String(50))
