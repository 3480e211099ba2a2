"""
Shared pytest fixtures.

Provides:
    - engine / db: in-memory SQLite, schema created and dropped per test
    - clock: a controllable clock (FrozenClock) injected into services and routes
    - client: FastAPI TestClient with get_db and get_clock overridden
    - generator / site: pre-created assets
    - generator_template: "Generator Check" template with two required yes/no items
"""
import os

# Must be set before sitekeeper.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "100000")
os.environ.setdefault("RATE_LIMIT_PER_HOUR", "1000000")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sitekeeper.core.clock import get_clock
from sitekeeper.core.database import Base, get_db
from sitekeeper.main import app
from sitekeeper.models import Generator, Site
from sitekeeper.schemas.checklist import ChecklistItemCreate, ChecklistTemplateCreate
from sitekeeper.services import template_registry

T0 = datetime(2026, 3, 15, 9, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock that only moves when a test moves it."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FrozenClock(T0 - timedelta(days=1))


@pytest.fixture
def client(session_factory, clock):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def site(db):
    s = Site(name="POP Centro", city="Curitiba", state="PR", site_type="backbone")
    db.add(s)
    db.commit()
    db.refresh(s)
    return s


@pytest.fixture
def generator(db, site):
    g = Generator(id=42, name="G42", site_id=site.id, manufacturer="Stemac", power_kva=150.0, fuel_type="diesel")
    db.add(g)
    db.commit()
    db.refresh(g)
    return g


@pytest.fixture
def generator_template(db, clock):
    return template_registry.create_template(
        db,
        ChecklistTemplateCreate(
            name="Generator Check",
            items=[
                ChecklistItemCreate(item_key="A", title="Oil level ok", kind="yes_no", required=True),
                ChecklistItemCreate(item_key="B", title="Battery charged", kind="yes_no", required=True),
            ],
        ),
        clock=clock,
    )
