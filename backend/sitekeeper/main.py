import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm.exc import StaleDataError

from sitekeeper.api import assets, checklists, maintenance
from sitekeeper.core.config import settings
from sitekeeper.core.database import check_database_health, init_db
from sitekeeper.core.exceptions import SiteKeeperError
from sitekeeper.core.rate_limit import RateLimitMiddleware

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Creating database tables...")
    init_db()
    yield


app = FastAPI(
    title="SiteKeeper API",
    description="Maintenance scheduling and inspection checklists for sites and generators",
    version="1.0.0",
    lifespan=lifespan,
)

# Rate limiting middleware
app.add_middleware(
    RateLimitMiddleware,
    requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=settings.RATE_LIMIT_PER_HOUR,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SiteKeeperError)
async def sitekeeper_error_handler(request: Request, exc: SiteKeeperError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StaleDataError)
async def stale_data_handler(request: Request, exc: StaleDataError):
    logger.warning(f"Concurrent modification on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=409,
        content={"detail": "Record was modified concurrently, reload and retry", "code": "stale_record"},
    )


# Include routers
app.include_router(checklists.router, prefix="/api/checklists", tags=["Checklists"])
app.include_router(maintenance.router, prefix="/api/maintenance", tags=["Maintenance"])
app.include_router(assets.router, prefix="/api/assets", tags=["Assets"])


@app.get("/")
async def root():
    return {"message": "SiteKeeper API", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    return {"status": "healthy", "database": check_database_health()}
