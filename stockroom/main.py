import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from stockroom.config.logging_config import configure_logging
from stockroom.config.settings import settings
from stockroom.database import client as db_client
from stockroom.features.audit.router import router as audit_router
from stockroom.features.auth.router import router as auth_router
from stockroom.features.items.router import router as items_router
from stockroom.features.movements.router import router as movements_router
from stockroom.features.reports.router import dashboard_router
from stockroom.features.reports.router import router as reports_router
from stockroom.features.user.router import router as user_router
from stockroom.shared.audit.audit_middleware import AuditContextMiddleware
from stockroom.shared.rate_limit.limiter import limiter, rate_limit_handler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Handle startup and shutdown events."""
    # Startup
    configure_logging(settings)
    logger.info(f"Starting {settings.app_name} {settings.app_version} ({settings.environment})")
    await db_client.init_db()
    yield
    # Shutdown
    await db_client.close_db()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Add rate limiting middleware
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
app.add_middleware(SlowAPIMiddleware)

# Reset the audit actor around every request
app.add_middleware(AuditContextMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Idempotency-Key"],
)

# Router Registration
routers: list[APIRouter] = [
    auth_router,
    user_router,
    items_router,
    movements_router,
    reports_router,
    dashboard_router,
    audit_router,
]

for router in routers:
    app.include_router(router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    return {"message": settings.app_name, "status": "running"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
