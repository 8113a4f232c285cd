"""Main FastAPI application"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api import admin, jira_oauth, sync, tracking
from app.config import settings
from app.models.base import init_db
from app.security import BasicAuthMiddleware

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Starting WorklogBridge")
    init_db()
    yield
    logger.info("Stopping WorklogBridge")


app = FastAPI(
    title="WorklogBridge",
    description="Time tracking with work log sync to Jira",
    version="1.0.0",
    lifespan=lifespan,
)

# Optional shared-password gate; the Basic username still selects the user.
if settings.auth_enabled:
    if not settings.auth_password:
        raise RuntimeError("AUTH_ENABLED=true requires AUTH_PASSWORD to be set")
    app.add_middleware(
        BasicAuthMiddleware,
        password=settings.auth_password,
        allow_paths={"/health"},
    )

# Include API routers
app.include_router(tracking.router)
app.include_router(jira_oauth.router)
app.include_router(admin.router)
app.include_router(sync.router)


@app.get("/")
async def root():
    """Landing target after the OAuth handshake"""
    return {"service": "WorklogBridge", "status": "ok"}


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "WorklogBridge"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
