"""AEO Audit API - single-page AI Engine Optimization audits."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from aeo_audit.api.routes import audit_router, health_router
from aeo_audit.config import settings
from aeo_audit.service import AuditService

logging.basicConfig(
    level=logging.DEBUG if settings.debug else settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Code before `yield` runs on startup.
    Code after `yield` runs on shutdown.
    """
    # Startup: the browser itself starts lazily on first render
    logger.info(f"Starting {settings.app_name}...")
    app.state.audit_service = AuditService.from_settings()
    yield
    # Shutdown: release the HTTP client and the shared browser
    logger.info(f"Shutting down {settings.app_name}...")
    await app.state.audit_service.aclose()


app = FastAPI(
    title="AEO Audit API",
    description="Audits a page for discoverability, structured data, LLM formatting, accessibility and readability.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health_router, prefix="/api/v1")
app.include_router(audit_router, prefix="/api/v1")


@app.get("/", include_in_schema=False)
async def root():
    """Describe the service entry points."""
    return {
        "service": "AEO Audit API",
        "docs": "/docs",
        "health": "/api/v1/health",
        "audit": "/api/v1/audit",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "aeo_audit.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
