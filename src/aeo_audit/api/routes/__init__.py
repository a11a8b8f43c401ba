"""API route exports."""

from aeo_audit.api.routes.audit import router as audit_router
from aeo_audit.api.routes.health import router as health_router

__all__ = ["audit_router", "health_router"]
