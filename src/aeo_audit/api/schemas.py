"""Pydantic schemas for API request/response validation."""

from pydantic import BaseModel, Field

from aeo_audit.models import AuditResponse

__all__ = ["AuditRequest", "AuditResponse", "ErrorResponse", "HealthResponse"]


# =============================================================================
# Request Schemas (what clients send to us)
# =============================================================================


class AuditRequest(BaseModel):
    """Request body for auditing a page."""

    url: str = Field(
        ...,
        min_length=1,
        max_length=2048,
        description="The page to audit. A missing scheme defaults to https://",
        examples=["https://example.com"],
    )


# =============================================================================
# Response Schemas (what we send back to clients)
# =============================================================================


class ErrorResponse(BaseModel):
    """Response for rejected requests."""

    detail: str


# =============================================================================
# Health Check
# =============================================================================


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str = "healthy"
    service: str = "aeo-audit"
    version: str = "0.1.0"
