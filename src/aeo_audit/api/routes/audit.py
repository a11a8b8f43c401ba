"""Audit API endpoint."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from aeo_audit.api.schemas import AuditRequest, AuditResponse, ErrorResponse
from aeo_audit.errors import InputValidationError
from aeo_audit.service import AuditService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/audit", tags=["Audit"])


def get_audit_service(request: Request) -> AuditService:
    """Return the service created during application startup."""
    return request.app.state.audit_service


@router.post(
    "",
    response_model=AuditResponse,
    response_model_by_alias=True,
    summary="Audit a page",
    description="Fetch a page with its robots.txt and sitemap, run all five analyses and return the composite AEO score.",
    responses={status.HTTP_422_UNPROCESSABLE_ENTITY: {"model": ErrorResponse}},
)
async def audit_page(
    request: AuditRequest,
    service: AuditService = Depends(get_audit_service),
) -> AuditResponse:
    """
    Run a synchronous audit.

    A page that cannot be fetched still returns 200 with `success: false`
    and whatever analysis was possible. Only invalid URLs are rejected.
    """
    try:
        return await service.audit(request.url)
    except InputValidationError as e:
        logger.info(f"Rejected audit request for {request.url!r}: {e}")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )
