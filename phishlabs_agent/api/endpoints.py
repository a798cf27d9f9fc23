import asyncio
import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from phishlabs_agent.models.schemas import (
    IncidentRequest, IncidentResponse, ValidationErrorResponse, FieldViolation, HealthResponse
)
from phishlabs_agent.services.phishlabs_service import PhishLabsService, FAILURE_MESSAGE
from phishlabs_agent.services.validator import validate_incident_request
from phishlabs_agent.services.sanitizer import client_fingerprint

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/phishlabs", tags=["PhishLabs"])

VALIDATION_MESSAGE = "Please check your input and try again."
DISCONNECT_POLL_SECONDS = 0.5

def new_correlation_id() -> str:
    return uuid.uuid4().hex[:12]

async def watch_for_disconnect(request: Request, cancel_event: asyncio.Event, interval: float = DISCONNECT_POLL_SECONDS) -> None:
    """Sets cancel_event once the client has gone away, so the upstream call is abandoned."""
    while not cancel_event.is_set():
        if await request.is_disconnected():
            cancel_event.set()
            return
        await asyncio.sleep(interval)

def get_phishlabs_service(request: Request) -> PhishLabsService:
    """FastAPI dependency returning the service built at startup."""
    service = getattr(request.app.state, "phishlabs_service", None)
    if service is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="PhishLabs integration is not initialized.")
    return service

def validation_error_response(correlation_id: str, violations: List[FieldViolation]) -> JSONResponse:
    body = ValidationErrorResponse(
        success=False,
        correlation_id=correlation_id,
        message=VALIDATION_MESSAGE,
        error_details=", ".join(v.message for v in violations),
        field_errors=violations,
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump(mode="json", by_alias=True))

def _client_facing(response: IncidentResponse, service: PhishLabsService) -> IncidentResponse:
    # errorDetails may carry upstream bodies or exception text; clients only get it when enabled
    if response.success or service.settings.expose_error_details:
        return response
    return response.model_copy(update={"error_details": None})

@router.post("/incidents", response_model=IncidentResponse, responses={400: {"model": ValidationErrorResponse}, 500: {"model": IncidentResponse}})
async def submit_incident(
    payload: IncidentRequest,
    request: Request,
    service: PhishLabsService = Depends(get_phishlabs_service),
):
    """
    Accepts a phishing report from an end user and forwards it to PhishLabs.
    Returns 200 on success, 400 when the input is invalid and 500 when the submission failed.
    """
    correlation_id = new_correlation_id()
    client_host = request.client.host if request.client else None

    logger.info(f"PhishLabs incident submission started. CorrelationId: {correlation_id}, ClientIP: {client_fingerprint(client_host)}")

    violations = validate_incident_request(payload)
    if violations:
        logger.warning(
            f"Invalid PhishLabs incident request. CorrelationId: {correlation_id}, "
            f"Errors: {', '.join(v.message for v in violations)}"
        )
        return validation_error_response(correlation_id, violations)

    cancel_event = asyncio.Event()
    watcher = asyncio.ensure_future(watch_for_disconnect(request, cancel_event))
    try:
        response = await service.submit_incident(payload, correlation_id, cancel_event=cancel_event)
    except Exception:
        logger.error(f"Unexpected error in PhishLabs incident submission. CorrelationId: {correlation_id}", exc_info=True)
        body = IncidentResponse(
            success=False, correlation_id=correlation_id, message=FAILURE_MESSAGE, error_details="Internal server error"
        )
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body.model_dump(mode="json", by_alias=True))
    finally:
        watcher.cancel()

    if response.success:
        logger.info(f"PhishLabs incident submitted successfully. CorrelationId: {correlation_id}")
        return response

    logger.warning(f"PhishLabs incident submission failed. CorrelationId: {correlation_id}")
    body = _client_facing(response, service)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body.model_dump(mode="json", by_alias=True))

@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def healthcheck():
    """Liveness check for the PhishLabs integration."""
    return HealthResponse()
