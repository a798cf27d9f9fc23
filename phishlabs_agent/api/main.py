import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from phishlabs_agent.api.endpoints import router as api_router, new_correlation_id, validation_error_response
from phishlabs_agent.config.logging_config import configure_logging
from phishlabs_agent.config.settings import ServerSettings, get_settings
from phishlabs_agent.models.schemas import FieldViolation, ViolationKind
from phishlabs_agent.services.phishlabs_service import PhishLabsService

logger = logging.getLogger(__name__)

app = FastAPI(
    title="PhishLabs Agent API",
    description="API for relaying end-user phishing reports to the PhishLabs incident service.",
    version="1.0.0",
)

server_settings = ServerSettings()

app.add_middleware(
    CORSMiddleware,
    allow_origins=server_settings.allowed_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Answers unparseable bodies in the same shape as field validation failures."""
    correlation_id = new_correlation_id()
    violations = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        violations.append(FieldViolation(
            field=".".join(loc) or "body",
            kind=ViolationKind.INVALID_FORMAT,
            message=error.get("msg", "Invalid value"),
        ))
    logger.warning(f"Unreadable PhishLabs incident request. CorrelationId: {correlation_id}, Errors: {len(violations)}")
    return validation_error_response(correlation_id, violations)

@app.on_event("startup")
async def startup_event():
    """Loads settings and builds the shared PhishLabs client."""
    try:
        settings = get_settings()
    except ValidationError as e:
        logger.critical(f"FATAL: PhishLabs settings are missing or invalid: {e}")
        raise RuntimeError("PHISHLABS_API_BASE_URL, PHISHLABS_API_KEY and PHISHLABS_SERVICE_PATH must be set.") from e

    configure_logging(settings.log_level)
    logger.info(
        f"PhishLabs agent starting. Timeout: {settings.timeout_seconds}s, "
        f"MaxRetries: {settings.max_retries} (not applied), RateLimitPerMinute: {settings.rate_limit_per_minute} (not applied)"
    )
    app.state.phishlabs_service = PhishLabsService(settings)

@app.on_event("shutdown")
async def shutdown_event():
    service = getattr(app.state, "phishlabs_service", None)
    if service is not None:
        await service.aclose()

app.include_router(api_router)

def run():
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "phishlabs_agent.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
    )

if __name__ == "__main__":
    run()
