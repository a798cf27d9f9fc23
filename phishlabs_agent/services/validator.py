from typing import List, Optional
from urllib.parse import urlsplit

from phishlabs_agent.models.schemas import IncidentRequest, FieldViolation, ViolationKind
from phishlabs_agent.services.sanitizer import sanitize_url

MAX_URL_LENGTH = 2048
MAX_DETAILS_LENGTH = 1000
ALLOWED_URL_SCHEMES = ("http", "https", "ftp")

def is_absolute_url(value: str) -> bool:
    """True when value has an allowed scheme and a host, e.g. https://example.com/path."""
    try:
        parts = urlsplit(value)
        hostname = parts.hostname
    except ValueError:
        # e.g. an unbalanced IPv6 bracket or a bad port
        return False
    if parts.scheme.lower() not in ALLOWED_URL_SCHEMES:
        return False
    if not hostname:
        return False
    return not any(ch.isspace() for ch in value)

def _validate_url(url: Optional[str]) -> List[FieldViolation]:
    if not url or not url.strip():
        return [FieldViolation(field="url", kind=ViolationKind.REQUIRED_FIELD, message="URL is required")]

    violations = []
    # line breaks from a wrapped link are stripped before submission, so ignore them here
    if not is_absolute_url(sanitize_url(url)):
        violations.append(FieldViolation(field="url", kind=ViolationKind.INVALID_FORMAT, message="Please enter a valid URL"))
    if len(url) > MAX_URL_LENGTH:
        violations.append(FieldViolation(
            field="url", kind=ViolationKind.TOO_LONG,
            message=f"URL cannot exceed {MAX_URL_LENGTH} characters",
        ))
    return violations

def _validate_details(details: Optional[str]) -> List[FieldViolation]:
    if details and len(details) > MAX_DETAILS_LENGTH:
        return [FieldViolation(
            field="details", kind=ViolationKind.TOO_LONG,
            message=f"Details cannot exceed {MAX_DETAILS_LENGTH} characters",
        )]
    return []

def validate_incident_request(request: IncidentRequest) -> List[FieldViolation]:
    """
    Checks a report before anything is sent upstream.
    Returns every field violation found; an empty list means the request is valid.
    """
    return _validate_url(request.url) + _validate_details(request.details)
