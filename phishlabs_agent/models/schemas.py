from pydantic import BaseModel, ConfigDict, Field, StrictBool, model_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime, timezone
from enum import Enum

CASE_TYPE_PHISHING = "Phishing"

class CamelModel(BaseModel):
    """Base model that reads and writes lower camel case keys on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Schemas for the public incident endpoint ---

class IncidentRequest(CamelModel):
    """
    A phishing report as submitted by the end user.
    Length and format rules are checked by services.validator, not here,
    so that every violation can be reported at once.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    url: Optional[str] = Field(default="", description="The suspicious URL being reported.")
    details: Optional[str] = Field(default=None, description="Optional free-text details, up to 1000 characters.")

class IncidentResponse(CamelModel):
    success: bool
    correlation_id: str
    message: str
    error_details: Optional[str] = None

    @model_validator(mode='after')
    def check_error_details(self) -> 'IncidentResponse':
        if self.success and self.error_details is not None:
            raise ValueError("error_details must be empty on a successful response")
        return self

class ViolationKind(str, Enum):
    REQUIRED_FIELD = "RequiredField"
    INVALID_FORMAT = "InvalidFormat"
    TOO_LONG = "TooLong"

class FieldViolation(CamelModel):
    field: str
    kind: ViolationKind
    message: str

class ValidationErrorResponse(IncidentResponse):
    field_errors: List[FieldViolation] = []

class HealthResponse(BaseModel):
    status: str = "healthy"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# --- Schemas for the PhishLabs case API ---

class UpstreamRequest(CamelModel):
    """Body of the case-creation call sent to PhishLabs."""
    case_type: str = CASE_TYPE_PHISHING
    url: str
    description: Optional[str] = None
    source: str
    timestamp: datetime

class UpstreamResponse(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='ignore')

    success: StrictBool = False
    case_id: Optional[str] = None
    incident_id: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None

    @property
    def reference(self) -> Optional[str]:
        return self.case_id or self.incident_id
