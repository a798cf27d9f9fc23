"""Outcome of a single call to the PhishLabs case API.

The submitter returns one of these instead of letting network and parse
errors travel up as exceptions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class FailureKind(str, Enum):
    TRANSPORT = "transport"
    UPSTREAM_REJECTION = "upstream_rejection"
    RESPONSE_FORMAT = "response_format"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class SubmissionSuccess:
    reference: Optional[str] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class SubmissionFailure:
    kind: FailureKind
    detail: str
    status_code: Optional[int] = None


SubmissionResult = Union[SubmissionSuccess, SubmissionFailure]
