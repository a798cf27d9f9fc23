import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

import httpx
from pydantic import ValidationError

from phishlabs_agent.config.settings import Settings
from phishlabs_agent.models.schemas import IncidentRequest, IncidentResponse, UpstreamRequest, UpstreamResponse
from phishlabs_agent.models.results import FailureKind, SubmissionFailure, SubmissionResult, SubmissionSuccess
from phishlabs_agent.services.sanitizer import sanitize_url, sanitize_details, url_fingerprint, redact_url

SUCCESS_MESSAGE = "Thanks, we received your report and are investigating. If this affects your account, we'll contact you."
FAILURE_MESSAGE = "Something went wrong, please try again. If it keeps failing, contact support."

CORRELATION_HEADER = "X-Correlation-ID"
MAX_ERROR_BODY_CHARS = 500


def _describe(error: Exception) -> str:
    return str(error) or type(error).__name__


class ContractViolation(ValueError):
    """Raised when the submitter is called with arguments no caller should ever pass."""


class UpstreamCancelled(Exception):
    pass


class PhishLabsService:
    """
    Forwards phishing reports to the PhishLabs case API.

    One instance owns one httpx.AsyncClient configured from the settings and is
    shared across concurrent requests; nothing per-call is stored on it.
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
        logger: Optional[logging.Logger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.logger = logger or logging.getLogger(__name__)
        self.endpoint = settings.service_path.lstrip("/")
        self._owns_client = client is None
        self.client = client or self._build_client(transport)

    def _build_client(self, transport: Optional[httpx.AsyncBaseTransport]) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=transport,
            base_url=self.settings.api_base_url,
            timeout=float(self.settings.timeout_seconds),
            headers={
                "Authorization": f"Bearer {self.settings.api_key}",
                "User-Agent": self.settings.user_agent,
                "Accept": "application/json",
            },
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def submit_incident(
        self,
        request: IncidentRequest,
        correlation_id: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> IncidentResponse:
        """
        Submits one report and returns a response that is safe to show to the user.

        Network errors, upstream rejections and unreadable responses all come back
        as a failure-shaped IncidentResponse. Only a missing request or a blank
        correlation id raises (ContractViolation).
        """
        if request is None:
            raise ContractViolation("request is required")
        if correlation_id is None or not correlation_id.strip():
            raise ContractViolation("Correlation ID is required")

        self.logger.info(
            f"Submitting PhishLabs incident. CorrelationId: {correlation_id}, URL: {url_fingerprint(request.url)}"
        )

        try:
            upstream_request = UpstreamRequest(
                url=sanitize_url(request.url),
                description=sanitize_details(request.details),
                source=self.settings.source,
                timestamp=datetime.now(timezone.utc),
            )
            result = await self._send(upstream_request, correlation_id, cancel_event)
        except Exception as e:
            self.logger.error(f"Error submitting PhishLabs incident. CorrelationId: {correlation_id}", exc_info=True)
            result = SubmissionFailure(kind=FailureKind.UNEXPECTED, detail=_describe(e))

        return self._to_response(result, correlation_id, request.url)

    def _to_response(self, result: SubmissionResult, correlation_id: str, reported_url: Optional[str]) -> IncidentResponse:
        if isinstance(result, SubmissionSuccess):
            self.logger.info(
                f"PhishLabs incident submitted successfully. CorrelationId: {correlation_id}, CaseId: {result.reference}"
            )
            return IncidentResponse(success=True, correlation_id=correlation_id, message=SUCCESS_MESSAGE)

        self.logger.warning(
            f"PhishLabs incident submission failed. CorrelationId: {correlation_id}, "
            f"Kind: {result.kind.value}, Status: {result.status_code}"
        )
        # upstream bodies and exception text may echo the reported URL
        self.logger.debug(
            f"PhishLabs failure detail. CorrelationId: {correlation_id}, Detail: {redact_url(result.detail, reported_url)}"
        )
        return IncidentResponse(
            success=False,
            correlation_id=correlation_id,
            message=FAILURE_MESSAGE,
            error_details=result.detail,
        )

    async def _send(
        self,
        upstream_request: UpstreamRequest,
        correlation_id: str,
        cancel_event: Optional[asyncio.Event],
    ) -> SubmissionResult:
        """Makes exactly one POST and classifies what came back."""
        payload = upstream_request.model_dump(mode="json", by_alias=True)
        try:
            # httpx timeouts apply per connect/read/write; this bounds the whole call
            response = await asyncio.wait_for(
                self._post(payload, correlation_id, cancel_event),
                timeout=self.settings.timeout_seconds,
            )
        except asyncio.TimeoutError:
            return SubmissionFailure(
                kind=FailureKind.TRANSPORT,
                detail=f"Upstream request timed out: no complete response within {self.settings.timeout_seconds}s",
            )
        except httpx.TimeoutException as e:
            return SubmissionFailure(kind=FailureKind.TRANSPORT, detail=f"Upstream request timed out: {_describe(e)}")
        except httpx.RequestError as e:
            return SubmissionFailure(kind=FailureKind.TRANSPORT, detail=f"Upstream service unreachable: {_describe(e)}")
        except UpstreamCancelled:
            return SubmissionFailure(kind=FailureKind.TRANSPORT, detail="Upstream request was cancelled")

        if not response.is_success:
            body = response.text[:MAX_ERROR_BODY_CHARS]
            return SubmissionFailure(
                kind=FailureKind.UPSTREAM_REJECTION,
                detail=f"HTTP {response.status_code}: {body}",
                status_code=response.status_code,
            )

        try:
            api_response = UpstreamResponse.model_validate_json(response.content)
        except ValidationError as e:
            return SubmissionFailure(
                kind=FailureKind.RESPONSE_FORMAT,
                detail=f"Invalid response format: {e.error_count()} error(s) parsing upstream body",
            )

        if not api_response.success:
            return SubmissionFailure(
                kind=FailureKind.UPSTREAM_REJECTION,
                detail=api_response.error or "Upstream reported failure",
                status_code=response.status_code,
            )
        return SubmissionSuccess(reference=api_response.reference, message=api_response.message)

    async def _post(self, payload: dict, correlation_id: str, cancel_event: Optional[asyncio.Event]) -> httpx.Response:
        post = self.client.post(self.endpoint, json=payload, headers={CORRELATION_HEADER: correlation_id})
        if cancel_event is None:
            return await post

        post_task = asyncio.ensure_future(post)
        cancel_task = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait({post_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel_task.cancel()
            if not post_task.done():
                post_task.cancel()

        if post_task in done:
            return post_task.result()
        try:
            await post_task
        except asyncio.CancelledError:
            pass
        raise UpstreamCancelled()
