"""
Error taxonomy for the workbench pipelines.

Primary pipeline stages raise these; the HTTP layer turns them into a JSON
body with an ``error`` string and the matching status code. Secondary
(enrichment-only) stages catch them and degrade to an empty result.
"""
from typing import Any, Dict, Optional

from workbench.messages import RATE_LIMIT_DOCS_URL, render


class WorkbenchError(Exception):
    """Base class. ``message_key`` indexes workbench.messages.CATALOG."""

    status_code = 500
    message_key = "internal_error"

    def __init__(self, message_key: Optional[str] = None, detail: str = "", **params):
        if message_key:
            self.message_key = message_key
        self.detail = detail
        self.params = params
        super().__init__(detail or self.message_key)

    def message(self, locale: str = "pt") -> str:
        return render(self.message_key, locale, **self.params)

    def to_payload(self, locale: str = "pt") -> Dict[str, Any]:
        return {"error": self.message(locale)}


class Unconfigured(WorkbenchError):
    """API credential missing or still set to the placeholder value."""

    message_key = "unconfigured"

    def __init__(self, service: str):
        super().__init__(detail=f"{service} API key is not configured", service=service)
        self.service = service


class BadRequest(WorkbenchError):
    status_code = 400


class UpstreamError(WorkbenchError):
    """Non-2xx response from an external AI or agent call."""

    message_key = "upstream_error"

    def __init__(
        self,
        service: str,
        status: int,
        body: str = "",
        include_body: bool = False,
        context: str = "",
    ):
        if include_body:
            key = "upstream_error_with_body"
        else:
            key = f"upstream_error_{context}" if context else "upstream_error"
        super().__init__(
            key,
            detail=f"{service} returned HTTP {status}",
            service=service,
            status=status,
            body=body,
        )
        self.service = service
        self.status = status
        self.body = body
        self.status_code = status if 400 <= status <= 599 else 500


class RateLimited(WorkbenchError):
    """Retries exhausted while the upstream kept answering 429."""

    status_code = 429
    message_key = "rate_limited"

    def __init__(self, detail: str = "Rate limit exceeded. Please try again later.", retry_after: int = 60):
        super().__init__(detail=detail)
        self.retry_after = retry_after

    def to_payload(self, locale: str = "pt") -> Dict[str, Any]:
        return {"error": self.message(locale), "retryAfter": self.retry_after}


class QuotaExceeded(RateLimited):
    """The provider reported the daily quota as exhausted."""

    message_key = "quota_exceeded"

    def to_payload(self, locale: str = "pt") -> Dict[str, Any]:
        return {
            "error": self.message(locale),
            "details": render("quota_details", locale, url=RATE_LIMIT_DOCS_URL),
        }


class EmptyResponse(WorkbenchError):
    """The call succeeded but carried no usable text."""


class MalformedUpstreamJSON(WorkbenchError):
    message_key = "malformed_json"


class WorkflowSynthesisFailed(MalformedUpstreamJSON):
    """Workflow generation produced text that is not a JSON object."""
