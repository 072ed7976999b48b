"""
Custom exceptions for the completion client layer.

Each exception carries a machine-readable ``code`` and, where the failure
came from an HTTP-like service, a ``status_code``. The retry classifier reads
both to separate transient failures (retried with backoff) from terminal
ones (sent straight to the fallback chain).
"""

from typing import Any, Optional


class CompletionError(Exception):
    """
    Base exception for all completion client errors.

    All completion-specific exceptions inherit from this to allow catching
    any service-related error with a single except clause.
    """

    default_code: str = "COMPLETION_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.status_code = status_code
        self.details = details or {}

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"[{self.code} {self.status_code}] {self.message}"
        return f"[{self.code}] {self.message}"


class CompletionConnectionError(CompletionError):
    """
    Unable to reach the completion service (DNS, refused connection, reset).

    Transient: retried with backoff.
    """

    default_code = "CONNECTION_ERROR"


class CompletionTimeoutError(CompletionConnectionError):
    """
    The call exceeded its timeout.

    Separate from generic connection errors so callers can tell them apart.
    """

    default_code = "TIMEOUT"


class CompletionRateLimitError(CompletionError):
    """The service rate-limited the request (HTTP 429). Transient."""

    default_code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, message: str, retry_after_s: Optional[float] = None, **kwargs):
        kwargs.setdefault("status_code", 429)
        super().__init__(message, **kwargs)
        self.retry_after_s = retry_after_s


class CompletionServiceUnavailableError(CompletionError):
    """The service reported itself unavailable (HTTP 5xx). Transient."""

    default_code = "SERVICE_UNAVAILABLE"

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("status_code", 503)
        super().__init__(message, **kwargs)


class CompletionAuthenticationError(CompletionError):
    """Credentials rejected (HTTP 401/403). Terminal: never retried."""

    default_code = "AUTHENTICATION_FAILED"

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("status_code", 401)
        super().__init__(message, **kwargs)


class CompletionRequestError(CompletionError):
    """Malformed request rejected by the service (HTTP 4xx). Terminal."""

    default_code = "INVALID_REQUEST"

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("status_code", 400)
        super().__init__(message, **kwargs)


class PromptRenderError(CompletionError):
    """
    The user-message template could not be rendered from the input
    (missing placeholder, template syntax error). Terminal.
    """

    default_code = "PROMPT_RENDER_FAILED"
