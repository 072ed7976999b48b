"""
Ollama completion client.

Talks to the Ollama HTTP API with an httpx AsyncClient. Supports:
- JSON output format (basic)
- Structured output via JSON Schema (format parameter)
- Connection pooling through a persistent AsyncClient
- Health checks

Retries are NOT done here: every failure is translated into a
CompletionError carrying a code/status and handed back to the retry layer.
"""

import time
from typing import Any, Dict, Optional

import httpx
import structlog

from llm_safety.llm.base_client import BaseCompletionClient
from llm_safety.llm.exceptions import (
    CompletionAuthenticationError,
    CompletionConnectionError,
    CompletionError,
    CompletionRateLimitError,
    CompletionRequestError,
    CompletionServiceUnavailableError,
    CompletionTimeoutError,
)
from llm_safety.models.llm_models import CompletionRequest, CompletionResponse

logger = structlog.get_logger(__name__)


def _retry_after(response: httpx.Response) -> Optional[float]:
    value = response.headers.get("retry-after")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def error_from_status(response: httpx.Response) -> CompletionError:
    """
    Translate a non-2xx response into the CompletionError hierarchy.

    429 -> rate limit, 401/403 -> authentication, other 4xx and 501 ->
    malformed request (terminal), remaining 5xx -> service unavailable.
    """
    status = response.status_code
    details = {"status": status, "error": response.text[:500]}

    if status == 429:
        return CompletionRateLimitError(
            "Rate limited by completion service",
            retry_after_s=_retry_after(response),
            details=details,
        )
    if status in (401, 403):
        return CompletionAuthenticationError(
            f"Completion service rejected credentials: {status}",
            status_code=status,
            details=details,
        )
    if status >= 500 and status != 501:
        return CompletionServiceUnavailableError(
            f"Completion service error: {status}",
            status_code=status,
            details=details,
        )
    return CompletionRequestError(
        f"Completion service rejected request: {status}",
        status_code=status,
        details=details,
    )


class OllamaCompletionClient(BaseCompletionClient):
    """
    Ollama-specific completion client.

    API Endpoints:
    - POST /api/generate: Generate completion with optional format constraint
    - GET /api/tags: Reachability check
    """

    def __init__(
        self,
        base_url: str = "http://ollama:11434",
        timeout: float = 60,
        connection_limits: Optional[httpx.Limits] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Ollama server URL
            timeout: Request timeout in seconds
            connection_limits: httpx connection pool limits
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        if connection_limits is None:
            connection_limits = httpx.Limits(
                max_keepalive_connections=5,
                max_connections=10,
                keepalive_expiry=30.0,
            )
        self._connection_limits = connection_limits
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        logger.info("Ollama client initialized", base_url=self.base_url, timeout=timeout)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                limits=self._connection_limits,
                transport=self._transport,
                follow_redirects=True,
            )
            logger.debug("Created new httpx AsyncClient")
        return self._client

    def _build_payload(self, request: CompletionRequest) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "temperature": request.temperature,
            "num_predict": request.max_tokens,
        }
        if request.top_p is not None:
            options["top_p"] = request.top_p
        if request.seed is not None:
            options["seed"] = request.seed

        payload: Dict[str, Any] = {
            "model": request.model,
            "prompt": request.prompt,
            "stream": False,
            "options": options,
            # Ollama takes the schema object directly; "json" is plain JSON mode
            "format": request.format_schema or "json",
        }
        if request.system_prompt:
            payload["system"] = request.system_prompt
        return payload

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """
        POST /api/generate (non-streaming).

        Response fields used: response, model, prompt_eval_count, eval_count,
        total_duration.
        """
        start_time = time.monotonic()
        payload = self._build_payload(request)

        logger.debug(
            "Sending generation request to Ollama",
            model=request.model,
            prompt_length=len(request.prompt),
            has_schema=bool(request.format_schema),
        )

        try:
            client = await self._get_client()
            response = await client.post("/api/generate", json=payload)
        except httpx.TimeoutException as e:
            logger.warning("Ollama request timeout", timeout=self.timeout, error=str(e))
            raise CompletionTimeoutError(
                f"Request timeout after {self.timeout}s",
                details={"timeout": self.timeout},
            ) from e
        except httpx.RequestError as e:
            logger.warning("Ollama network error", error=str(e), error_type=type(e).__name__)
            raise CompletionConnectionError(
                f"Network error: {e}",
                details={"error_type": type(e).__name__},
            ) from e

        if response.is_error:
            error = error_from_status(response)
            logger.warning("Ollama HTTP error", status_code=response.status_code, code=error.code)
            raise error

        try:
            data = response.json()
        except ValueError as e:
            raise CompletionRequestError(
                "Invalid JSON response from Ollama",
                status_code=response.status_code,
                details={"parse_error": str(e)},
            ) from e

        latency_ms = int((time.monotonic() - start_time) * 1000)
        content = data.get("response", "")

        logger.info(
            "Ollama generation successful",
            model=data.get("model", request.model),
            latency_ms=latency_ms,
            prompt_tokens=data.get("prompt_eval_count"),
            completion_tokens=data.get("eval_count"),
        )

        return CompletionResponse(
            content=content,
            model=data.get("model", request.model),
            prompt_tokens=data.get("prompt_eval_count"),
            completion_tokens=data.get("eval_count"),
            latency_ms=latency_ms,
            raw_metadata={
                "total_duration": data.get("total_duration"),
                "done": data.get("done"),
            },
        )

    async def health_check(self) -> bool:
        """GET /api/tags; True if the server answers."""
        try:
            client = await self._get_client()
            response = await client.get("/api/tags", timeout=5.0)
            response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.warning("Ollama health check failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close the HTTP client connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed Ollama client connection")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __repr__(self) -> str:
        return f"OllamaCompletionClient(base_url={self.base_url!r})"
