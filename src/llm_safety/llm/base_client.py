"""
Abstract base client for the completion service.

Defines the interface the orchestrator and fallback tiers call. Concrete
transports (HTTP, gRPC, SDKs) are injected collaborators; swapping one does
not touch the retry, validation or fallback logic.
"""

from abc import ABC, abstractmethod

import structlog

from llm_safety.models.llm_models import CompletionRequest, CompletionResponse
from llm_safety.models.prompt_version import PromptVersion

logger = structlog.get_logger(__name__)


class BaseCompletionClient(ABC):
    """
    Abstract base class for completion clients.

    Responsibilities:
    - Send one completion request for a prompt version
    - Return the raw text plus whatever usage metadata the service reports
    - Raise CompletionError subclasses with a code/status the retry
      classifier can read

    Does NOT handle:
    - Template rendering (that's PromptRenderer's job)
    - Output validation (that's OutputValidator's job)
    - Retries, breaker or fallback (that's the orchestrator's job)
    """

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """
        Execute one completion request.

        Raises:
            CompletionError: Any service failure, classified by code/status
        """

    async def call(self, prompt: PromptVersion, rendered_input: str) -> CompletionResponse:
        """
        Invoke the service for a prompt version and an already-rendered
        user message.

        Builds a CompletionRequest from the prompt's sampling parameters and
        delegates to complete().
        """
        request = CompletionRequest(
            system_prompt=prompt.system_prompt,
            prompt=rendered_input,
            model=prompt.model,
            temperature=prompt.temperature,
            max_tokens=prompt.max_tokens,
            top_p=prompt.top_p,
            seed=prompt.seed,
            format_schema=prompt.output_schema,
        )
        logger.debug(
            "Dispatching completion request",
            client_class=self.__class__.__name__,
            prompt=str(prompt),
            model=prompt.model,
            temperature=prompt.temperature,
        )
        return await self.complete(request)

    async def health_check(self) -> bool:
        """
        Lightweight reachability check. Must not raise; return False on error.

        Default implementation is optimistic.
        """
        return True

    async def close(self) -> None:
        """Release connections. Default implementation does nothing."""
        logger.debug("Closing completion client", client_class=self.__class__.__name__)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
