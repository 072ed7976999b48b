"""
Completion client abstraction and implementations.

Components:
- BaseCompletionClient: Abstract base class for completion clients
- OllamaCompletionClient: httpx implementation for an Ollama server
- PromptRenderer: Renders user messages from prompt templates
- exceptions: Completion-specific exceptions
"""

from llm_safety.llm.base_client import BaseCompletionClient
from llm_safety.llm.exceptions import (
    CompletionAuthenticationError,
    CompletionConnectionError,
    CompletionError,
    CompletionRateLimitError,
    CompletionRequestError,
    CompletionServiceUnavailableError,
    CompletionTimeoutError,
    PromptRenderError,
)
from llm_safety.llm.ollama_client import OllamaCompletionClient
from llm_safety.llm.prompt_renderer import PromptRenderer

__all__ = [
    "BaseCompletionClient",
    "OllamaCompletionClient",
    "PromptRenderer",
    "CompletionError",
    "CompletionConnectionError",
    "CompletionTimeoutError",
    "CompletionRateLimitError",
    "CompletionServiceUnavailableError",
    "CompletionAuthenticationError",
    "CompletionRequestError",
    "PromptRenderError",
]
