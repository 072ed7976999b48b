"""
Completion-service data models for the request/response cycle.

These models are internal to the completion layer and keep the raw
communication with the service separate from the validated business result.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CompletionRequest(BaseModel):
    """
    Standardized request sent to a concrete completion client.

    Built from a PromptVersion plus the rendered user message.
    """
    model_config = ConfigDict(frozen=True)

    system_prompt: str = Field(default="", description="System instruction block")
    prompt: str = Field(..., description="Rendered user message")
    model: str = Field(..., description="Model name/identifier")
    temperature: float = Field(default=0.1, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: int = Field(default=2048, ge=1, description="Maximum tokens to generate")
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0, description="Nucleus sampling parameter")
    seed: Optional[int] = Field(default=None, description="Random seed for reproducibility")
    format_schema: Optional[Dict[str, Any]] = Field(
        default=None,
        description="JSON Schema for structured output constraint"
    )


class CompletionResponse(BaseModel):
    """
    Raw result of one completion call.

    Token counts are optional: when the service does not report them the
    orchestrator estimates them from the content length.
    """
    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Generated text (typically JSON string)")
    model: str = Field(..., description="Model that produced the content")
    prompt_tokens: Optional[int] = Field(default=None, ge=0)
    completion_tokens: Optional[int] = Field(default=None, ge=0)
    latency_ms: int = Field(default=0, ge=0, description="Service latency in milliseconds")
    raw_metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def total_tokens(self) -> Optional[int]:
        if self.prompt_tokens is None and self.completion_tokens is None:
            return None
        return (self.prompt_tokens or 0) + (self.completion_tokens or 0)
