"""
Validation-specific exceptions for the output validator.

Parse and schema failures are hard failures: the orchestrator treats them
exactly like a failed completion call and moves to the fallback chain.
Semantic and hallucination findings are warnings and never raise.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from llm_safety.validation.pipeline import ValidationResult


class ValidationError(Exception):
    """
    Base exception for all validation errors.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """
        Initialize validation error.

        Args:
            message: Human-readable error description
            details: Structured error data for logging/metrics
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class JSONParseError(ValidationError):
    """
    Layer 0: the raw result is not a JSON object.
    """

    def __init__(self, message: str, raw_content: str | None = None, parse_error: str | None = None):
        """
        Args:
            message: Error description
            raw_content: Malformed content (first 500 chars are kept)
            parse_error: Original json.JSONDecodeError message
        """
        details = {}
        if raw_content:
            details["content_snippet"] = raw_content[:500]
        if parse_error:
            details["parse_error"] = parse_error

        super().__init__(message, details)


class SchemaDefinitionError(ValidationError):
    """
    The output schema attached to a prompt is not a valid JSON Schema.

    A configuration error of the prompt, not of the completion result.
    """

    def __init__(self, message: str, schema_path: str | None = None):
        details = {"schema_path": schema_path} if schema_path else {}
        super().__init__(message, details)


class OutputValidationError(ValidationError):
    """
    Raised by the orchestrator when a completion result fails validation.

    Carries the full ValidationResult so the fallback path can report every
    issue.
    """

    def __init__(self, result: "ValidationResult", prompt_id: str | None = None):
        messages = [issue.message for issue in result.errors]
        summary = "; ".join(messages[:3]) or "output rejected"
        super().__init__(
            f"Output validation failed: {summary}",
            details={"prompt_id": prompt_id, "errors": messages},
        )
        self.result = result


class HallucinationError(ValidationError):
    """
    Raised by the orchestrator, when configured to do so, for a result that
    passed validation but carries properties the source schema never
    declared.
    """

    def __init__(self, paths: list[str], prompt_id: str | None = None):
        super().__init__(
            f"Hallucinated properties: {', '.join(paths)}",
            details={"prompt_id": prompt_id, "paths": paths},
        )
        self.paths = paths
