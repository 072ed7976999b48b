"""
Layer 0: JSON parse.

Turns the raw completion text into a Python dict. Models frequently wrap
JSON in markdown fences; those are stripped before parsing. Any failure here
is a hard failure.
"""

import copy
import json
import re
from typing import Any

import structlog

from llm_safety.monitoring.metrics import validation_failures_total
from llm_safety.validation.exceptions import JSONParseError

logger = structlog.get_logger(__name__)

_FENCE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?```$", re.DOTALL)


def strip_markdown_fences(content: str) -> str:
    """Return the body of a fenced block, or the stripped input if unfenced."""
    text = content.strip()
    match = _FENCE.match(text)
    return match.group(1).strip() if match else text


class JSONParseLayer:
    """
    Parse layer: raw text (or an already-decoded dict) -> dict.

    Dicts are deep-copied so later layers never touch the caller's object.
    """

    def parse(self, output: Any) -> dict:
        """
        Raises:
            JSONParseError: Empty content, malformed JSON, or not an object
        """
        if isinstance(output, dict):
            return copy.deepcopy(output)

        if not isinstance(output, str):
            validation_failures_total.labels(layer="parse", error_type="unsupported_type").inc()
            raise JSONParseError(
                f"Output is neither text nor a JSON object (got {type(output).__name__})",
                parse_error=f"Unsupported type {type(output).__name__}",
            )

        if not output.strip():
            validation_failures_total.labels(layer="parse", error_type="empty_content").inc()
            raise JSONParseError(
                "Output is empty or whitespace-only",
                raw_content=output,
                parse_error="Empty content",
            )

        try:
            parsed = json.loads(strip_markdown_fences(output))
        except json.JSONDecodeError as e:
            validation_failures_total.labels(layer="parse", error_type="json_decode_error").inc()
            raise JSONParseError(
                f"Output is not valid JSON: {e.msg}",
                raw_content=output,
                parse_error=f"{e.msg} at line {e.lineno} col {e.colno}",
            ) from e

        if not isinstance(parsed, dict):
            validation_failures_total.labels(layer="parse", error_type="not_json_object").inc()
            raise JSONParseError(
                f"Output is not a JSON object (got {type(parsed).__name__})",
                raw_content=output,
                parse_error=f"Expected dict, got {type(parsed).__name__}",
            )

        logger.debug("Parsed output", top_level_keys=len(parsed))
        return parsed
