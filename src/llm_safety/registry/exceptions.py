"""
Exceptions for the prompt registry.
"""

from typing import Any, Optional


class PromptNotFoundError(Exception):
    """
    Unknown prompt id or version.

    A resolution error: fatal for the call, never retried and never sent
    to the fallback chain.
    """

    def __init__(
        self,
        prompt_id: str,
        version: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        target = f"{prompt_id}@{version}" if version else prompt_id
        self.message = f"Prompt not found: {target}"
        super().__init__(self.message)
        self.prompt_id = prompt_id
        self.version = version
        self.details = details or {}
