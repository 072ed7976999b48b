"""
Prompt version models.

A PromptVersion is one immutable, identified instruction template plus its
sampling configuration. Versions of the same prompt id are ordered by
semantic-version comparison (see parse_semver).
"""

import re
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SEMVER_PATTERN = re.compile(r"^\d+(\.\d+){0,2}$")


def parse_semver(version: str) -> tuple[int, int, int]:
    """
    Parse a MAJOR[.MINOR[.PATCH]] string into a comparable tuple.

    Missing parts count as zero, so "2" == "2.0" == "2.0.0".

    Raises:
        ValueError: If the string is not a numeric semantic version
    """
    if not SEMVER_PATTERN.match(version):
        raise ValueError(f"Invalid semantic version: {version!r}")
    parts = [int(p) for p in version.split(".")]
    while len(parts) < 3:
        parts.append(0)
    return parts[0], parts[1], parts[2]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PromptExample(BaseModel):
    """Worked example shipped with a prompt (few-shot material)."""

    model_config = ConfigDict(frozen=True)

    input: str
    output: str
    explanation: Optional[str] = None


class HallucinationGuardrails(BaseModel):
    """
    Guardrail set attached to a prompt.

    These are instructions and flags consumed when the prompt is authored and
    rendered; the runtime hallucination check lives in the output validator.
    """

    model_config = ConfigDict(frozen=True)

    source_references: bool = False
    chain_of_thought: bool = False
    few_shot_examples: int = Field(default=0, ge=0)
    constraints: list[str] = Field(default_factory=list)
    self_review: bool = False
    confidence_scoring: bool = False
    negations: list[str] = Field(default_factory=list)


class PromptVersion(BaseModel):
    """
    Immutable-once-published prompt version.

    Only the registry derives changed copies (re-registration or setting
    retired_at); callers never mutate an instance.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Prompt family identifier")
    version: str = Field(..., description="Semantic version (MAJOR[.MINOR[.PATCH]])")
    description: str = ""
    model: str = Field(..., min_length=1, description="Target model identifier")
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    seed: Optional[int] = None
    max_tokens: int = Field(default=2048, ge=1)
    system_prompt: str = ""
    user_prompt_template: str = Field(..., description="Jinja2 template with {{ name }} placeholders")
    output_schema: Optional[dict[str, Any]] = Field(
        default=None, description="JSON Schema the raw result must satisfy"
    )
    examples: list[PromptExample] = Field(default_factory=list)
    guardrails: Optional[HallucinationGuardrails] = None
    tags: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    modified_at: datetime = Field(default_factory=_utcnow)
    retired_at: Optional[datetime] = None

    @field_validator("version")
    @classmethod
    def validate_semver(cls, v: str) -> str:
        parse_semver(v)
        return v

    @property
    def semver(self) -> tuple[int, int, int]:
        return parse_semver(self.version)

    @property
    def is_retired(self) -> bool:
        return self.retired_at is not None

    def __str__(self) -> str:
        return f"{self.id}@{self.version}"
