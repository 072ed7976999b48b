"""
Output validator: layered validation orchestrator.

Coordinates the layers in order, short-circuiting on the first hard failure:
- Layer 0: JSON parse (hard fail)
- Layer 1: Schema (hard fail, confidence 0)
- Layer 2: Semantic heuristics (warnings)
- Layer 3: Hallucination detection against a source schema (warnings)

Hard failures are returned as an invalid ValidationResult; the validator
itself never raises for a bad result. The caller's object is never mutated:
every layer works on a deep copy.
"""

import json
import threading
from typing import Any, Optional

import structlog
from pydantic import BaseModel, Field

from llm_safety.models.enums import ValidationLayer
from llm_safety.validation.exceptions import JSONParseError
from llm_safety.validation.schema_types import SchemaNode, compile_schema
from llm_safety.validation.stage1_json_parse import JSONParseLayer
from llm_safety.validation.stage2_schema import SchemaChecker
from llm_safety.validation.stage3_semantic import SemanticLayer, SemanticRule
from llm_safety.validation.stage4_hallucination import HallucinationLayer

logger = structlog.get_logger(__name__)


class ValidationIssue(BaseModel):
    layer: ValidationLayer
    message: str
    path: Optional[str] = None
    suggestion: Optional[str] = None


class ValidationResult(BaseModel):
    """
    Classification of one raw result.

    output is the parsed (deep-copied) result when valid, None otherwise.
    """

    valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)
    hallucinations: list[str] = Field(default_factory=list)
    output: Optional[dict[str, Any]] = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class OutputValidator:
    """
    Validates completion results against a prompt's output schema.

    Compiled schemas are cached by their canonical JSON form.
    """

    def __init__(
        self,
        warning_penalty: float = 0.1,
        min_confidence: float = 0.1,
        rules: Optional[tuple[SemanticRule, ...]] = None,
    ):
        """
        Args:
            warning_penalty: Confidence deducted per warning
            min_confidence: Confidence floor for a valid result with warnings
            rules: Semantic rules (defaults to the standard rule list)
        """
        self.warning_penalty = warning_penalty
        self.min_confidence = min_confidence

        self.parse_layer = JSONParseLayer()
        self.schema_checker = SchemaChecker()
        self.semantic_layer = SemanticLayer(rules)
        self.hallucination_layer = HallucinationLayer()

        self._compiled: dict[str, SchemaNode] = {}
        self._lock = threading.Lock()

    def compile(self, schema: dict[str, Any]) -> SchemaNode:
        """
        Compile (or fetch from cache) a JSON-schema dict.

        Raises:
            SchemaDefinitionError: The schema is malformed
        """
        key = json.dumps(schema, sort_keys=True, default=str)
        with self._lock:
            cached = self._compiled.get(key)
        if cached is not None:
            return cached
        node = compile_schema(schema)
        with self._lock:
            self._compiled[key] = node
        return node

    def validate(
        self,
        output: Any,
        schema: Optional[dict[str, Any]] = None,
        source_schema: Optional[dict[str, Any]] = None,
    ) -> ValidationResult:
        """
        Run every layer over a raw result.

        Args:
            output: Raw text or an already-decoded dict
            schema: Output schema (schema layer skipped when None)
            source_schema: Schema whose declared properties license the
                result's properties (hallucination layer skipped when None)

        Raises:
            SchemaDefinitionError: ``schema`` itself is malformed
        """
        try:
            parsed = self.parse_layer.parse(output)
        except JSONParseError as e:
            logger.info("Output rejected at parse layer", error=e.message)
            return ValidationResult(
                valid=False,
                errors=[
                    ValidationIssue(
                        layer=ValidationLayer.PARSE,
                        message=e.message,
                        suggestion="Check that output is properly formatted JSON",
                    )
                ],
                confidence=0.0,
            )

        node = self.compile(schema) if schema else None

        if node is not None:
            issues = self.schema_checker.check(parsed, node)
            if issues:
                logger.info("Output rejected at schema layer", issues=len(issues))
                return ValidationResult(
                    valid=False,
                    errors=[
                        ValidationIssue(
                            layer=ValidationLayer.SCHEMA,
                            message=issue.message,
                            path=issue.path or None,
                            suggestion=issue.suggestion,
                        )
                        for issue in issues
                    ],
                    confidence=0.0,
                )

        warnings = [
            ValidationIssue(layer=ValidationLayer.SEMANTIC, message=w.message, path=w.path)
            for w in self.semantic_layer.scan(parsed, node)
        ]

        hallucinations = self.hallucination_layer.detect(parsed, source_schema)
        warnings.extend(
            ValidationIssue(
                layer=ValidationLayer.HALLUCINATION,
                message=f"Property {path} is not declared by the source schema",
                path=path,
                suggestion=f"Remove {path} or add it to the source schema",
            )
            for path in hallucinations
        )

        result = ValidationResult(
            valid=True,
            warnings=warnings,
            hallucinations=hallucinations,
            output=parsed,
            confidence=self._confidence(len(warnings)),
        )
        logger.debug(
            "Output validated",
            warnings=len(warnings),
            hallucinations=len(hallucinations),
            confidence=result.confidence,
        )
        return result

    def detect_hallucinations(self, output: Any, source_schema: Optional[dict[str, Any]]) -> list[str]:
        return self.hallucination_layer.detect(output, source_schema)

    def score_output(self, result: ValidationResult) -> float:
        """Quality score for an externally held result: 0 if invalid."""
        if not result.valid:
            return 0.0
        return self._confidence(len(result.warnings))

    def _confidence(self, warning_count: int) -> float:
        if warning_count == 0:
            return 1.0
        return round(max(1.0 - self.warning_penalty * warning_count, self.min_confidence), 6)
