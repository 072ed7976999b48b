"""
Layer 1: schema.

Recursive type-checker over the compiled schema tree. Reports every issue
it finds rather than stopping at the first one; any issue makes the result
invalid.
"""

import re
from dataclasses import dataclass
from typing import Any

import structlog

from llm_safety.monitoring.metrics import validation_failures_total
from llm_safety.validation.schema_types import (
    ArraySchema,
    EnumSchema,
    ObjectSchema,
    PrimitiveSchema,
    SchemaNode,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SchemaIssue:
    path: str
    error_type: str
    message: str
    suggestion: str | None = None


def type_matches(value: Any, expected: str) -> bool:
    """Runtime check of one JSON type name. Unknown names accept anything."""
    if expected == "string":
        return isinstance(value, str)
    if expected == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool) and value == value
    if expected == "integer":
        if isinstance(value, bool):
            return False
        return isinstance(value, int) or (isinstance(value, float) and value.is_integer())
    if expected == "boolean":
        return isinstance(value, bool)
    if expected == "array":
        return isinstance(value, list)
    if expected == "object":
        return isinstance(value, dict)
    if expected == "null":
        return value is None
    return True


def _json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _join(path: str, key: str | int) -> str:
    if isinstance(key, int):
        return f"{path}[{key}]"
    return f"{path}.{key}" if path else key


class SchemaChecker:
    """Walks a SchemaNode tree against a decoded value."""

    def check(self, value: Any, node: SchemaNode, path: str = "") -> list[SchemaIssue]:
        issues: list[SchemaIssue] = []
        self._check(value, node, path, issues)

        for issue in issues:
            validation_failures_total.labels(layer="schema", error_type=issue.error_type).inc()
        if issues:
            logger.debug("Schema check failed", issues=len(issues), first=issues[0].message)
        return issues

    def _check(self, value: Any, node: SchemaNode, path: str, issues: list[SchemaIssue]) -> None:
        if isinstance(node, ObjectSchema):
            self._check_object(value, node, path, issues)
        elif isinstance(node, ArraySchema):
            self._check_array(value, node, path, issues)
        elif isinstance(node, EnumSchema):
            self._check_enum(value, node, path, issues)
        else:
            self._check_primitive(value, node, path, issues)

    def _type_issue(self, value: Any, expected: str, path: str) -> SchemaIssue:
        label = path or "output"
        return SchemaIssue(
            path=path,
            error_type="type_mismatch",
            message=f"Property {label} has wrong type: expected {expected}, got {_json_type_name(value)}",
            suggestion=f"Convert {label} to {expected}",
        )

    def _check_object(self, value: Any, node: ObjectSchema, path: str, issues: list[SchemaIssue]) -> None:
        if value is None and node.nullable:
            return
        if not isinstance(value, dict):
            issues.append(self._type_issue(value, "object", path))
            return

        for name in node.required:
            if name not in value:
                issues.append(
                    SchemaIssue(
                        path=_join(path, name),
                        error_type="missing_required",
                        message=f"Missing required property: {_join(path, name)}",
                        suggestion=f'Add property "{name}" to output',
                    )
                )

        for name, sub_node in node.properties.items():
            if name in value:
                self._check(value[name], sub_node, _join(path, name), issues)

        if not node.additional_properties:
            for name in value:
                if name not in node.properties:
                    issues.append(
                        SchemaIssue(
                            path=_join(path, name),
                            error_type="additional_property",
                            message=f"Property {_join(path, name)} is not allowed by the schema",
                        )
                    )

    def _check_array(self, value: Any, node: ArraySchema, path: str, issues: list[SchemaIssue]) -> None:
        if value is None and node.nullable:
            return
        if not isinstance(value, list):
            issues.append(self._type_issue(value, "array", path))
            return
        if node.items is None:
            return
        for index, item in enumerate(value):
            self._check(item, node.items, _join(path, index), issues)

    def _check_enum(self, value: Any, node: EnumSchema, path: str, issues: list[SchemaIssue]) -> None:
        if node.types and not any(type_matches(value, t) for t in node.types):
            issues.append(self._type_issue(value, " | ".join(node.types), path))
            return
        if value not in node.values:
            allowed = ", ".join(str(v) for v in node.values)
            issues.append(
                SchemaIssue(
                    path=path,
                    error_type="enum_mismatch",
                    message=f"Property {path or 'output'} has invalid value: must be one of {allowed}",
                )
            )

    def _check_primitive(self, value: Any, node: PrimitiveSchema, path: str, issues: list[SchemaIssue]) -> None:
        if node.types and not any(type_matches(value, t) for t in node.types):
            issues.append(self._type_issue(value, " | ".join(node.types), path))
            return

        if node.pattern is not None and isinstance(value, str) and not re.search(node.pattern, value):
            issues.append(
                SchemaIssue(
                    path=path,
                    error_type="pattern_mismatch",
                    message=f"Property {path or 'output'} does not match pattern: {node.pattern}",
                )
            )

        is_number = isinstance(value, (int, float)) and not isinstance(value, bool)
        if is_number and node.minimum is not None and value < node.minimum:
            issues.append(
                SchemaIssue(
                    path=path,
                    error_type="below_minimum",
                    message=f"Property {path or 'output'} is below minimum {node.minimum}",
                )
            )
        if is_number and node.maximum is not None and value > node.maximum:
            issues.append(
                SchemaIssue(
                    path=path,
                    error_type="above_maximum",
                    message=f"Property {path or 'output'} is above maximum {node.maximum}",
                )
            )
