"""
Layer 2: semantic heuristics.

An explicit list of rules, one predicate class each, run against every
property of the parsed result (nested objects and arrays included). Each
match is a warning; this layer never invalidates a result.

Add a rule by implementing SemanticRule and passing it to SemanticLayer.
"""

from dataclasses import dataclass
from typing import Any, Iterator, Optional, Protocol

from llm_safety.validation.schema_types import ArraySchema, ObjectSchema, SchemaNode
from llm_safety.validation.verifiers import TypeScriptVerifier


@dataclass(frozen=True)
class FieldContext:
    """One property of the result as seen by a rule."""

    path: str
    key: str
    value: Any
    required: bool = False


@dataclass(frozen=True)
class SemanticWarning:
    rule: str
    path: str
    message: str


class SemanticRule(Protocol):
    name: str

    def check(self, field: FieldContext) -> Optional[str]:
        """Return a warning message when the field trips the rule."""
        ...


class TodoMarkerRule:
    name = "todo_marker"

    def check(self, field: FieldContext) -> Optional[str]:
        if isinstance(field.value, str) and "todo" in field.value.lower():
            return f'Property {field.path} contains a TODO marker: "{field.value[:80]}"'
        return None


class PlaceholderMarkerRule:
    name = "placeholder_marker"

    def check(self, field: FieldContext) -> Optional[str]:
        if isinstance(field.value, str) and "placeholder" in field.value.lower():
            return f'Property {field.path} contains placeholder text: "{field.value[:80]}"'
        return None


class EllipsisRule:
    name = "ellipsis"

    def check(self, field: FieldContext) -> Optional[str]:
        if isinstance(field.value, str) and field.value.strip() in ("...", "…"):
            return f"Property {field.path} is an elided value"
        return None


class UndefinedValueRule:
    """String sentinels a model emits for values it could not resolve."""

    name = "undefined_value"

    def check(self, field: FieldContext) -> Optional[str]:
        if isinstance(field.value, str) and field.value.strip().lower() == "undefined":
            return f"Property {field.path} is unresolved (undefined)"
        return None


class EmptyRequiredTextRule:
    """
    Empty text in a field that must carry content: schema-required string
    properties, and any ``code`` property.
    """

    name = "empty_required_text"

    def check(self, field: FieldContext) -> Optional[str]:
        if not isinstance(field.value, str) or field.value.strip():
            return None
        if field.required or field.key == "code":
            return f"Property {field.path} is empty"
        return None


class TypeScriptInterfaceRule:
    """
    Structural checks on a ``code`` property that declares a TypeScript
    interface (braces, doubled operators).
    """

    name = "typescript_interface"

    def check(self, field: FieldContext) -> Optional[str]:
        if field.key != "code" or not isinstance(field.value, str) or "interface " not in field.value:
            return None
        problems = TypeScriptVerifier.verify_interface(field.value)
        if problems:
            return f"Property {field.path}: {'; '.join(problems)}"
        return None


DEFAULT_RULES: tuple[SemanticRule, ...] = (
    TodoMarkerRule(),
    PlaceholderMarkerRule(),
    EllipsisRule(),
    UndefinedValueRule(),
    EmptyRequiredTextRule(),
    TypeScriptInterfaceRule(),
)


def _iter_fields(value: Any, node: Optional[SchemaNode], path: str) -> Iterator[FieldContext]:
    if isinstance(value, dict):
        required = node.required if isinstance(node, ObjectSchema) else ()
        properties = node.properties if isinstance(node, ObjectSchema) else {}
        for key, child in value.items():
            child_path = f"{path}.{key}" if path else key
            yield FieldContext(path=child_path, key=key, value=child, required=key in required)
            yield from _iter_fields(child, properties.get(key), child_path)
    elif isinstance(value, list):
        items = node.items if isinstance(node, ArraySchema) else None
        for index, child in enumerate(value):
            child_path = f"{path}[{index}]"
            key = path.rsplit(".", 1)[-1]
            yield FieldContext(path=child_path, key=key, value=child)
            yield from _iter_fields(child, items, child_path)


class SemanticLayer:
    def __init__(self, rules: Optional[tuple[SemanticRule, ...]] = None):
        self.rules = tuple(rules) if rules is not None else DEFAULT_RULES

    def scan(self, output: dict, node: Optional[SchemaNode] = None) -> list[SemanticWarning]:
        warnings: list[SemanticWarning] = []
        for field in _iter_fields(output, node, ""):
            for rule in self.rules:
                message = rule.check(field)
                if message:
                    warnings.append(SemanticWarning(rule=rule.name, path=field.path, message=message))
        return warnings
