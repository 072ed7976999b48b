"""
Output validation: parse, schema, semantic and hallucination layers.
"""

from llm_safety.validation.exceptions import (
    HallucinationError,
    JSONParseError,
    OutputValidationError,
    SchemaDefinitionError,
    ValidationError,
)
from llm_safety.validation.pipeline import OutputValidator, ValidationIssue, ValidationResult
from llm_safety.validation.schema_types import (
    ArraySchema,
    EnumSchema,
    ObjectSchema,
    PrimitiveSchema,
    compile_schema,
)
from llm_safety.validation.stage3_semantic import (
    DEFAULT_RULES,
    EllipsisRule,
    EmptyRequiredTextRule,
    FieldContext,
    PlaceholderMarkerRule,
    SemanticRule,
    TodoMarkerRule,
    TypeScriptInterfaceRule,
    UndefinedValueRule,
)
from llm_safety.validation.verifiers import JSONTextVerifier, TypeScriptVerifier

__all__ = [
    "OutputValidator",
    "ValidationResult",
    "ValidationIssue",
    "ValidationError",
    "JSONParseError",
    "SchemaDefinitionError",
    "OutputValidationError",
    "HallucinationError",
    "compile_schema",
    "PrimitiveSchema",
    "EnumSchema",
    "ArraySchema",
    "ObjectSchema",
    "SemanticRule",
    "FieldContext",
    "DEFAULT_RULES",
    "TodoMarkerRule",
    "PlaceholderMarkerRule",
    "EllipsisRule",
    "UndefinedValueRule",
    "EmptyRequiredTextRule",
    "TypeScriptInterfaceRule",
    "TypeScriptVerifier",
    "JSONTextVerifier",
]
