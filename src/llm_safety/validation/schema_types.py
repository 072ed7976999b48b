"""
Tagged-variant description of an output schema.

A JSON-schema dict is checked once with jsonschema's Draft7 meta-schema and
then compiled into a tree of four node kinds (primitive, enum, array,
object). The schema layer walks this tree instead of probing the raw dict.

Only the keywords the checker enforces are carried over: type, required,
properties, additionalProperties, items, enum, pattern, minimum, maximum.
"""

from typing import Annotated, Any, Literal, Optional, Union

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError
from pydantic import BaseModel, ConfigDict, Field

from llm_safety.validation.exceptions import SchemaDefinitionError

JSON_TYPES = ("string", "number", "integer", "boolean", "array", "object", "null")


class PrimitiveSchema(BaseModel):
    """Scalar (or untyped) value. Empty ``types`` accepts any type."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["primitive"] = "primitive"
    types: tuple[str, ...] = ()
    pattern: Optional[str] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None


class EnumSchema(BaseModel):
    """Closed set of allowed values."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["enum"] = "enum"
    values: tuple[Any, ...]
    types: tuple[str, ...] = ()


class ArraySchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["array"] = "array"
    items: Optional["SchemaNode"] = None
    nullable: bool = False


class ObjectSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["object"] = "object"
    properties: dict[str, "SchemaNode"] = Field(default_factory=dict)
    required: tuple[str, ...] = ()
    additional_properties: bool = True
    nullable: bool = False

    @property
    def declared(self) -> frozenset[str]:
        return frozenset(self.properties)


SchemaNode = Annotated[
    Union[PrimitiveSchema, EnumSchema, ArraySchema, ObjectSchema],
    Field(discriminator="kind"),
]

ArraySchema.model_rebuild()
ObjectSchema.model_rebuild()


def _types_of(schema: dict[str, Any]) -> tuple[str, ...]:
    declared = schema.get("type")
    if declared is None:
        return ()
    if isinstance(declared, str):
        return (declared,)
    return tuple(declared)


def _compile(schema: dict[str, Any]) -> SchemaNode:
    types = _types_of(schema)
    nullable = "null" in types
    non_null = tuple(t for t in types if t != "null")

    if "enum" in schema:
        return EnumSchema(values=tuple(schema["enum"]), types=types)

    if non_null == ("object",) or (not types and "properties" in schema):
        additional = schema.get("additionalProperties", True)
        return ObjectSchema(
            properties={
                name: _compile(sub)
                for name, sub in schema.get("properties", {}).items()
                if isinstance(sub, dict)
            },
            required=tuple(schema.get("required", ())),
            additional_properties=additional is not False,
            nullable=nullable,
        )

    if non_null == ("array",):
        items = schema.get("items")
        return ArraySchema(
            items=_compile(items) if isinstance(items, dict) else None,
            nullable=nullable,
        )

    return PrimitiveSchema(
        types=types,
        pattern=schema.get("pattern"),
        minimum=schema.get("minimum"),
        maximum=schema.get("maximum"),
    )


def compile_schema(schema: dict[str, Any]) -> SchemaNode:
    """
    Validate a JSON-schema dict against the Draft7 meta-schema and compile it.

    Raises:
        SchemaDefinitionError: The schema itself is malformed
    """
    try:
        Draft7Validator.check_schema(schema)
    except SchemaError as e:
        path = "/".join(str(p) for p in e.path) or None
        raise SchemaDefinitionError(f"Invalid output schema: {e.message}", schema_path=path) from e
    return _compile(schema)
