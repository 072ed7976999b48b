"""
Unit tests for schema compilation and the recursive schema checker.
"""

import pytest

from llm_safety.validation.exceptions import SchemaDefinitionError
from llm_safety.validation.schema_types import (
    ArraySchema,
    EnumSchema,
    ObjectSchema,
    PrimitiveSchema,
    compile_schema,
)
from llm_safety.validation.stage2_schema import SchemaChecker, type_matches

SCHEMA = {
    "type": "object",
    "properties": {
        "interface_name": {"type": "string", "pattern": "^[A-Z][a-zA-Z0-9]*$"},
        "kind": {"enum": ["interface", "type"]},
        "count": {"type": "integer", "minimum": 1, "maximum": 10},
        "imports": {"type": "array", "items": {"type": "string"}},
        "meta": {
            "type": "object",
            "properties": {"author": {"type": "string"}},
            "required": ["author"],
            "additionalProperties": False,
        },
        "note": {"type": ["string", "null"]},
    },
    "required": ["interface_name", "count"],
}


class TestCompileSchema:
    def test_compiles_tagged_tree(self):
        """Test schemas compile into the tagged node tree."""
        node = compile_schema(SCHEMA)

        assert isinstance(node, ObjectSchema)
        assert node.required == ("interface_name", "count")
        assert isinstance(node.properties["kind"], EnumSchema)
        assert isinstance(node.properties["imports"], ArraySchema)
        assert isinstance(node.properties["imports"].items, PrimitiveSchema)
        assert node.properties["meta"].additional_properties is False
        assert node.declared == frozenset(SCHEMA["properties"])

    def test_invalid_schema_rejected(self):
        """Test an invalid JSON Schema raises SchemaDefinitionError."""
        with pytest.raises(SchemaDefinitionError) as exc_info:
            compile_schema({"type": "not-a-type"})

        assert "Invalid output schema" in exc_info.value.message


class TestSchemaChecker:
    def setup_method(self):
        self.checker = SchemaChecker()
        self.node = compile_schema(SCHEMA)

    def check(self, value):
        return self.checker.check(value, self.node)

    def test_valid_value(self):
        """Test a conforming value has no issues."""
        value = {
            "interface_name": "User",
            "kind": "interface",
            "count": 3,
            "imports": ["a"],
            "meta": {"author": "x"},
            "note": None,
        }

        assert self.check(value) == []

    def test_optional_properties_may_be_omitted(self):
        """Test optional properties may be absent."""
        assert self.check({"interface_name": "User", "count": 1}) == []

    def test_missing_required(self):
        """Test a missing required property is reported."""
        issues = self.check({"interface_name": "User"})

        assert [i.error_type for i in issues] == ["missing_required"]
        assert issues[0].message == "Missing required property: count"
        assert issues[0].suggestion == 'Add property "count" to output'

    def test_reports_every_issue(self):
        """Test every issue is reported, not just the first."""
        issues = self.check({"interface_name": "user", "count": 0, "kind": "class"})

        assert {i.error_type for i in issues} == {"pattern_mismatch", "below_minimum", "enum_mismatch"}

    def test_type_mismatch(self):
        """Test a wrong runtime type is reported."""
        issues = self.check({"interface_name": 5, "count": 1})

        assert issues[0].error_type == "type_mismatch"
        assert issues[0].path == "interface_name"
        assert "expected string, got number" in issues[0].message

    def test_nested_paths(self):
        """Test nested issues carry their full path."""
        issues = self.check(
            {"interface_name": "User", "count": 1, "imports": ["ok", 7], "meta": {"extra": 1}}
        )

        paths = {(i.path, i.error_type) for i in issues}
        assert ("imports[1]", "type_mismatch") in paths
        assert ("meta.author", "missing_required") in paths
        assert ("meta.extra", "additional_property") in paths

    def test_above_maximum(self):
        """Test values above maximum are reported."""
        issues = self.check({"interface_name": "User", "count": 11})

        assert issues[0].error_type == "above_maximum"

    def test_not_an_object(self):
        """Test a non-object against an object schema."""
        issues = self.checker.check([], self.node)

        assert issues[0].error_type == "type_mismatch"


@pytest.mark.parametrize(
    "value, expected, matches",
    [
        (1, "number", True),
        (1.5, "integer", False),
        (2.0, "integer", True),
        (True, "number", False),
        (True, "boolean", True),
        (None, "null", True),
        ("x", "string", True),
        ([], "object", False),
    ],
)
def test_type_matches(value, expected, matches):
    """Test runtime type matching per JSON type."""
    assert type_matches(value, expected) is matches
