"""
Unit tests for OutputValidator (layer orchestration and confidence).
"""

import json

import pytest

from llm_safety.models.enums import ValidationLayer
from llm_safety.validation.exceptions import SchemaDefinitionError
from llm_safety.validation.pipeline import OutputValidator

from tests.fixtures.builders import GREETING_SCHEMA


@pytest.fixture
def validator() -> OutputValidator:
    return OutputValidator()


class TestOutputValidator:
    def test_clean_result(self, validator):
        """Test a clean result is valid with full confidence."""
        result = validator.validate(json.dumps({"message": "hello"}), GREETING_SCHEMA, GREETING_SCHEMA)

        assert result.valid
        assert result.output == {"message": "hello"}
        assert result.confidence == 1.0
        assert result.warnings == []

    def test_parse_failure_is_invalid(self, validator):
        """Test a parse failure is invalid with zero confidence."""
        result = validator.validate("not json", GREETING_SCHEMA)

        assert not result.valid
        assert result.confidence == 0.0
        assert result.output is None
        assert result.errors[0].layer == ValidationLayer.PARSE

    def test_schema_failure_is_invalid(self, validator):
        """Test a schema failure is invalid with zero confidence."""
        result = validator.validate('{"count": 0}', GREETING_SCHEMA)

        assert not result.valid
        assert result.confidence == 0.0
        assert {e.layer for e in result.errors} == {ValidationLayer.SCHEMA}
        assert len(result.errors) == 2

    def test_warnings_lower_confidence(self, validator):
        """Test each warning lowers confidence by the penalty."""
        result = validator.validate({"message": "TODO", "extraField": 1}, GREETING_SCHEMA, GREETING_SCHEMA)

        assert result.valid
        assert result.hallucinations == ["extraField"]
        assert {w.layer for w in result.warnings} == {ValidationLayer.SEMANTIC, ValidationLayer.HALLUCINATION}
        assert result.confidence == pytest.approx(0.8)

    def test_confidence_floor(self):
        """Test confidence never drops below the floor."""
        validator = OutputValidator(warning_penalty=0.5, min_confidence=0.2)

        result = validator.validate({"a": "TODO", "b": "TODO", "c": "TODO"})

        assert result.valid
        assert result.confidence == 0.2

    def test_no_schema_skips_schema_layer(self, validator):
        """Test validation without a schema skips the schema layer."""
        result = validator.validate('{"anything": [1, 2]}')

        assert result.valid
        assert result.hallucinations == []

    def test_input_not_mutated(self, validator):
        """Test the caller's input is not mutated."""
        original = {"message": "hello"}

        result = validator.validate(original, GREETING_SCHEMA)
        result.output["message"] = "changed"

        assert original == {"message": "hello"}

    def test_malformed_schema_raises(self, validator):
        """Test a malformed schema raises SchemaDefinitionError."""
        with pytest.raises(SchemaDefinitionError):
            validator.validate('{"a": 1}', {"type": 12})

    def test_compiled_schema_cached(self, validator):
        """Test compiled schemas are cached."""
        assert validator.compile(GREETING_SCHEMA) is validator.compile(dict(GREETING_SCHEMA))

    def test_score_output(self, validator):
        """Test score_output mirrors the confidence rule."""
        invalid = validator.validate("", GREETING_SCHEMA)
        valid = validator.validate({"message": "..."}, GREETING_SCHEMA)

        assert validator.score_output(invalid) == 0.0
        assert validator.score_output(valid) == pytest.approx(0.9)

    def test_detect_hallucinations(self, validator):
        """Test the hallucination passthrough."""
        assert validator.detect_hallucinations({"message": "x", "extraField": 1}, GREETING_SCHEMA) == ["extraField"]
