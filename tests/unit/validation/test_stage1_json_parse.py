"""
Unit tests for the JSON parse layer.
"""

import pytest

from llm_safety.validation.exceptions import JSONParseError
from llm_safety.validation.stage1_json_parse import JSONParseLayer, strip_markdown_fences


class TestJSONParseLayer:
    """Test suite for the parse layer."""

    def setup_method(self):
        self.layer = JSONParseLayer()

    def test_valid_json_object(self):
        """Test parsing a plain JSON object."""
        result = self.layer.parse('{"message": "hi", "count": 2}')

        assert result == {"message": "hi", "count": 2}

    def test_markdown_fenced_json(self):
        """Test markdown fences are stripped before parsing."""
        content = '```json\n{"message": "hi"}\n```'

        assert self.layer.parse(content) == {"message": "hi"}

    def test_dict_input_is_copied(self):
        """Test dict input is deep-copied."""
        original = {"nested": {"a": 1}}

        parsed = self.layer.parse(original)
        parsed["nested"]["a"] = 2

        assert original == {"nested": {"a": 1}}

    def test_empty_string_raises_error(self):
        """Test an empty string raises JSONParseError."""
        with pytest.raises(JSONParseError) as exc_info:
            self.layer.parse("   \n ")

        assert "empty or whitespace-only" in str(exc_info.value)

    def test_malformed_json_raises_error(self):
        """Test malformed JSON raises JSONParseError with a snippet."""
        with pytest.raises(JSONParseError) as exc_info:
            self.layer.parse('{"message": "hi",}')

        assert exc_info.value.raw_content == '{"message": "hi",}'
        assert "not valid JSON" in exc_info.value.message

    def test_json_array_rejected(self):
        """Test a top-level array is rejected."""
        with pytest.raises(JSONParseError) as exc_info:
            self.layer.parse("[1, 2, 3]")

        assert "not a JSON object" in str(exc_info.value)

    def test_unsupported_type_rejected(self):
        """Test non-text, non-dict input is rejected."""
        with pytest.raises(JSONParseError):
            self.layer.parse(42)


def test_strip_markdown_fences_leaves_plain_text():
    """Test text without fences is returned unchanged."""
    assert strip_markdown_fences('  {"a": 1}  ') == '{"a": 1}'


def test_strip_markdown_fences_without_language():
    """Test fences without a language tag are stripped."""
    assert strip_markdown_fences('```\n{"a": 1}\n```') == '{"a": 1}'
