"""
Unit tests for hallucination detection.
"""

from llm_safety.validation.stage4_hallucination import HallucinationLayer

SOURCE = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "age": {"type": "number"},
        "address": {"type": "object", "properties": {"city": {"type": "string"}}},
        "tags": {"type": "array", "items": {"type": "object", "properties": {"label": {"type": "string"}}}},
        "free": {"type": "object"},
    },
}


class TestHallucinationLayer:
    def setup_method(self):
        self.layer = HallucinationLayer()

    def test_undeclared_property_flagged(self):
        """Test properties missing from the source schema are flagged."""
        assert self.layer.detect({"name": "a", "extraField": 1}, SOURCE) == ["extraField"]

    def test_declared_only_not_flagged_even_with_omissions(self):
        """Test omitted optional properties are never flagged."""
        assert self.layer.detect({"name": "a"}, SOURCE) == []

    def test_nested_objects_and_arrays(self):
        """Test nested objects and array items are checked."""
        output = {
            "address": {"city": "x", "zip": "1"},
            "tags": [{"label": "a"}, {"label": "b", "color": "red"}],
        }

        assert self.layer.detect(output, SOURCE) == ["address.zip", "tags[1].color"]

    def test_level_without_properties_flags_nothing(self):
        """Test levels without declared properties flag nothing."""
        assert self.layer.detect({"free": {"anything": 1}}, SOURCE) == []

    def test_no_source_schema(self):
        """Test no source schema means no hallucinations."""
        assert self.layer.detect({"extraField": 1}, None) == []
