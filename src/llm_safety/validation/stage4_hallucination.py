"""
Layer 3: hallucination detection.

With a source schema, every property of the result that the schema does not
declare is flagged. The walk recurses into nested objects (and arrays of
objects) whose schema declares properties. A schema level without a
``properties`` map declares nothing to compare against and flags nothing.
Omitted optional properties are never flagged.
"""

from typing import Any, Optional

import structlog

logger = structlog.get_logger(__name__)


class HallucinationLayer:
    def detect(self, output: Any, source_schema: Optional[dict[str, Any]]) -> list[str]:
        """
        Returns:
            Paths of hallucinated properties, in result order
        """
        if not source_schema:
            return []
        flagged: list[str] = []
        self._walk(output, source_schema, "", flagged)
        if flagged:
            logger.info("Hallucinated properties detected", properties=flagged)
        return flagged

    def _walk(self, value: Any, schema: dict[str, Any], path: str, flagged: list[str]) -> None:
        if isinstance(value, list):
            items = schema.get("items")
            if isinstance(items, dict):
                for index, item in enumerate(value):
                    self._walk(item, items, f"{path}[{index}]", flagged)
            return

        declared = schema.get("properties")
        if not isinstance(value, dict) or not isinstance(declared, dict):
            return

        for key, child in value.items():
            child_path = f"{path}.{key}" if path else key
            if key not in declared:
                flagged.append(child_path)
                continue
            child_schema = declared[key]
            if isinstance(child_schema, dict):
                self._walk(child, child_schema, child_path, flagged)
