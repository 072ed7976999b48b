"""
Prompt renderer for completion requests.

Renders a PromptVersion's user-message template from the caller's input
mapping using Jinja2. Templates use named placeholders ({{ schema }},
{{ className }}); non-string values are serialized as indented JSON.
"""

import json
from typing import Any, Mapping

import structlog
from jinja2 import Environment, StrictUndefined, TemplateError

from llm_safety.llm.exceptions import PromptRenderError
from llm_safety.models.prompt_version import PromptVersion

logger = structlog.get_logger(__name__)


def _to_prompt_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=2, sort_keys=True, default=str)


class PromptRenderer:
    """
    Render user messages from prompt templates.

    A placeholder missing from the input is a terminal error: retrying the
    same input cannot fix it.
    """

    def __init__(self) -> None:
        self.jinja_env = Environment(
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False,  # We're generating prompts, not HTML
        )
        self.jinja_env.filters["json"] = _to_prompt_text

    def render(self, prompt: PromptVersion, input_data: Mapping[str, Any]) -> str:
        """
        Render the prompt's user template.

        Args:
            prompt: Prompt version whose template is rendered
            input_data: Placeholder values

        Returns:
            Rendered user message

        Raises:
            PromptRenderError: Missing placeholder or invalid template
        """
        variables = {key: _to_prompt_text(value) for key, value in input_data.items()}
        try:
            template = self.jinja_env.from_string(prompt.user_prompt_template)
            rendered = template.render(**variables)
        except TemplateError as e:
            logger.warning("Prompt rendering failed", prompt=str(prompt), error=str(e))
            raise PromptRenderError(
                f"Cannot render {prompt}: {e}",
                details={"prompt_id": prompt.id, "version": prompt.version},
            ) from e

        logger.debug("Rendered prompt", prompt=str(prompt), length=len(rendered))
        return rendered.strip()
