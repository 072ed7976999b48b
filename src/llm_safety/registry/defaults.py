"""
Standard prompt definitions.

create_default_registry() returns a registry pre-loaded with the prompts the
SDK generator ships with: type generation, docstring generation and test
generation. Schemas here are what the output validator enforces and what
the hallucination check compares results against.
"""

from datetime import datetime, timezone
from typing import Optional

from llm_safety.models.prompt_version import (
    HallucinationGuardrails,
    PromptExample,
    PromptVersion,
)
from llm_safety.registry.registry import PromptRegistry
from llm_safety.registry.storage import RegistryStore

DEFAULT_MODEL = "gpt-4-turbo-2024-04-09"
_PUBLISHED = datetime(2026, 1, 14, tzinfo=timezone.utc)


TYPESCRIPT_TYPES = PromptVersion(
    id="typescript-types",
    version="2.0.0",
    description="Generate a TypeScript interface from an OpenAPI schema",
    model=DEFAULT_MODEL,
    temperature=0.1,
    top_p=0.95,
    seed=42,
    max_tokens=2000,
    system_prompt=(
        "You convert OpenAPI schemas into TypeScript interfaces.\n\n"
        "RULES:\n"
        "1. Mirror the schema structure exactly\n"
        "2. Only include properties defined in the schema\n"
        "3. Never invent properties or methods\n"
        "4. Map types: string->string, number->number, boolean->boolean, array->T[]\n"
        "5. Mark optional fields with ?\n"
        "6. Carry schema descriptions over as JSDoc\n\n"
        "Before answering, list the schema properties, which are required, "
        "their types and any nested objects.\n\n"
        'Respond with JSON: {"interface_name": "...", "code": "...", "imports": []}'
    ),
    user_prompt_template=(
        "Convert this OpenAPI schema to TypeScript:\n\n"
        "```json\n{{ schema }}\n```\n\n"
        "Context:\n"
        "- SDK Type: {{ sdkType }}\n"
        "- Naming Convention: {{ convention }}\n"
        "- Existing Types: {{ existingTypes }}\n\n"
        "Generate the TypeScript interface."
    ),
    output_schema={
        "type": "object",
        "properties": {
            "interface_name": {"type": "string", "pattern": "^[A-Z][a-zA-Z0-9]*$"},
            "code": {"type": "string"},
            "imports": {"type": "array", "items": {"type": "string"}},
        },
        "required": ["interface_name", "code"],
    },
    examples=[
        PromptExample(
            input='{"schema": {"type": "object", "properties": {"id": {"type": "string"}, '
            '"email": {"type": "string"}}, "required": ["id"]}}',
            output='{"interface_name": "User", "code": "interface User { id: string; email?: string; }", '
            '"imports": []}',
            explanation="id is required, email is optional",
        ),
    ],
    guardrails=HallucinationGuardrails(
        source_references=True,
        chain_of_thought=True,
        few_shot_examples=3,
        constraints=[
            "Only use properties defined in the input schema",
            "Do not invent additional fields",
            "All required fields must be included",
            "Generated code must be syntactically valid",
        ],
        self_review=True,
        confidence_scoring=True,
        negations=[
            "Do not create properties that do not exist in the source",
            "Do not hallucinate methods or fields",
            "Do not invent import paths",
        ],
    ),
    tags=["code-gen", "typescript", "types", "openapi"],
    created_at=_PUBLISHED,
    modified_at=_PUBLISHED,
)


DOCSTRING_GENERATION = PromptVersion(
    id="docstring-generation",
    version="1.0.0",
    description="Generate JSDoc comments for TypeScript methods",
    model=DEFAULT_MODEL,
    temperature=0.3,
    top_p=0.95,
    max_tokens=1000,
    system_prompt=(
        "You write clear, accurate JSDoc comments.\n\n"
        "STYLE:\n"
        "- Concise but complete\n"
        "- @param for each parameter with its type\n"
        "- @returns with its type\n"
        "- @throws where applicable\n"
        "- A short @example when useful\n\n"
        "Infer parameter descriptions from context and mention side effects.\n\n"
        'Respond with JSON: {"jsdoc": "...", "isComplete": true}'
    ),
    user_prompt_template=(
        "Generate JSDoc for this method:\n\n"
        "```typescript\n{{ methodSignature }}\n```\n\n"
        "Context:\n"
        "- Class: {{ className }}\n"
        "- Purpose: {{ purpose }}"
    ),
    output_schema={
        "type": "object",
        "properties": {
            "jsdoc": {"type": "string"},
            "isComplete": {"type": "boolean"},
        },
        "required": ["jsdoc", "isComplete"],
    },
    examples=[
        PromptExample(
            input="function getUserById(id: string): Promise<User>",
            output=(
                "/**\n * Fetch a user by ID\n * @param id - The user identifier\n"
                " * @returns Promise resolving to the user object\n"
                " * @throws Error if user not found\n */"
            ),
            explanation="Complete documentation with all sections",
        ),
    ],
    tags=["documentation", "jsdoc", "typescript"],
    created_at=_PUBLISHED,
    modified_at=_PUBLISHED,
)


TEST_GENERATION = PromptVersion(
    id="test-generation",
    version="1.2.0",
    description="Generate unit tests for SDK methods",
    model=DEFAULT_MODEL,
    temperature=0.2,
    top_p=0.95,
    max_tokens=3000,
    system_prompt=(
        "You generate Jest unit tests.\n\n"
        "COVER: the happy path, error paths, boundary conditions, and mocks for "
        "external dependencies.\n"
        "Group with describe(), one it() per case, and assert on return values, "
        "side effects and error messages.\n\n"
        'Respond with JSON: {"tests": "...", "testCount": 3}'
    ),
    user_prompt_template=(
        "Generate tests for this method:\n\n"
        "```typescript\n{{ methodCode }}\n```\n\n"
        "Cover happy path, error cases and edge cases."
    ),
    output_schema={
        "type": "object",
        "properties": {
            "tests": {"type": "string"},
            "testCount": {"type": "number", "minimum": 1},
        },
        "required": ["tests", "testCount"],
    },
    tags=["testing", "jest", "typescript"],
    created_at=_PUBLISHED,
    modified_at=_PUBLISHED,
)


DEFAULT_PROMPTS = (TYPESCRIPT_TYPES, DOCSTRING_GENERATION, TEST_GENERATION)


def create_default_registry(store: Optional[RegistryStore] = None) -> PromptRegistry:
    """
    Build a registry holding the standard prompts.

    Only standard versions missing from the store are registered; versions
    already persisted (including deprecated ones) are left as stored.
    """
    registry = PromptRegistry(store=store)
    for prompt in DEFAULT_PROMPTS:
        if registry.get(prompt.id, prompt.version) is None:
            registry.register(prompt)
    return registry
