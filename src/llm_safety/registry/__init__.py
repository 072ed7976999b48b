"""
Prompt registry: versioned prompt store with pluggable persistence.
"""

from llm_safety.registry.defaults import DEFAULT_PROMPTS, create_default_registry
from llm_safety.registry.exceptions import PromptNotFoundError
from llm_safety.registry.redis_client import RedisClient
from llm_safety.registry.registry import PromptRegistry, RegistryStats
from llm_safety.registry.storage import (
    InMemoryRegistryStore,
    JsonFileRegistryStore,
    RedisRegistryStore,
    RegistryStore,
)

__all__ = [
    "PromptRegistry",
    "RegistryStats",
    "PromptNotFoundError",
    "RegistryStore",
    "InMemoryRegistryStore",
    "JsonFileRegistryStore",
    "RedisRegistryStore",
    "RedisClient",
    "create_default_registry",
    "DEFAULT_PROMPTS",
]
