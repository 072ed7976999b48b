"""
Persistence stores for the prompt registry.

A store moves the registry's exported form (prompt id -> list of version
dicts, JSON-compatible) to and from a durable medium. Stores may raise; the
registry catches and logs every store failure, so the in-memory registry
stays authoritative for the process lifetime.

Backends:
- InMemoryRegistryStore: tests and ephemeral processes
- JsonFileRegistryStore: one JSON document on local disk
- RedisRegistryStore: one JSON value under a Redis key
"""

import copy
import json
from pathlib import Path
from typing import Any, Optional, Protocol

import structlog
from redis import Redis

logger = structlog.get_logger(__name__)

RegistryData = dict[str, list[dict[str, Any]]]


class RegistryStore(Protocol):
    """Persistence collaborator used by PromptRegistry."""

    def load(self) -> Optional[RegistryData]:
        """Return the stored registry, or None if nothing was saved yet."""
        ...

    def save(self, data: RegistryData) -> None:
        """Replace the stored registry with ``data``."""
        ...


class InMemoryRegistryStore:
    """Keeps a deep copy of the last saved registry."""

    def __init__(self, initial: Optional[RegistryData] = None):
        self._data = copy.deepcopy(initial) if initial is not None else None
        self.save_count = 0

    def load(self) -> Optional[RegistryData]:
        return copy.deepcopy(self._data)

    def save(self, data: RegistryData) -> None:
        self._data = copy.deepcopy(data)
        self.save_count += 1


class JsonFileRegistryStore:
    """Stores the registry as an indented JSON document."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Optional[RegistryData]:
        if not self.path.exists():
            return None
        with self.path.open("r", encoding="utf-8") as fh:
            return json.load(fh)

    def save(self, data: RegistryData) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)
        tmp_path.replace(self.path)
        logger.debug("Registry saved to file", path=str(self.path))


class RedisRegistryStore:
    """
    Stores the registry as a single JSON string under one key.

    The client is expected to be created with decode_responses=True
    (see RedisClient.get_sync_client).
    """

    DEFAULT_KEY = "llm_safety:prompt_registry"

    def __init__(self, redis_client: Redis, key: str = DEFAULT_KEY):
        self.redis = redis_client
        self.key = key

    def load(self) -> Optional[RegistryData]:
        raw = self.redis.get(self.key)
        if raw is None:
            return None
        return json.loads(raw)

    def save(self, data: RegistryData) -> None:
        self.redis.set(self.key, json.dumps(data))
        logger.debug("Registry saved to Redis", key=self.key)
