"""
Tier-4 result cache.

Process-local store of successful primary-path results, keyed by prompt id
plus a hash of the normalised input. Bounded with LRU eviction; entries
optionally expire after a TTL.
"""

import copy
import hashlib
import json
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional

import structlog

logger = structlog.get_logger(__name__)


def make_cache_key(prompt_id: str, input_data: Any) -> str:
    """``prompt_id:`` + sha256 of the canonical JSON input (sorted keys)."""
    canonical = json.dumps(input_data, sort_keys=True, separators=(",", ":"), default=str)
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return f"{prompt_id}:{digest}"


class ResultCache:
    """
    Thread-safe LRU cache with optional TTL.

    Values are deep-copied in and out so a cached result cannot be mutated
    through a reference handed to a caller.
    """

    def __init__(
        self,
        max_entries: int = 1000,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()
        self._lock = threading.Lock()

    def put(self, prompt_id: str, input_data: Any, result: Any) -> None:
        key = make_cache_key(prompt_id, input_data)
        value = copy.deepcopy(result)
        with self._lock:
            self._entries[key] = (self._clock(), value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Cache entry evicted", key=evicted)

    def get(self, prompt_id: str, input_data: Any) -> Optional[Any]:
        key = make_cache_key(prompt_id, input_data)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self.ttl_seconds is not None and self._clock() - stored_at > self.ttl_seconds:
                del self._entries[key]
                logger.debug("Cache entry expired", key=key)
                return None
            self._entries.move_to_end(key)
        return copy.deepcopy(value)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
