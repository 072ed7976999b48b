"""
Versioned prompt registry.

Holds every registered PromptVersion grouped by prompt id, each group kept
sorted by semantic version. Default resolution returns the highest version
without a retirement timestamp.

Every mutation flushes the full store through the injected RegistryStore.
Persistence is best-effort: a failed save or load is logged at ERROR and
never propagated.
"""

import threading
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from pydantic import BaseModel

from llm_safety.models.prompt_version import PromptVersion
from llm_safety.registry.exceptions import PromptNotFoundError
from llm_safety.registry.storage import InMemoryRegistryStore, RegistryData, RegistryStore

logger = structlog.get_logger(__name__)


class RegistryStats(BaseModel):
    """Counts across the whole registry."""

    total_prompts: int = 0
    active_prompts: int = 0
    total_versions: int = 0
    deprecated_versions: int = 0


class PromptRegistry:
    """
    Thread-safe versioned store of prompt definitions.

    An explicitly constructed instance is passed to the orchestrator; there
    is no process-wide singleton.
    """

    def __init__(self, store: Optional[RegistryStore] = None, load: bool = True):
        """
        Args:
            store: Persistence collaborator (defaults to in-memory)
            load: Restore the stored registry on construction
        """
        self._store: RegistryStore = store if store is not None else InMemoryRegistryStore()
        self._prompts: dict[str, list[PromptVersion]] = {}
        self._lock = threading.RLock()

        if load:
            self._load()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def register(self, prompt: PromptVersion) -> None:
        """
        Insert a version, or replace it in place if id+version already exist.
        """
        with self._lock:
            self._insert(prompt)
            self._persist()

        logger.info("Prompt registered", prompt_id=prompt.id, version=prompt.version)

    def deprecate(self, prompt_id: str, version: str, sunset_date: Optional[datetime] = None) -> PromptVersion:
        """
        Set the retirement timestamp of a version (soft delete).

        A retired version is still reachable by exact version but is never
        the default resolution target, whatever the timestamp.

        Raises:
            PromptNotFoundError: Unknown prompt id or version
        """
        sunset = sunset_date or datetime.now(timezone.utc)
        with self._lock:
            versions = self._prompts.get(prompt_id, [])
            for index, existing in enumerate(versions):
                if existing.version == version:
                    updated = existing.model_copy(
                        update={"retired_at": sunset, "modified_at": datetime.now(timezone.utc)}
                    )
                    versions[index] = updated
                    self._persist()
                    break
            else:
                raise PromptNotFoundError(prompt_id, version)

        logger.info(
            "Prompt version deprecated",
            prompt_id=prompt_id,
            version=version,
            sunset_date=sunset.isoformat(),
        )
        return updated

    def retire(self, prompt_id: str, version: str) -> bool:
        """
        Physically remove a version. Unknown versions are a no-op.

        Returns:
            True if a version was removed
        """
        with self._lock:
            versions = self._prompts.get(prompt_id)
            if not versions:
                return False
            remaining = [v for v in versions if v.version != version]
            if len(remaining) == len(versions):
                return False
            if remaining:
                self._prompts[prompt_id] = remaining
            else:
                del self._prompts[prompt_id]
            self._persist()

        logger.info("Prompt version retired", prompt_id=prompt_id, version=version)
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, prompt_id: str, version: Optional[str] = None) -> Optional[PromptVersion]:
        """
        Resolve a prompt version.

        Returns the exact version when one is given, otherwise the highest
        version without a retirement timestamp. None signals not found.
        """
        with self._lock:
            versions = self._prompts.get(prompt_id)
            if not versions:
                return None

            if version is not None:
                return next((v for v in versions if v.version == version), None)

            for candidate in reversed(versions):
                if candidate.retired_at is None:
                    return candidate
            return None

    def get_all(self, prompt_id: str) -> list[PromptVersion]:
        """All versions of a prompt, ascending by semantic version."""
        with self._lock:
            return list(self._prompts.get(prompt_id, []))

    def list_active(self) -> list[str]:
        """Prompt ids with at least one non-retired version."""
        with self._lock:
            return [
                prompt_id
                for prompt_id, versions in self._prompts.items()
                if any(v.retired_at is None for v in versions)
            ]

    def get_stats(self) -> RegistryStats:
        with self._lock:
            stats = RegistryStats(total_prompts=len(self._prompts))
            for versions in self._prompts.values():
                stats.total_versions += len(versions)
                if any(v.retired_at is None for v in versions):
                    stats.active_prompts += 1
                stats.deprecated_versions += sum(1 for v in versions if v.retired_at is not None)
            return stats

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def export_data(self) -> RegistryData:
        """
        Serialize the full versioned store to JSON-compatible data.

        Format: {prompt_id: [version dict, ...]} ascending by version.
        """
        with self._lock:
            return {
                prompt_id: [v.model_dump(mode="json") for v in versions]
                for prompt_id, versions in self._prompts.items()
            }

    def import_data(self, data: RegistryData) -> None:
        """
        Replace the registry contents with previously exported data.

        Raises:
            pydantic.ValidationError: A version dict is malformed (the
                registry is left unchanged)
        """
        parsed = [
            PromptVersion.model_validate(entry)
            for entries in data.values()
            for entry in entries
        ]
        with self._lock:
            self._prompts = {}
            for prompt in parsed:
                self._insert(prompt)
            self._persist()

        logger.info("Registry imported", prompts=len(data), versions=len(parsed))

    # ------------------------------------------------------------------
    # Internals (caller holds the lock)
    # ------------------------------------------------------------------

    def _insert(self, prompt: PromptVersion) -> None:
        versions = self._prompts.setdefault(prompt.id, [])
        for index, existing in enumerate(versions):
            if existing.version == prompt.version:
                versions[index] = prompt
                return
        versions.append(prompt)
        versions.sort(key=lambda v: v.semver)

    def _persist(self) -> None:
        try:
            self._store.save(self.export_data())
        except Exception as e:
            logger.error(
                "Failed to persist prompt registry",
                store=type(self._store).__name__,
                error=str(e),
                error_type=type(e).__name__,
            )

    def _load(self) -> None:
        try:
            data = self._store.load()
        except Exception as e:
            logger.error(
                "Failed to load prompt registry",
                store=type(self._store).__name__,
                error=str(e),
                error_type=type(e).__name__,
            )
            return

        if not data:
            return

        loaded = 0
        for prompt_id, entries in data.items():
            for entry in entries:
                try:
                    self._insert(PromptVersion.model_validate(entry))
                    loaded += 1
                except ValueError as e:
                    logger.error("Skipping malformed stored prompt", prompt_id=prompt_id, error=str(e))
        logger.info("Prompt registry loaded", versions=loaded)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(v) for v in self._prompts.values())

    def __contains__(self, prompt_id: Any) -> bool:
        with self._lock:
            return prompt_id in self._prompts
