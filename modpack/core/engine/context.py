"""
Transformation context — the shared mutable state of one install pass.

One instance is created per build invocation and handed to the engine
(and to anything else that needs to see decisions made so far). It holds:

    excluded               g:a:v keys confirmed not to need transformation
    transformed_overrides  g:a:v → transformed file of an overridden artifact
    override_sources       g:a:v → caller-supplied file of an overridden artifact

All mutation goes through the lock, so independent artifacts may be
decided from several threads.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class TransformationContext:
    """Exclusion set and overridden-artifact maps, guarded by one lock."""

    excluded: set[str] = field(default_factory=set)
    transformed_overrides: dict[str, Path] = field(default_factory=dict)
    override_sources: dict[str, Path] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    @classmethod
    def with_exclusions(cls, gavs: Iterable[str]) -> TransformationContext:
        return cls(excluded=set(gavs))

    # ── Exclusions ───────────────────────────────────────────────

    def is_excluded(self, gav: str) -> bool:
        with self.lock:
            return gav in self.excluded

    def exclude(self, gav: str) -> None:
        """Mark ``gav`` as not transformable; drops any transformed entry."""
        with self.lock:
            self.excluded.add(gav)
            self.transformed_overrides.pop(gav, None)

    # ── Overridden artifacts ─────────────────────────────────────

    def is_overridden(self, gav: str) -> bool:
        with self.lock:
            return gav in self.override_sources

    def set_override_source(self, gav: str, path: Path) -> None:
        with self.lock:
            self.override_sources[gav] = path

    def override_source(self, gav: str) -> Path | None:
        with self.lock:
            return self.override_sources.get(gav)

    def record_transformed(self, gav: str, path: Path) -> None:
        """Remember the transformed file of ``gav``; it is no longer excluded."""
        with self.lock:
            self.excluded.discard(gav)
            self.transformed_overrides[gav] = path

    def transformed_file(self, gav: str) -> Path | None:
        with self.lock:
            return self.transformed_overrides.get(gav)
