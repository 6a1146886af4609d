"""
Adapter base — the contracts between the engine and external services.

The engine never locates or rewrites bytes itself. It asks an
``ArtifactResolver`` where a coordinate lives and hands files to an
``ArtifactTransformer`` as a black box. Unlike receipts-based tooling,
failures here are fatal: adapters raise, and the install aborts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from modpack.core.models.coords import ArtifactCoords


@dataclass(frozen=True)
class TransformResult:
    """What the transformer produced."""

    path: Path
    changed: bool


class ArtifactResolver(ABC):
    """Locates artifact files by coordinate.

    To create a new resolver:
        1. Subclass ArtifactResolver
        2. Implement name and resolve
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The resolver identifier (e.g., 'local', 'mock')."""

    @abstractmethod
    def resolve(self, coords: ArtifactCoords) -> Path:
        """Return the local file for ``coords``.

        Raises:
            ResolutionError: If the coordinate cannot be found.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class ArtifactTransformer(ABC):
    """Namespace-rewrites a single file, archive or directory tree.

    ``transform`` always produces ``target`` (a possibly unmodified copy)
    and reports whether anything changed. "Nothing to change" is a normal
    outcome, never an exception.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The transformer identifier (e.g., 'archive', 'command')."""

    def is_available(self) -> bool:
        """Whether the underlying tool can run. Fast, never raises."""
        return True

    @abstractmethod
    def transform(self, source: Path, target: Path, verbose: bool = False) -> TransformResult:
        """Write a transformed copy of ``source`` at ``target``.

        ``target`` must not exist yet; the caller owns its atomic commit.

        Raises:
            ArtifactIOError: On any read, write or tool failure.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
