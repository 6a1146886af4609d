"""
Local repository resolver — finds artifacts in repository-layout directories.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from modpack.adapters.base import ArtifactResolver
from modpack.core.errors import ResolutionError
from modpack.core.models.coords import ArtifactCoords
from modpack.core.services import repository

logger = logging.getLogger(__name__)


class LocalRepositoryResolver(ArtifactResolver):
    """Resolve coordinates against an ordered list of repository roots.

    The first root holding ``<g/a/v>/<file>`` wins.
    """

    def __init__(self, roots: Iterable[Path]):
        self._roots = [Path(r) for r in roots]

    @property
    def name(self) -> str:
        return "local"

    @property
    def roots(self) -> list[Path]:
        return list(self._roots)

    def resolve(self, coords: ArtifactCoords) -> Path:
        if not coords.version:
            raise ResolutionError(coords, "no version")
        for root in self._roots:
            candidate = repository.artifact_path(root, coords)
            if candidate.exists():
                logger.debug("Resolved %s → %s", coords, candidate)
                return candidate
        searched = ", ".join(str(r) for r in self._roots) or "no repositories configured"
        raise ResolutionError(coords, f"not found in {searched}")
