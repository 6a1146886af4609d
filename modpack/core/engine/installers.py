"""
Packaging-mode installers — the "install" step of the decision engine.

The engine decides *which* bytes and *which* identity an artifact gets;
the installer only puts those bytes where the packaging mode wants them:

    FAT   copy into the module directory, return the file name
    THIN  copy into the generated repository (if any), return the version
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from modpack.core.models.build import PackagingMode
from modpack.core.models.coords import ArtifactCoords
from modpack.core.persistence.files import copy_atomic
from modpack.core.services import repository

logger = logging.getLogger(__name__)


class ArtifactInstaller(ABC):
    """Strategy for placing an artifact's final bytes."""

    mode: PackagingMode

    @abstractmethod
    def install(
        self,
        source: Path,
        coords: ArtifactCoords,
        file_name: str,
        target_dir: Path | None,
        pom: Path | None,
    ) -> str:
        """Place ``source`` under its final identity.

        Args:
            source: Final bytes (original, transformed or reused copy).
            coords: Coordinate carrying the *installed* version.
            file_name: Final file name.
            target_dir: Module directory (fat only).
            pom: Companion metadata file (thin only).

        Returns:
            The value a module descriptor must reference.
        """

    def target_exists(self, coords: ArtifactCoords, file_name: str) -> bool:
        """Whether the final target is already in place (module aliases)."""
        return False


class FatInstaller(ArtifactInstaller):
    """Embed artifact bytes into the distribution's module tree."""

    mode = PackagingMode.FAT

    def install(self, source, coords, file_name, target_dir, pom):
        if target_dir is None:
            raise ValueError("Fat installation requires a target directory")
        copy_atomic(source, target_dir / file_name)
        logger.debug("Embedded %s into %s", file_name, target_dir)
        return file_name


class ThinInstaller(ArtifactInstaller):
    """Record a repository reference; bytes go to the generated repository."""

    mode = PackagingMode.THIN

    def __init__(self, generated_repo: Path | None = None):
        self.generated_repo = generated_repo

    def target_exists(self, coords: ArtifactCoords, file_name: str) -> bool:
        if self.generated_repo is None:
            return False
        return (repository.version_dir(self.generated_repo, coords, create=False) / file_name).exists()

    def install(self, source, coords, file_name, target_dir, pom):
        if self.generated_repo is not None:
            repository.install(self.generated_repo, coords, source, file_name=file_name, pom=pom)
        return coords.version


def installer_for(mode: PackagingMode, generated_repo: Path | None = None) -> ArtifactInstaller:
    """Pick the installer strategy for a packaging mode."""
    if mode is PackagingMode.THIN:
        return ThinInstaller(generated_repo)
    return FatInstaller()
