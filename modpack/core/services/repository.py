"""
Repository layout — the canonical on-disk shape of every cache tier.

    <root>/<group/with/slashes>/<artifactId>/<version>/<artifactId>-<version>[-<classifier>].<ext>

The provisioning repository, the generated repository and the local
cache repository all share this layout. Each installed artifact gets its
``.pom`` companion copied into the same version directory.
"""

from __future__ import annotations

import logging
from pathlib import Path

from modpack.core.models.coords import ArtifactCoords
from modpack.core.persistence.files import copy_atomic

logger = logging.getLogger(__name__)


class ProbeResult:
    """Tri-state presence of an artifact in a repository."""

    NOT_PRESENT = "not-present"
    UNTRANSFORMED = "present-untransformed"
    TRANSFORMED = "present-transformed"


def version_dir(root: Path, coords: ArtifactCoords, *, create: bool = True) -> Path:
    """Return (and by default create) the version directory for ``coords``."""
    path = root.joinpath(*coords.group_id.split("."), coords.artifact_id, coords.version)
    if create:
        path.mkdir(parents=True, exist_ok=True)
    return path


def artifact_path(root: Path, coords: ArtifactCoords) -> Path:
    """Canonical file path of ``coords`` under ``root`` (never created)."""
    return version_dir(root, coords, create=False) / coords.file_name


def pom_path(root: Path, coords: ArtifactCoords) -> Path:
    """Canonical companion ``.pom`` path of ``coords`` under ``root``."""
    return artifact_path(root, coords.pom())


def install(
    root: Path,
    coords: ArtifactCoords,
    source: Path,
    *,
    file_name: str | None = None,
    pom: Path | None = None,
) -> Path:
    """Copy ``source`` (and optionally its pom) into ``coords``' version dir.

    Args:
        root: Repository root.
        coords: Coordinate whose version selects the directory.
        source: File to install.
        file_name: Target name (default: ``source.name``).
        pom: Companion metadata file, copied under its own name.

    Returns:
        The installed artifact path.
    """
    target_dir = version_dir(root, coords)
    target = copy_atomic(source, target_dir / (file_name or source.name))
    if pom is not None:
        copy_atomic(pom, target_dir / pom.name)
    logger.debug("Installed %s into %s", target.name, target_dir)
    return target


def probe(root: Path, coords: ArtifactCoords, suffix: str) -> tuple[str, Path | None]:
    """Look for a transformed then an untransformed copy of ``coords``.

    With an empty ``suffix`` both candidates are the same path, so a hit
    is reported as untransformed.

    Returns:
        ``(state, path)`` where ``state`` is one of the ``ProbeResult``
        constants and ``path`` the file found (None when not present).
    """
    if suffix:
        transformed = artifact_path(root, coords.with_version(coords.version + suffix))
        if transformed.exists():
            return ProbeResult.TRANSFORMED, transformed
    original = artifact_path(root, coords)
    if original.exists():
        return ProbeResult.UNTRANSFORMED, original
    return ProbeResult.NOT_PRESENT, None
