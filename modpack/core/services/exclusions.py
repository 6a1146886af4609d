"""
Exclusion manifests — artifacts known not to need namespace transformation.

A manifest is plain text, one ``group:artifact:version`` per line. Each
feature pack may ship one; all of them are merged into the shared
exclusion set once at the start of an install pass.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from modpack.core.errors import ConfigError

logger = logging.getLogger(__name__)


def read_manifest(path: Path) -> set[str]:
    """Read one exclusion manifest.

    Blank lines and ``#`` comments are ignored.

    Raises:
        ConfigError: If the file exists but cannot be read.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read exclusion manifest {path}: {e}") from e

    entries: set[str] = set()
    for line in raw.splitlines():
        line = line.split("#", 1)[0].strip()
        if line:
            entries.add(line)
    return entries


def collect_exclusions(feature_packs: Iterable[Path], manifest: str) -> set[str]:
    """Merge the manifests found at ``<pack>/<manifest>`` for every pack."""
    excluded: set[str] = set()
    for pack in feature_packs:
        path = pack / manifest
        if not path.is_file():
            continue
        entries = read_manifest(path)
        logger.info("Loaded %d transformation exclusion(s) from %s", len(entries), path)
        excluded |= entries
    return excluded
