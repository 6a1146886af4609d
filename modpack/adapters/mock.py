"""
Mock adapters — test doubles for the resolver and the transformer.

Configurable per coordinate / per file name, and they record every call
so tests can assert how often the engine reached for them.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from modpack.adapters.base import ArtifactResolver, ArtifactTransformer, TransformResult
from modpack.core.errors import ArtifactIOError, ResolutionError
from modpack.core.models.coords import ArtifactCoords


class MockResolver(ArtifactResolver):
    """Resolve from an in-memory ``coords → path`` table."""

    def __init__(self, artifacts: dict[str, Path] | None = None):
        self._artifacts: dict[str, Path] = dict(artifacts or {})
        self._call_log: list[ArtifactCoords] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_log(self) -> list[ArtifactCoords]:
        return self._call_log

    def add(self, coords: ArtifactCoords, path: Path) -> None:
        self._artifacts[str(coords)] = path

    def resolve(self, coords: ArtifactCoords) -> Path:
        self._call_log.append(coords)
        path = self._artifacts.get(str(coords))
        if path is None:
            raise ResolutionError(coords, "unknown to mock resolver")
        return path


class MockTransformer(ArtifactTransformer):
    """Universal mock transformer.

    By default every file is "changed": the output is the input bytes
    with a marker appended. Specific source names can be configured as
    unchanged (plain copy) or failing.
    """

    MARKER = b"\n#transformed\n"

    def __init__(self, changed_by_default: bool = True):
        self._changed_by_default = changed_by_default
        self._unchanged: set[str] = set()
        self._failing: dict[str, str] = {}
        self._call_log: list[tuple[Path, Path]] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_log(self) -> list[tuple[Path, Path]]:
        """All ``(source, target)`` pairs this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def set_unchanged(self, file_name: str) -> None:
        """Report "nothing to change" for sources with this file name."""
        self._unchanged.add(file_name)

    def set_failure(self, file_name: str, error: str = "Mock failure") -> None:
        """Raise an I/O failure for sources with this file name."""
        self._failing[file_name] = error

    def reset(self) -> None:
        self._call_log.clear()

    def transform(self, source: Path, target: Path, verbose: bool = False) -> TransformResult:
        self._call_log.append((source, target))
        if source.name in self._failing:
            raise ArtifactIOError(self._failing[source.name])
        changed = self._changed_by_default and source.name not in self._unchanged
        if changed:
            target.write_bytes(source.read_bytes() + self.MARKER)
        else:
            shutil.copyfile(source, target)
        return TransformResult(path=target, changed=changed)
