"""
Shared test fixtures and configuration.
"""

from collections.abc import Callable
from pathlib import Path

import pytest

from modpack.adapters.mock import MockTransformer
from modpack.adapters.resolver import LocalRepositoryResolver
from modpack.core.models.coords import ArtifactCoords
from modpack.core.services import repository


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def maven_repo(tmp_path: Path) -> Path:
    """Return an empty repository-layout directory."""
    repo = tmp_path / "repo"
    repo.mkdir()
    return repo


@pytest.fixture
def publish(maven_repo: Path) -> Callable[..., Path]:
    """Return a helper that places an artifact (and its pom) in a repository.

    ``publish("org.acme:a:1.0")`` writes ``org/acme/a/1.0/a-1.0.jar`` and
    ``a-1.0.pom`` under ``maven_repo`` (or under ``root=`` when given).
    """

    def _publish(
        coords: str,
        content: bytes | None = None,
        root: Path | None = None,
        pom: bool = True,
    ) -> Path:
        parsed = ArtifactCoords.parse(coords)
        base = root or maven_repo
        path = repository.artifact_path(base, parsed)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content if content is not None else f"bytes of {parsed}".encode())
        if pom:
            repository.pom_path(base, parsed).write_text(f"<project>{parsed.gav}</project>\n")
        return path

    return _publish


@pytest.fixture
def resolver(maven_repo: Path) -> LocalRepositoryResolver:
    return LocalRepositoryResolver([maven_repo])


@pytest.fixture
def transformer() -> MockTransformer:
    return MockTransformer()


@pytest.fixture
def module_dir(tmp_path: Path) -> Path:
    """Return a fresh module directory for fat installs."""
    target = tmp_path / "dist" / "modules" / "org" / "acme" / "main"
    target.mkdir(parents=True)
    return target
