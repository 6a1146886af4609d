"""
Artifact coordinates — the identity of every binary the packager handles.

A coordinate is the 5-tuple group:artifact:version:classifier:extension.
Repository paths are keyed by group/artifact/version only; file names use
the full tuple. Coordinates are frozen: re-versioning always produces a
new instance through ``with_version``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

DEFAULT_EXTENSION = "jar"
POM_EXTENSION = "pom"


class ArtifactCoords(BaseModel):
    """Immutable artifact coordinate."""

    model_config = ConfigDict(frozen=True)

    group_id: str
    artifact_id: str
    version: str = ""
    classifier: str = ""
    extension: str = DEFAULT_EXTENSION

    # ── Parsing ──────────────────────────────────────────────────

    @classmethod
    def parse(cls, text: str) -> ArtifactCoords:
        """Parse ``g:a[:v[:c[:ext]]]`` into a coordinate.

        The five-part form may carry an empty classifier (``g:a:v::jar``).
        Fields are whitespace-trimmed.
        """
        parts = [p.strip() for p in text.strip().split(":")]
        if len(parts) < 2 or len(parts) > 5:
            raise ValueError(f"Invalid artifact coordinates '{text}'")
        group_id, artifact_id = parts[0], parts[1]
        if not group_id or not artifact_id:
            raise ValueError(f"Invalid artifact coordinates '{text}'")
        version = parts[2] if len(parts) > 2 else ""
        classifier = parts[3] if len(parts) > 3 else ""
        extension = parts[4] if len(parts) > 4 and parts[4] else DEFAULT_EXTENSION
        return cls(
            group_id=group_id,
            artifact_id=artifact_id,
            version=version,
            classifier=classifier,
            extension=extension,
        )

    # ── Derived identities ───────────────────────────────────────

    @property
    def gav(self) -> str:
        """``group:artifact:version`` — the exclusion and override key."""
        return f"{self.group_id}:{self.artifact_id}:{self.version}"

    @property
    def ga(self) -> str:
        """``group:artifact`` with ``::classifier`` when classified."""
        if self.classifier:
            return f"{self.group_id}:{self.artifact_id}::{self.classifier}"
        return f"{self.group_id}:{self.artifact_id}"

    @property
    def file_name(self) -> str:
        """``artifactId-version[-classifier].extension``."""
        classifier = f"-{self.classifier}" if self.classifier else ""
        return f"{self.artifact_id}-{self.version}{classifier}.{self.extension}"

    def with_version(self, version: str) -> ArtifactCoords:
        """Return a copy carrying a different version."""
        return self.model_copy(update={"version": version})

    def pom(self) -> ArtifactCoords:
        """The companion metadata coordinate (same g:a:v, ``.pom``)."""
        return self.model_copy(update={"classifier": "", "extension": POM_EXTENSION})

    def module_reference(self, version: str | None = None) -> str:
        """Thin-descriptor reference ``g:a:v[:c]``."""
        ref = f"{self.group_id}:{self.artifact_id}:{version if version is not None else self.version}"
        if self.classifier:
            ref = f"{ref}:{self.classifier}"
        return ref

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version}:{self.classifier}:{self.extension}"


def transformed_file_name(version: str, file_name: str, suffix: str) -> str:
    """Insert ``suffix`` right after the last occurrence of ``version``.

    ``transformed_file_name("1.0", "a-1.0.jar", "-ee9") == "a-1.0-ee9.jar"``
    """
    index = file_name.rfind(version)
    if index < 0:
        raise ValueError(f"Version '{version}' not found in file name '{file_name}'")
    end = index + len(version)
    return file_name[:end] + suffix + file_name[end:]
