"""
Build configuration model — loaded from packaging.yml.

This is the only input the packager reads about *how* to package:
which mode, which repositories, whether and how to transform. What to
package (artifacts, module templates) comes from the configured
directories and the versions map.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class PackagingMode(str, Enum):
    """Fat embeds artifact bytes; thin records repository references."""

    FAT = "fat"
    THIN = "thin"


class MappingRuleSpec(BaseModel):
    """A single ``from → to`` path-form module rename rule."""

    source: str = Field(alias="from")
    target: str = Field(alias="to")

    model_config = {"populate_by_name": True}


class TransformerSpec(BaseModel):
    """Which binary transformer to drive."""

    kind: Literal["archive", "command"] = "archive"
    command: list[str] = Field(default_factory=list)   # argv with {input}/{output}
    timeout: int = 600


class OverriddenArtifactSpec(BaseModel):
    """A caller-supplied artifact file replacing normal resolution."""

    coords: str
    file: str | None = None


class BuildConfig(BaseModel):
    """Root build configuration."""

    version: int = 1
    name: str = "distribution"

    # ── Packaging ────────────────────────────────────────────────
    mode: PackagingMode = PackagingMode.FAT
    output_dir: str = "build/dist"
    templates_dir: str = "modules"
    modules_dir: str = "modules"             # relative to output_dir

    # ── Transformation ───────────────────────────────────────────
    transformable: bool = True
    transform: bool = True
    transform_suffix: str = ""
    transform_verbose: bool = False
    transform_modules: bool = True
    mapping: list[MappingRuleSpec] | None = None
    package_renames: dict[str, str] | None = None
    transformer: TransformerSpec = Field(default_factory=TransformerSpec)

    # ── Repositories ─────────────────────────────────────────────
    repositories: list[str] = Field(default_factory=list)
    provisioning_repo: str | None = None
    generated_repo: str | None = None
    local_cache_repo: str | None = None

    # ── Inputs ───────────────────────────────────────────────────
    feature_packs: list[str] = Field(default_factory=list)
    exclusions_file: str = "wildfly/jakarta-transform-excludes.txt"
    overridden_artifacts: list[OverriddenArtifactSpec] = Field(default_factory=list)
    versions: dict[str, str] = Field(default_factory=dict)
    properties: dict[str, str] = Field(default_factory=dict)

    @field_validator("overridden_artifacts", mode="before")
    @classmethod
    def _split_override_string(cls, value: object) -> object:
        """Accept the compact ``g:a:v:c:ext|g:a:v:c:ext`` string form."""
        if isinstance(value, str):
            from modpack.core.services.overrides import parse_overridden_artifacts

            return [{"coords": c} for c in parse_overridden_artifacts(value).values()]
        return value

    def resolve_path(self, base: Path, value: str | None) -> Path | None:
        """Resolve a configured path relative to the config file directory."""
        if value is None:
            return None
        path = Path(value).expanduser()
        return path if path.is_absolute() else (base / path).resolve()


class TransformationSettings(BaseModel):
    """Effective engine settings, after path resolution."""

    mode: PackagingMode = PackagingMode.FAT
    transformable: bool = True
    enabled: bool = True
    suffix: str = ""
    verbose: bool = False
    provisioning_repo: Path | None = None
    generated_repo: Path | None = None
    local_cache_repo: Path | None = None

    @property
    def transforms(self) -> bool:
        """Whether artifacts are actually run through the transformer."""
        return self.transformable and self.enabled

    def validate_options(self) -> None:
        """Reject conflicting options before any file is touched.

        Raises:
            ConfigError: On the first conflict found.
        """
        from modpack.core.errors import ConfigError

        if not self.transformable:
            return
        if self.enabled:
            if self.provisioning_repo is not None:
                raise ConfigError(
                    "Transformation is enabled, option 'provisioning_repo' can't be set."
                )
            if self.mode is PackagingMode.THIN and self.generated_repo is None:
                raise ConfigError(
                    "Transformation is enabled for thin packaging, option 'generated_repo' is required."
                )
        elif self.provisioning_repo is None:
            raise ConfigError(
                "Transformation is disabled, option 'provisioning_repo' must be set."
            )
