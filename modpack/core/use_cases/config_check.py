"""
Config check use case — validate packaging.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from modpack.core.config.loader import build_settings, config_root, find_config_file, load_config
from modpack.core.errors import ConfigError
from modpack.core.models.build import BuildConfig, PackagingMode
from modpack.core.models.coords import ArtifactCoords


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: BuildConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "name": self.config.name if self.config else None,
            "mode": self.config.mode.value if self.config else None,
            "transform": bool(self.config and self.config.transformable and self.config.transform),
            "overridden_artifacts": len(self.config.overridden_artifacts) if self.config else 0,
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate build configuration and report issues.

    Args:
        config_path: Optional explicit path to packaging.yml.

    Returns:
        ConfigCheckResult with validation status and any issues.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_config_file()
    if config_path is None:
        result.errors.append("No packaging.yml found.")
        return result
    result.config_path = config_path

    try:
        config = load_config(config_path)
        result.config = config
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    root = config_root(config_path)

    # Option conflicts
    settings = build_settings(config, root)
    try:
        settings.validate_options()
    except ConfigError as e:
        result.errors.append(str(e))

    # Overridden artifacts must name full coordinates
    for spec in config.overridden_artifacts:
        try:
            coords = ArtifactCoords.parse(spec.coords)
        except ValueError as e:
            result.errors.append(str(e))
            continue
        if not coords.version:
            result.errors.append(f"Overridden artifact {spec.coords} has no version")
        if spec.file:
            file = config.resolve_path(root, spec.file)
            if file is not None and not file.exists():
                result.errors.append(f"Overridden artifact file does not exist: {spec.file}")

    # Versions map entries must parse
    for key, value in config.versions.items():
        try:
            ArtifactCoords.parse(value)
        except ValueError as e:
            result.errors.append(f"versions[{key}]: {e}")

    # Paths
    templates = config.resolve_path(root, config.templates_dir)
    if templates is None or not templates.is_dir():
        result.warnings.append(f"Templates directory does not exist: {config.templates_dir}")
    for repo in config.repositories:
        path = config.resolve_path(root, repo)
        if path is None or not path.is_dir():
            result.warnings.append(f"Repository does not exist: {repo}")
    if not config.repositories:
        result.warnings.append("No repositories configured. Nothing can be resolved.")

    if settings.transformable and not settings.suffix:
        result.warnings.append(
            "No 'transform_suffix' set. Transformed artifacts keep their original file names."
        )
    if config.mode is PackagingMode.FAT and config.generated_repo:
        result.warnings.append("'generated_repo' is only used in thin mode.")

    result.valid = len(result.errors) == 0
    return result
