"""
Configuration loader — reads packaging.yml into a BuildConfig.

This is the primary entry point for loading build configuration.
It reads YAML, validates against Pydantic schemas, and returns
typed domain objects. Relative paths in the file are resolved against
the directory holding it.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from modpack.core.errors import ConfigError
from modpack.core.models.build import BuildConfig, TransformationSettings

logger = logging.getLogger(__name__)

# Default config filename
PACKAGING_CONFIG_FILE = "packaging.yml"


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for packaging.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to packaging.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / PACKAGING_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config(path: Path | None = None) -> BuildConfig:
    """Load and validate build configuration.

    Args:
        path: Explicit path to packaging.yml. If None, searches upward.

    Returns:
        Validated BuildConfig model.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_config_file()

    if path is None:
        raise ConfigError(
            f"No {PACKAGING_CONFIG_FILE} found. Create one, or specify --config."
        )

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading build config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "packaging" key or be flat
    config_data = data["packaging"] if "packaging" in data else data
    if not isinstance(config_data, dict):
        raise ConfigError(f"Expected 'packaging' to be a mapping in {path}")

    try:
        config = BuildConfig.model_validate(config_data)
    except (ValidationError, ValueError) as e:
        raise ConfigError(f"Invalid build configuration: {e}") from e

    logger.info("Loaded build config '%s' (%s mode)", config.name, config.mode.value)
    return config


def config_root(config_path: Path) -> Path:
    """Get the build root directory from a config file path."""
    return config_path.parent.resolve()


def build_settings(config: BuildConfig, root: Path) -> TransformationSettings:
    """Derive the engine settings of ``config``, with paths resolved."""
    return TransformationSettings(
        mode=config.mode,
        transformable=config.transformable,
        enabled=config.transform,
        suffix=config.transform_suffix,
        verbose=config.transform_verbose,
        provisioning_repo=config.resolve_path(root, config.provisioning_repo),
        generated_repo=config.resolve_path(root, config.generated_repo),
        local_cache_repo=config.resolve_path(root, config.local_cache_repo),
    )
