"""
Module tree use cases — rename an existing tree or a single descriptor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from modpack.core.config.loader import find_config_file, load_config
from modpack.core.errors import ConfigError, ModpackError
from modpack.core.services.descriptor import ModuleDescriptor, rewrite_descriptor
from modpack.core.services.mapping import MappingTable
from modpack.core.services.module_walker import WalkReport, transform_modules
from modpack.core.use_cases.install import mapping_for

logger = logging.getLogger(__name__)


@dataclass
class TransformTreeResult:
    """Result of renaming a module tree."""

    modules_dir: Path | None = None
    report: WalkReport | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "modules_dir": str(self.modules_dir),
            **(self.report.to_dict() if self.report else {}),
        }


@dataclass
class RewriteResult:
    """Result of rewriting one descriptor."""

    source: Path
    target: Path | None = None
    name: str | None = None
    changed: bool = False
    content: str = ""
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "source": str(self.source),
            "target": str(self.target) if self.target else None,
            "name": self.name,
            "changed": self.changed,
        }


def _mapping(config_path: Path | None) -> MappingTable:
    """Mapping from packaging.yml when one is found, else the default table."""
    if config_path is None:
        config_path = find_config_file()
    if config_path is None:
        return MappingTable.default()
    return mapping_for(load_config(config_path))


def run_transform_tree(modules_dir: Path, config_path: Path | None = None) -> TransformTreeResult:
    """Rename every module under ``modules_dir`` in place."""
    result = TransformTreeResult(modules_dir=modules_dir)
    try:
        if not modules_dir.is_dir():
            raise ConfigError(f"Modules directory not found: {modules_dir}")
        result.report = transform_modules(modules_dir, _mapping(config_path))
    except (ModpackError, OSError) as e:
        logger.error("Module tree transformation failed: %s", e)
        result.error = str(e)
    return result


def run_rewrite(
    source: Path,
    target: Path | None = None,
    config_path: Path | None = None,
) -> RewriteResult:
    """Rewrite one descriptor; write it to ``target`` or return it as text."""
    result = RewriteResult(source=source, target=target)
    try:
        descriptor = ModuleDescriptor.parse(source)
        result.changed = rewrite_descriptor(descriptor, _mapping(config_path))
        result.name = descriptor.name
        if target is not None:
            descriptor.write(target)
        else:
            result.content = descriptor.to_bytes().decode("utf-8")
    except ModpackError as e:
        result.error = str(e)
    return result
