"""
Install use case — package the module tree of a distribution.

This is the top-level orchestrator:

    1. Load packaging.yml and derive the engine settings (conflicts fail here)
    2. Merge the exclusion manifests of all feature packs
    3. Build resolver, transformer, context, installer and engine
    4. Set up every overridden artifact
    5. Process each module template into <output>/<modules_dir>
    6. Rename the module tree when transformation is active
    7. Persist the install report
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from modpack.adapters.base import ArtifactResolver, ArtifactTransformer
from modpack.adapters.resolver import LocalRepositoryResolver
from modpack.adapters.transformer import build_transformer, derive_package_renames
from modpack.core.config.loader import build_settings, config_root, find_config_file, load_config
from modpack.core.engine.context import TransformationContext
from modpack.core.engine.decision import TransformationEngine
from modpack.core.errors import ConfigError, ModpackError
from modpack.core.models.build import BuildConfig
from modpack.core.models.coords import ArtifactCoords
from modpack.core.persistence.files import copy_atomic
from modpack.core.persistence.report_file import (
    ArtifactReceipt,
    InstallReport,
    default_report_path,
    save_report,
)
from modpack.core.services.descriptor import MODULE_DESCRIPTOR
from modpack.core.services.exclusions import collect_exclusions
from modpack.core.services.mapping import MappingTable
from modpack.core.services.module_walker import WalkReport, transform_modules
from modpack.core.services.templates import ModuleTemplateProcessor

logger = logging.getLogger(__name__)


@dataclass
class InstallRunResult:
    """Result of an install pass."""

    config: BuildConfig | None = None
    output_dir: Path | None = None
    report: InstallReport | None = None
    report_path: Path | None = None
    walk: WalkReport | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        result: dict = {
            "name": self.config.name if self.config else "",
            "output_dir": str(self.output_dir) if self.output_dir else None,
            "report_path": str(self.report_path) if self.report_path else None,
        }
        if self.report:
            result["report"] = self.report.model_dump(mode="json")
        if self.walk:
            result["module_tree"] = self.walk.to_dict()
        return result


@dataclass
class _Plan:
    """Everything derived from the configuration before any file is touched."""

    root: Path
    output_dir: Path
    modules_dir: Path
    templates_dir: Path
    versions: dict[str, str] = field(default_factory=dict)
    overrides: list[tuple[ArtifactCoords, Path | None]] = field(default_factory=list)


def mapping_for(config: BuildConfig) -> MappingTable:
    """The module-rename table a configuration selects."""
    if config.mapping is None:
        return MappingTable.default()
    return MappingTable.from_pairs((r.source, r.target) for r in config.mapping)


def _plan(config: BuildConfig, root: Path) -> _Plan:
    output_dir = config.resolve_path(root, config.output_dir)
    templates_dir = config.resolve_path(root, config.templates_dir)
    assert output_dir is not None and templates_dir is not None
    plan = _Plan(
        root=root,
        output_dir=output_dir,
        modules_dir=output_dir / config.modules_dir,
        templates_dir=templates_dir,
        versions=dict(config.versions),
    )
    for spec in config.overridden_artifacts:
        try:
            coords = ArtifactCoords.parse(spec.coords)
        except ValueError as e:
            raise ConfigError(f"Invalid overridden artifact: {e}") from e
        plan.versions[coords.ga] = str(coords)
        plan.overrides.append((coords, config.resolve_path(root, spec.file)))
    return plan


def template_files(templates_dir: Path) -> list[Path]:
    """All files under the templates directory, relative, sorted."""
    if not templates_dir.is_dir():
        raise ConfigError(f"Templates directory not found: {templates_dir}")
    return sorted(p.relative_to(templates_dir) for p in templates_dir.rglob("*") if p.is_file())


def run_install(
    config_path: Path | None = None,
    resolver: ArtifactResolver | None = None,
    transformer: ArtifactTransformer | None = None,
    save: bool = True,
    environ: dict[str, str] | None = None,
) -> InstallRunResult:
    """Package the configured distribution.

    Args:
        config_path: Optional explicit path to packaging.yml.
        resolver: Override the configured repository resolver.
        transformer: Override the configured binary transformer.
        save: Persist the install report.
        environ: Environment for ``env.`` expressions (default: os.environ).

    Returns:
        InstallRunResult. Failures are reported in ``error``; a failed
        pass may leave a partially populated output directory.
    """
    result = InstallRunResult()

    try:
        if config_path is None:
            config_path = find_config_file()
        config = load_config(config_path)
        assert config_path is not None
        root = config_root(config_path)
        result.config = config

        settings = build_settings(config, root)
        settings.validate_options()
        plan = _plan(config, root)
        result.output_dir = plan.output_dir

        packs = [p for p in (config.resolve_path(root, fp) for fp in config.feature_packs) if p]
        excluded = collect_exclusions(packs, config.exclusions_file)
        context = TransformationContext.with_exclusions(excluded)

        if resolver is None:
            roots = [p for p in (config.resolve_path(root, r) for r in config.repositories) if p]
            resolver = LocalRepositoryResolver(roots)
        if transformer is None and settings.transformable:
            renames = config.package_renames
            if renames is None:
                renames = derive_package_renames(mapping_for(config))
            transformer = build_transformer(config.transformer, renames)

        with TransformationEngine(settings, resolver, transformer, context=context) as engine:
            for coords, supplied in plan.overrides:
                engine.setup_overridden_artifact(coords, supplied)

            processor = ModuleTemplateProcessor(
                engine,
                plan.versions,
                config.properties,
                os.environ if environ is None else environ,
            )
            modules: list[str] = []
            for rel in template_files(plan.templates_dir):
                source = plan.templates_dir / rel
                target = plan.modules_dir / rel
                if rel.name == MODULE_DESCRIPTOR:
                    processed = processor.process_file(source, target)
                    if processed.module:
                        modules.append(processed.module)
                else:
                    copy_atomic(source, target)

            if settings.transforms and config.transform_modules:
                result.walk = transform_modules(plan.modules_dir, mapping_for(config))

            report = InstallReport(
                name=config.name,
                mode=config.mode.value,
                suffix=settings.suffix,
                modules=sorted(modules),
                artifacts=[ArtifactReceipt(**r.to_dict()) for r in engine.results],
                excluded=sorted(context.excluded),
                renamed_module_paths=result.walk.renamed_paths if result.walk else 0,
            )
        result.report = report

        if save:
            result.report_path = default_report_path(plan.output_dir)
            save_report(report, result.report_path)

    except (ModpackError, ValueError, OSError) as e:
        logger.error("Install failed: %s", e)
        result.error = str(e)
        return result

    logger.info(
        "Installed %d module(s), %d artifact(s) (%d transformed)",
        len(report.modules), len(report.artifacts), report.transformed_count,
    )
    return result
