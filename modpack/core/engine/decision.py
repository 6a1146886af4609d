"""
Transformation decision engine — one final identity per (artifact, mode).

For every artifact the engine decides whether it is namespace-transformed,
where its final bytes come from, and which identity (file name, version)
module descriptors must reference. Inputs per artifact:

    transformable / enabled   does this build transform at all
    provisioning repository   durable cross-build source of truth
    overridden                caller supplied the file
    excluded                  confirmed not to need transformation

Decision (fat and thin share it; only the install step differs):

    not transformable           → original bytes, original version
    excluded                    → original bytes, original version
    transformed override        → reuse the recorded transformed file, suffixed
    transformation enabled      → transform into scratch; changed → suffixed,
                                  unchanged → original bytes, now excluded
    provisioning repo (no xfrm) → transformed copy from the repo when present,
                                  identity suffixed

Overridden artifacts go through ``setup_overridden_artifact`` first, which
probes the provisioning repository (transformed / untransformed / absent)
before doing any work. Every exclusion or transformed file discovered is
written to the shared ``TransformationContext``.

Any resolve, copy or transform failure aborts the whole install.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from modpack.adapters.base import ArtifactResolver, ArtifactTransformer, TransformResult
from modpack.core.engine.context import TransformationContext
from modpack.core.engine.installers import ArtifactInstaller, installer_for
from modpack.core.errors import ArtifactIOError, ConfigError, ResolutionError
from modpack.core.models.build import PackagingMode, TransformationSettings
from modpack.core.models.coords import ArtifactCoords, transformed_file_name
from modpack.core.models.record import ArtifactSource, OverrideStatus, TransformationRecord
from modpack.core.services import repository

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """The identity an artifact was installed under."""

    coords: ArtifactCoords
    mode: PackagingMode
    installed_version: str
    file_name: str
    reference: str
    transformed: bool
    excluded: bool
    source: ArtifactSource

    def to_dict(self) -> dict:
        return {
            "coords": str(self.coords),
            "mode": self.mode.value,
            "installed_version": self.installed_version,
            "file_name": self.file_name,
            "reference": self.reference,
            "transformed": self.transformed,
            "excluded": self.excluded,
            "source": self.source.value,
        }


class TransformationEngine:
    """Decide and perform the installation of artifacts.

    Use as a context manager so the scratch area is removed:

        with TransformationEngine(settings, resolver, transformer) as engine:
            engine.setup_overridden_artifact(coords, supplied)
            name = engine.install_artifact(coords, module_dir)
    """

    def __init__(
        self,
        settings: TransformationSettings,
        resolver: ArtifactResolver,
        transformer: ArtifactTransformer | None = None,
        installer: ArtifactInstaller | None = None,
        context: TransformationContext | None = None,
        scratch_root: Path | None = None,
    ):
        settings.validate_options()
        self.settings = settings
        self.resolver = resolver
        self.transformer = transformer
        self.installer = installer or installer_for(settings.mode, settings.generated_repo)
        self.context = context or TransformationContext()
        self.results: list[InstallResult] = []
        self._scratch_root = scratch_root
        self._scratch: Path | None = None
        self._verbose = logger.info if settings.verbose else logger.debug

    # ── Lifecycle ────────────────────────────────────────────────

    def __enter__(self) -> TransformationEngine:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        """Destroy the scratch area."""
        if self._scratch is not None:
            shutil.rmtree(self._scratch, ignore_errors=True)
            self._scratch = None

    def _scratch_dir(self) -> Path:
        with self.context.lock:
            if self._scratch is None:
                self._scratch = Path(tempfile.mkdtemp(prefix="modpack-", dir=self._scratch_root))
            return self._scratch

    # ── Decision inputs ──────────────────────────────────────────

    @property
    def suffix(self) -> str:
        return self.settings.suffix

    def is_excluded(self, coords: ArtifactCoords) -> bool:
        if self.context.is_excluded(coords.gav):
            self._verbose("Excluding %s from transformation", coords.gav)
            return True
        return False

    def _suffix_applies(self, coords: ArtifactCoords) -> bool:
        s = self.settings
        if not s.transformable or self.context.is_excluded(coords.gav):
            return False
        return s.enabled or s.provisioning_repo is not None

    def installed_version(self, coords: ArtifactCoords) -> str:
        """Version string a descriptor must reference for ``coords`` right now."""
        if self._suffix_applies(coords):
            return coords.version + self.suffix
        return coords.version

    def record(self, coords: ArtifactCoords) -> TransformationRecord:
        """Current transformation facts for ``coords``.

        ``needs_transformation`` is true when installing ``coords`` now
        would run the transformer.
        """
        with self.context.lock:
            excluded = self.context.is_excluded(coords.gav)
            transformed_file = None if excluded else self.context.transformed_file(coords.gav)
            return TransformationRecord(
                excluded=excluded,
                needs_transformation=(
                    self.settings.transforms and not excluded and transformed_file is None
                ),
                transformed_file=transformed_file,
            )

    # ── Resolution ───────────────────────────────────────────────

    def _source(self, coords: ArtifactCoords) -> tuple[Path, ArtifactSource, str]:
        """Where the bytes of ``coords`` come from, and their base file name."""
        override = self.context.override_source(coords.gav)
        if override is not None:
            return override, ArtifactSource.OVERRIDE, coords.file_name

        s = self.settings
        if (
            s.provisioning_repo is not None
            and s.transformable
            and not s.enabled
            and not self.context.is_excluded(coords.gav)
        ):
            candidate = repository.artifact_path(
                s.provisioning_repo, coords.with_version(coords.version + self.suffix)
            )
            if candidate.exists():
                return candidate, ArtifactSource.PROVISIONING, candidate.name

        path = self.resolver.resolve(coords)
        return path, ArtifactSource.RESOLVED, path.name

    def _resolve_pom(self, coords: ArtifactCoords) -> Path:
        return self.resolver.resolve(coords.pom())

    # ── Transformation ───────────────────────────────────────────

    def _transform(self, source: Path, file_name: str) -> TransformResult:
        """Run the transformer into a fresh scratch location."""
        if self.transformer is None:
            raise ConfigError("Transformation is required but no transformer is configured.")
        work = Path(tempfile.mkdtemp(dir=self._scratch_dir()))
        target = work / file_name
        self._verbose("Transforming %s", source.name)
        try:
            return self.transformer.transform(source, target, self.settings.verbose)
        except ArtifactIOError:
            shutil.rmtree(work, ignore_errors=True)
            raise
        except OSError as e:
            shutil.rmtree(work, ignore_errors=True)
            raise ArtifactIOError(f"Transformation of {source} failed: {e}") from e

    # ── Overridden artifacts ─────────────────────────────────────

    def override_status(self, coords: ArtifactCoords) -> OverrideStatus:
        """Probe the provisioning repository for an overridden artifact."""
        repo = self.settings.provisioning_repo
        if repo is None:
            return OverrideStatus(needs_transformation=True)
        state, path = repository.probe(repo, coords, self.suffix)
        if state == repository.ProbeResult.TRANSFORMED:
            return OverrideStatus(needs_transformation=False, transformed_file=path)
        if state == repository.ProbeResult.UNTRANSFORMED:
            return OverrideStatus(needs_transformation=False)
        return OverrideStatus(needs_transformation=True)

    def setup_overridden_artifact(
        self,
        coords: ArtifactCoords,
        supplied_file: Path | None = None,
    ) -> TransformationRecord:
        """Register a caller-supplied artifact and settle its transformation state.

        Must run once per overridden artifact before any install that
        references it. A second call for the same g:a:v is a no-op.

        Raises:
            ResolutionError: If the supplied file does not exist.
            ArtifactIOError: On transform or copy failure.
        """
        gav = coords.gav
        with self.context.lock:
            if self.context.is_overridden(gav):
                return self.record(coords)

            source = supplied_file if supplied_file is not None else self.resolver.resolve(coords)
            if not source.exists():
                raise ResolutionError(coords, f"overridden file {source} does not exist")
            self.context.set_override_source(gav, source)

            if not self.settings.transformable:
                return self.record(coords)

            status = self.override_status(coords)
            final = status.transformed_file
            if status.needs_transformation:
                final = self._transform_override(coords, source)

            if final is None:
                self._verbose("The overridden artifact %s is excluded from transformation", gav)
                self.context.exclude(gav)
            else:
                self._verbose("The overridden artifact %s is transformed", gav)
                self.context.record_transformed(gav, final)
            return self.record(coords)

    def _transform_override(self, coords: ArtifactCoords, source: Path) -> Path | None:
        """Transform an overridden artifact and persist the outcome."""
        name = transformed_file_name(coords.version, coords.file_name, self.suffix)
        result = self._transform(source, name)
        final = result.path if result.changed else None

        repo = self.settings.provisioning_repo
        if repo is not None:
            pom = self._resolve_pom(coords)
            if final is None:
                stored = repository.install(repo, coords, source, file_name=coords.file_name, pom=pom)
                self.context.set_override_source(coords.gav, stored)
            else:
                final = repository.install(
                    repo,
                    coords.with_version(coords.version + self.suffix),
                    final,
                    file_name=name,
                    pom=pom,
                )
        return final

    # ── Installation ─────────────────────────────────────────────

    def install_artifact(self, coords: ArtifactCoords, target_dir: Path | None = None) -> str:
        """Install ``coords`` under the active packaging mode.

        Returns:
            Fat: the final file name inside ``target_dir``.
            Thin: the version string descriptors must reference.
        """
        if self.installer.mode is PackagingMode.FAT:
            result = self._install_fat(coords, target_dir)
        else:
            result = self._install_thin(coords)
        with self.context.lock:
            self.results.append(result)
        self._verbose(
            "Installed %s as %s (%s)", coords.gav, result.reference, result.source.value
        )
        return result.reference

    def _install_fat(self, coords: ArtifactCoords, target_dir: Path | None) -> InstallResult:
        if target_dir is None:
            raise ValueError("Fat installation requires a target directory")
        source, origin, file_name = self._source(coords)
        version = coords.version
        transformed = False
        transformed_file = self.context.transformed_file(coords.gav)

        if transformed_file is not None and not self.context.is_excluded(coords.gav):
            source, origin, file_name = transformed_file, ArtifactSource.OVERRIDE, transformed_file.name
            version, transformed = coords.version + self.suffix, True
        elif origin is ArtifactSource.PROVISIONING:
            version, transformed = coords.version + self.suffix, True
        elif self.settings.transforms and not self.is_excluded(coords):
            name = transformed_file_name(coords.version, file_name, self.suffix)
            outcome = self._transform(source, name)
            if outcome.changed:
                source, origin, file_name = outcome.path, ArtifactSource.TRANSFORMED, name
                version, transformed = coords.version + self.suffix, True
            else:
                self._verbose("%s unchanged by transformation, excluded", coords.gav)
                self.context.exclude(coords.gav)

        final_name = self.installer.install(source, coords.with_version(version), file_name, target_dir, None)

        cache = self.settings.local_cache_repo
        if cache is not None:
            pom = self._resolve_pom(coords)
            with self.context.lock:
                repository.install(
                    cache, coords.with_version(version), target_dir / final_name,
                    file_name=final_name, pom=pom,
                )

        return InstallResult(
            coords=coords,
            mode=PackagingMode.FAT,
            installed_version=version,
            file_name=final_name,
            reference=final_name,
            transformed=transformed,
            excluded=self.context.is_excluded(coords.gav),
            source=origin,
        )

    def _install_thin(self, coords: ArtifactCoords) -> InstallResult:
        version = self.installed_version(coords)
        excluded = self.context.is_excluded(coords.gav)
        transformed = self._suffix_applies(coords)

        if self.settings.generated_repo is None:
            return InstallResult(
                coords=coords,
                mode=PackagingMode.THIN,
                installed_version=version,
                file_name=coords.with_version(version).file_name,
                reference=version,
                transformed=transformed,
                excluded=excluded,
                source=ArtifactSource.RESOLVED,
            )

        transformed_file = self.context.transformed_file(coords.gav)
        pom = self._resolve_pom(coords)

        if transformed_file is not None and not excluded:
            source, origin, file_name = transformed_file, ArtifactSource.OVERRIDE, transformed_file.name
        elif self.settings.transforms and not excluded:
            source, origin, base_name = self._source(coords)
            file_name = transformed_file_name(coords.version, base_name, self.suffix)
            if self.installer.target_exists(coords.with_version(version), file_name):
                # Module alias re-declaring an artifact already installed
                return InstallResult(
                    coords=coords,
                    mode=PackagingMode.THIN,
                    installed_version=version,
                    file_name=file_name,
                    reference=version,
                    transformed=True,
                    excluded=False,
                    source=ArtifactSource.EXISTING,
                )
            outcome = self._transform(source, file_name)
            if outcome.changed:
                source, origin = outcome.path, ArtifactSource.TRANSFORMED
            else:
                self._verbose("%s unchanged by transformation, excluded", coords.gav)
                self.context.exclude(coords.gav)
                version, file_name, transformed, excluded = coords.version, base_name, False, True
        else:
            source, origin, file_name = self._source(coords)

        with self.context.lock:
            reference = self.installer.install(source, coords.with_version(version), file_name, None, pom)

        return InstallResult(
            coords=coords,
            mode=PackagingMode.THIN,
            installed_version=version,
            file_name=file_name,
            reference=reference,
            transformed=transformed,
            excluded=excluded,
            source=origin,
        )
