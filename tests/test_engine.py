"""
Tests for the transformation decision engine — fat, thin and overridden artifacts.
"""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from modpack.adapters.mock import MockResolver, MockTransformer
from modpack.core.engine.context import TransformationContext
from modpack.core.engine.decision import TransformationEngine
from modpack.core.engine.installers import FatInstaller, ThinInstaller, installer_for
from modpack.core.errors import ArtifactIOError, ConfigError, ResolutionError
from modpack.core.models.build import PackagingMode, TransformationSettings
from modpack.core.models.coords import ArtifactCoords
from modpack.core.models.record import ArtifactSource

SUFFIX = "-ee9"
A = ArtifactCoords.parse("org.acme:a:1.0")
OVERRIDE = ArtifactCoords.parse("g:a:2.0")


def fat(**kwargs) -> TransformationSettings:
    return TransformationSettings(mode=PackagingMode.FAT, suffix=SUFFIX, **kwargs)


def thin(**kwargs) -> TransformationSettings:
    return TransformationSettings(mode=PackagingMode.THIN, suffix=SUFFIX, **kwargs)


# ── Context ──────────────────────────────────────────────────────────


class TestTransformationContext:
    def test_with_exclusions(self):
        ctx = TransformationContext.with_exclusions(["g:a:1.0"])
        assert ctx.is_excluded("g:a:1.0")
        assert not ctx.is_excluded("g:a:2.0")

    def test_exclude_drops_transformed(self):
        ctx = TransformationContext()
        ctx.record_transformed("g:a:1.0", Path("/x.jar"))
        ctx.exclude("g:a:1.0")
        assert ctx.is_excluded("g:a:1.0")
        assert ctx.transformed_file("g:a:1.0") is None

    def test_record_transformed_drops_exclusion(self):
        ctx = TransformationContext.with_exclusions(["g:a:1.0"])
        ctx.record_transformed("g:a:1.0", Path("/x.jar"))
        assert not ctx.is_excluded("g:a:1.0")
        assert ctx.transformed_file("g:a:1.0") == Path("/x.jar")

    def test_override_sources(self):
        ctx = TransformationContext()
        assert not ctx.is_overridden("g:a:1.0")
        ctx.set_override_source("g:a:1.0", Path("/a.jar"))
        assert ctx.is_overridden("g:a:1.0")
        assert ctx.override_source("g:a:1.0") == Path("/a.jar")


class TestInstallers:
    def test_installer_for(self, tmp_path: Path):
        assert isinstance(installer_for(PackagingMode.FAT), FatInstaller)
        thin_installer = installer_for(PackagingMode.THIN, tmp_path)
        assert isinstance(thin_installer, ThinInstaller)
        assert thin_installer.generated_repo == tmp_path

    def test_fat_requires_target_dir(self, tmp_path: Path):
        src = tmp_path / "a.jar"
        src.write_bytes(b"x")
        with pytest.raises(ValueError):
            FatInstaller().install(src, A, "a-1.0.jar", None, None)

    def test_thin_without_repo_returns_version(self, tmp_path: Path):
        src = tmp_path / "a.jar"
        src.write_bytes(b"x")
        assert ThinInstaller().install(src, A.with_version("1.0-ee9"), "a.jar", None, None) == "1.0-ee9"


# ── Fat ──────────────────────────────────────────────────────────────


class TestFatInstall:
    def test_transformed(self, publish, resolver, transformer, module_dir):
        original = publish("org.acme:a:1.0")
        with TransformationEngine(fat(), resolver, transformer) as engine:
            name = engine.install_artifact(A, module_dir)
            assert engine.installed_version(A) == "1.0-ee9"

        assert name == "a-1.0-ee9.jar"
        installed = module_dir / name
        assert installed.read_bytes() == original.read_bytes() + MockTransformer.MARKER
        assert not (module_dir / "a-1.0.jar").exists()
        assert transformer.call_count == 1

    def test_result_recorded(self, publish, resolver, transformer, module_dir):
        publish("org.acme:a:1.0")
        with TransformationEngine(fat(), resolver, transformer) as engine:
            engine.install_artifact(A, module_dir)
            result = engine.results[0]
        assert result.installed_version == "1.0-ee9"
        assert result.transformed
        assert result.source is ArtifactSource.TRANSFORMED
        assert result.to_dict()["reference"] == "a-1.0-ee9.jar"

    def test_no_change_keeps_original_and_excludes(self, publish, resolver, transformer, module_dir):
        original = publish("org.acme:a:1.0")
        transformer.set_unchanged("a-1.0.jar")
        with TransformationEngine(fat(), resolver, transformer) as engine:
            name = engine.install_artifact(A, module_dir)
            assert engine.record(A).excluded
            assert engine.installed_version(A) == "1.0"
            # Second reference does not retry the transformer
            assert engine.install_artifact(A, module_dir) == "a-1.0.jar"

        assert name == "a-1.0.jar"
        assert (module_dir / name).read_bytes() == original.read_bytes()
        assert not (module_dir / "a-1.0-ee9.jar").exists()
        assert transformer.call_count == 1

    def test_excluded(self, publish, resolver, transformer, module_dir):
        publish("org.acme:a:1.0")
        context = TransformationContext.with_exclusions(["org.acme:a:1.0"])
        with TransformationEngine(fat(), resolver, transformer, context=context) as engine:
            assert engine.install_artifact(A, module_dir) == "a-1.0.jar"
        assert transformer.call_count == 0

    def test_exclusion_ignores_classifier(self, publish, resolver, transformer, module_dir):
        publish("org.acme:a:1.0:linux")
        context = TransformationContext.with_exclusions(["org.acme:a:1.0"])
        coords = ArtifactCoords.parse("org.acme:a:1.0:linux")
        with TransformationEngine(fat(), resolver, transformer, context=context) as engine:
            assert engine.install_artifact(coords, module_dir) == "a-1.0-linux.jar"

    def test_classified_name(self, publish, resolver, transformer, module_dir):
        publish("org.acme:a:1.0:linux")
        coords = ArtifactCoords.parse("org.acme:a:1.0:linux")
        with TransformationEngine(fat(), resolver, transformer) as engine:
            assert engine.install_artifact(coords, module_dir) == "a-1.0-ee9-linux.jar"

    def test_not_transformable(self, publish, resolver, module_dir):
        original = publish("org.acme:a:1.0")
        settings = fat(transformable=False)
        with TransformationEngine(settings, resolver, None) as engine:
            assert engine.install_artifact(A, module_dir) == "a-1.0.jar"
            assert engine.installed_version(A) == "1.0"
        assert (module_dir / "a-1.0.jar").read_bytes() == original.read_bytes()

    def test_transformer_failure_is_fatal(self, publish, resolver, transformer, module_dir):
        publish("org.acme:a:1.0")
        transformer.set_failure("a-1.0.jar", "corrupt archive")
        with TransformationEngine(fat(), resolver, transformer) as engine:
            with pytest.raises(ArtifactIOError, match="corrupt archive"):
                engine.install_artifact(A, module_dir)
        assert list(module_dir.iterdir()) == []

    def test_unresolvable(self, resolver, transformer, module_dir):
        with TransformationEngine(fat(), resolver, transformer) as engine:
            with pytest.raises(ResolutionError):
                engine.install_artifact(A, module_dir)

    def test_transform_without_transformer(self, publish, resolver, module_dir):
        publish("org.acme:a:1.0")
        with TransformationEngine(fat(), resolver, None) as engine:
            with pytest.raises(ConfigError):
                engine.install_artifact(A, module_dir)

    def test_local_cache_repo(self, tmp_path, publish, resolver, transformer, module_dir):
        publish("org.acme:a:1.0")
        cache = tmp_path / "cache"
        with TransformationEngine(fat(local_cache_repo=cache), resolver, transformer) as engine:
            engine.install_artifact(A, module_dir)
        version_dir = cache / "org/acme/a/1.0-ee9"
        assert (version_dir / "a-1.0-ee9.jar").is_file()
        assert (version_dir / "a-1.0.pom").is_file()

    def test_scratch_removed_on_close(self, publish, resolver, transformer, module_dir):
        publish("org.acme:a:1.0")
        with TransformationEngine(fat(), resolver, transformer) as engine:
            engine.install_artifact(A, module_dir)
            scratch = engine._scratch_dir()
            assert scratch.is_dir()
        assert not scratch.exists()

    def test_invalid_settings_rejected(self, resolver, transformer, tmp_path):
        with pytest.raises(ConfigError):
            TransformationEngine(fat(provisioning_repo=tmp_path), resolver, transformer)

    def test_concurrent_installs(self, publish, resolver, transformer, module_dir):
        coords = [ArtifactCoords.parse(f"org.acme:lib{i}:1.{i}") for i in range(8)]
        for c in coords:
            publish(str(c))
        with TransformationEngine(fat(), resolver, transformer) as engine:
            with ThreadPoolExecutor(max_workers=4) as pool:
                names = list(pool.map(lambda c: engine.install_artifact(c, module_dir), coords))
            assert len(engine.results) == 8
        assert names == [f"lib{i}-1.{i}-ee9.jar" for i in range(8)]
        assert all((module_dir / n).is_file() for n in names)


class TestFatProvisioningRepository:
    def test_uses_transformed_copy(self, tmp_path, publish, resolver, transformer, module_dir):
        prov = tmp_path / "prov"
        transformed = publish("org.acme:a:1.0-ee9", content=b"already transformed", root=prov)
        settings = fat(enabled=False, provisioning_repo=prov)
        with TransformationEngine(settings, resolver, transformer) as engine:
            assert engine.install_artifact(A, module_dir) == "a-1.0-ee9.jar"
            assert engine.results[0].source is ArtifactSource.PROVISIONING
        assert (module_dir / "a-1.0-ee9.jar").read_bytes() == transformed.read_bytes()
        assert transformer.call_count == 0

    def test_falls_back_to_resolver(self, tmp_path, publish, resolver, transformer, module_dir):
        publish("org.acme:a:1.0")
        settings = fat(enabled=False, provisioning_repo=tmp_path / "prov")
        with TransformationEngine(settings, resolver, transformer) as engine:
            assert engine.install_artifact(A, module_dir) == "a-1.0.jar"
        assert transformer.call_count == 0


# ── Thin ─────────────────────────────────────────────────────────────


class TestThinInstall:
    def test_transformed_into_generated_repo(self, tmp_path, publish, resolver, transformer):
        publish("org.acme:a:1.0")
        gen = tmp_path / "gen"
        with TransformationEngine(thin(generated_repo=gen), resolver, transformer) as engine:
            version = engine.install_artifact(A)

        assert version == "1.0-ee9"
        version_dir = gen / "org/acme/a/1.0-ee9"
        assert (version_dir / "a-1.0-ee9.jar").read_bytes().endswith(MockTransformer.MARKER)
        assert (version_dir / "a-1.0.pom").is_file()

    def test_existing_target_skipped(self, tmp_path, publish, resolver, transformer):
        publish("org.acme:a:1.0")
        gen = tmp_path / "gen"
        with TransformationEngine(thin(generated_repo=gen), resolver, transformer) as engine:
            engine.install_artifact(A)
            assert engine.install_artifact(A) == "1.0-ee9"
            assert engine.results[1].source is ArtifactSource.EXISTING
        assert transformer.call_count == 1

    def test_no_change(self, tmp_path, publish, resolver, transformer):
        publish("org.acme:a:1.0")
        transformer.set_unchanged("a-1.0.jar")
        gen = tmp_path / "gen"
        with TransformationEngine(thin(generated_repo=gen), resolver, transformer) as engine:
            assert engine.install_artifact(A) == "1.0"
            assert engine.record(A).excluded
        assert (gen / "org/acme/a/1.0/a-1.0.jar").is_file()
        assert not (gen / "org/acme/a/1.0-ee9").exists()

    def test_excluded(self, tmp_path, publish, resolver, transformer):
        publish("org.acme:a:1.0")
        gen = tmp_path / "gen"
        context = TransformationContext.with_exclusions(["org.acme:a:1.0"])
        settings = thin(generated_repo=gen)
        with TransformationEngine(settings, resolver, transformer, context=context) as engine:
            assert engine.install_artifact(A) == "1.0"
        assert (gen / "org/acme/a/1.0/a-1.0.jar").is_file()
        assert transformer.call_count == 0

    def test_provisioning_mode_without_generated_repo(self, tmp_path, transformer):
        resolver = MockResolver()
        settings = thin(enabled=False, provisioning_repo=tmp_path / "prov")
        with TransformationEngine(settings, resolver, transformer) as engine:
            assert engine.install_artifact(A) == "1.0-ee9"
        assert resolver.call_log == []
        assert transformer.call_count == 0

    def test_provisioning_mode_excluded(self, tmp_path, transformer):
        context = TransformationContext.with_exclusions(["org.acme:a:1.0"])
        settings = thin(enabled=False, provisioning_repo=tmp_path / "prov")
        with TransformationEngine(settings, MockResolver(), transformer, context=context) as engine:
            assert engine.install_artifact(A) == "1.0"

    def test_not_transformable(self, transformer):
        settings = thin(transformable=False)
        with TransformationEngine(settings, MockResolver(), transformer) as engine:
            assert engine.install_artifact(A) == "1.0"

    @pytest.mark.parametrize("mode", [PackagingMode.FAT, PackagingMode.THIN])
    def test_disabled_version_is_original(self, mode, publish, resolver, module_dir):
        coords = [ArtifactCoords.parse(c) for c in ("org.acme:a:1.0", "org.acme:b:2.3.Final")]
        for c in coords:
            publish(str(c))
        settings = TransformationSettings(mode=mode, transformable=False, suffix=SUFFIX)
        with TransformationEngine(settings, resolver, None) as engine:
            for c in coords:
                engine.install_artifact(c, module_dir)
                assert engine.installed_version(c) == c.version
            assert [r.installed_version for r in engine.results] == [c.version for c in coords]


# ── Overridden artifacts ─────────────────────────────────────────────


@pytest.fixture
def supplied(tmp_path: Path) -> Path:
    path = tmp_path / "custom" / "a-custom.jar"
    path.parent.mkdir()
    path.write_bytes(b"caller supplied bytes")
    return path


class TestOverriddenWithProvisioningRepository:
    def _settings(self, prov: Path, mode: PackagingMode = PackagingMode.FAT) -> TransformationSettings:
        return TransformationSettings(mode=mode, suffix=SUFFIX, enabled=False, provisioning_repo=prov)

    def test_untransformed_copy_excludes(self, tmp_path, publish, resolver, transformer, supplied, module_dir):
        prov = tmp_path / "prov"
        publish("g:a:2.0", root=prov)
        with TransformationEngine(self._settings(prov), resolver, transformer) as engine:
            record = engine.setup_overridden_artifact(OVERRIDE, supplied)
            assert record.excluded
            assert not record.needs_transformation
            assert record.transformed_file is None
            assert engine.installed_version(OVERRIDE) == "2.0"
            name = engine.install_artifact(OVERRIDE, module_dir)

        assert name == "a-2.0.jar"
        assert (module_dir / name).read_bytes() == b"caller supplied bytes"
        assert transformer.call_count == 0

    def test_transformed_copy_reused(self, tmp_path, publish, resolver, transformer, supplied, module_dir):
        prov = tmp_path / "prov"
        publish("g:a:2.0", root=prov)
        transformed = publish("g:a:2.0-ee9", content=b"prov transformed", root=prov)
        with TransformationEngine(self._settings(prov), resolver, transformer) as engine:
            record = engine.setup_overridden_artifact(OVERRIDE, supplied)
            assert not record.excluded
            assert record.transformed_file == transformed
            assert engine.installed_version(OVERRIDE) == "2.0-ee9"
            name = engine.install_artifact(OVERRIDE, module_dir)

        assert name == "a-2.0-ee9.jar"
        assert (module_dir / name).read_bytes() == b"prov transformed"
        assert transformer.call_count == 0

    def test_absent_is_transformed_and_persisted(self, tmp_path, publish, resolver, transformer, supplied):
        prov = tmp_path / "prov"
        publish("g:a:2.0")
        with TransformationEngine(self._settings(prov), resolver, transformer) as engine:
            record = engine.setup_overridden_artifact(OVERRIDE, supplied)

        stored = prov / "g/a/2.0-ee9/a-2.0-ee9.jar"
        assert record.transformed_file == stored
        assert stored.read_bytes() == b"caller supplied bytes" + MockTransformer.MARKER
        assert (prov / "g/a/2.0-ee9/a-2.0.pom").is_file()
        assert transformer.call_count == 1

    def test_absent_unchanged_is_persisted_untransformed(self, tmp_path, publish, resolver, transformer, supplied):
        prov = tmp_path / "prov"
        publish("g:a:2.0")
        transformer.set_unchanged(supplied.name)
        with TransformationEngine(self._settings(prov), resolver, transformer) as engine:
            record = engine.setup_overridden_artifact(OVERRIDE, supplied)
            assert engine.context.override_source(OVERRIDE.gav) == prov / "g/a/2.0/a-2.0.jar"

        assert record.excluded
        assert (prov / "g/a/2.0/a-2.0.jar").read_bytes() == b"caller supplied bytes"
        assert (prov / "g/a/2.0/a-2.0.pom").is_file()

    def test_second_run_is_idempotent(self, tmp_path, publish, resolver, supplied):
        prov = tmp_path / "prov"
        publish("g:a:2.0")

        first = MockTransformer()
        with TransformationEngine(self._settings(prov), resolver, first) as engine:
            status_before = engine.override_status(OVERRIDE)
            record_1 = engine.setup_overridden_artifact(OVERRIDE, supplied)

        second = MockTransformer()
        with TransformationEngine(self._settings(prov), resolver, second) as engine:
            status_1 = engine.override_status(OVERRIDE)
            status_2 = engine.override_status(OVERRIDE)
            record_2 = engine.setup_overridden_artifact(OVERRIDE, supplied)

        assert status_before.needs_transformation
        assert status_1 == status_2
        assert not status_1.needs_transformation
        assert record_1 == record_2
        assert first.call_count == 1
        assert second.call_count == 0

    def test_thin_reference(self, tmp_path, publish, resolver, transformer, supplied):
        prov = tmp_path / "prov"
        publish("g:a:2.0-ee9", root=prov)
        settings = self._settings(prov, PackagingMode.THIN)
        with TransformationEngine(settings, resolver, transformer) as engine:
            engine.setup_overridden_artifact(OVERRIDE, supplied)
            assert engine.install_artifact(OVERRIDE) == "2.0-ee9"


class TestOverriddenWithoutProvisioningRepository:
    def test_always_transformed(self, resolver, transformer, supplied, module_dir):
        with TransformationEngine(fat(), resolver, transformer) as engine:
            record = engine.setup_overridden_artifact(OVERRIDE, supplied)
            assert record.transformed_file is not None
            assert not record.needs_transformation
            name = engine.install_artifact(OVERRIDE, module_dir)
            engine.install_artifact(OVERRIDE, module_dir)

        assert name == "a-2.0-ee9.jar"
        assert (module_dir / name).read_bytes() == b"caller supplied bytes" + MockTransformer.MARKER
        assert transformer.call_count == 1

    def test_setup_once(self, resolver, transformer, supplied):
        with TransformationEngine(fat(), resolver, transformer) as engine:
            first = engine.setup_overridden_artifact(OVERRIDE, supplied)
            second = engine.setup_overridden_artifact(OVERRIDE, supplied)
        assert first == second
        assert transformer.call_count == 1

    def test_unchanged_override_excluded(self, resolver, transformer, supplied, module_dir):
        transformer.set_unchanged(supplied.name)
        with TransformationEngine(fat(), resolver, transformer) as engine:
            record = engine.setup_overridden_artifact(OVERRIDE, supplied)
            assert record.excluded
            assert engine.install_artifact(OVERRIDE, module_dir) == "a-2.0.jar"
        assert transformer.call_count == 1

    def test_thin_generated_repo(self, tmp_path, publish, resolver, transformer, supplied):
        publish("g:a:2.0")
        gen = tmp_path / "gen"
        with TransformationEngine(thin(generated_repo=gen), resolver, transformer) as engine:
            engine.setup_overridden_artifact(OVERRIDE, supplied)
            assert engine.install_artifact(OVERRIDE) == "2.0-ee9"
        stored = gen / "g/a/2.0-ee9/a-2.0-ee9.jar"
        assert stored.read_bytes().endswith(MockTransformer.MARKER)
        assert (gen / "g/a/2.0-ee9/a-2.0.pom").is_file()

    def test_missing_supplied_file(self, tmp_path, resolver, transformer):
        with TransformationEngine(fat(), resolver, transformer) as engine:
            with pytest.raises(ResolutionError, match="does not exist"):
                engine.setup_overridden_artifact(OVERRIDE, tmp_path / "nope.jar")

    def test_not_transformable(self, resolver, supplied, module_dir):
        with TransformationEngine(fat(transformable=False), resolver, None) as engine:
            record = engine.setup_overridden_artifact(OVERRIDE, supplied)
            assert not record.excluded
            assert record.transformed_file is None
            assert engine.install_artifact(OVERRIDE, module_dir) == "a-2.0.jar"
        assert (module_dir / "a-2.0.jar").read_bytes() == b"caller supplied bytes"
