"""
Module templates — turn ``<artifact name="${g:a}"/>`` entries into installs.

Templates are ordinary module descriptors whose resources reference
artifacts by versions-map key (``${group:artifact}``, ``${g:a::classifier}``)
or by literal coordinates. Options after ``?`` (``${g:a?jandex}``) are
accepted and ignored.

    FAT   <artifact name="${g:a}"/>  →  <resource-root path="a-1.0-ee9.jar"/>
    THIN  <artifact name="${g:a}"/>  →  <artifact name="g:a:1.0-ee9"/>

A ``version="${g:a}"`` attribute on the module root is replaced by the
artifact's version.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from modpack.core.engine.decision import TransformationEngine
from modpack.core.errors import ConfigError
from modpack.core.models.build import PackagingMode
from modpack.core.models.coords import ArtifactCoords
from modpack.core.persistence.files import copy_atomic
from modpack.core.services.descriptor import ModuleDescriptor
from modpack.core.services.expressions import is_expression, to_artifact_coords

logger = logging.getLogger(__name__)


def parse_artifact_name(value: str) -> tuple[str, bool, list[str]]:
    """Split an artifact reference into ``(key, is_expression, options)``.

    ``"${g:a?jandex}"`` → ``("g:a", True, ["jandex"])``
    ``"g:a:1.0"``       → ``("g:a:1.0", False, [])``
    """
    value = value.strip()
    if not is_expression(value):
        return value, False, []
    body = value[2:-1]
    key, _, options = body.partition("?")
    return key.strip(), True, [o for o in options.split(",") if o]


@dataclass
class TemplateResult:
    """What processing one template did."""

    module: str | None
    references: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"module": self.module, "references": self.references}


class ModuleTemplateProcessor:
    """Resolve and install the artifacts a module template references."""

    def __init__(
        self,
        engine: TransformationEngine,
        versions: Mapping[str, str],
        properties: Mapping[str, str] | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        self.engine = engine
        self.versions = versions
        self.properties = properties or {}
        self.environ = environ

    def coords_for(self, name: str) -> ArtifactCoords:
        """Resolve an ``<artifact name=...>`` value to coordinates.

        Raises:
            ConfigError: Expression key missing from the versions map.
            ExpressionError: Malformed or unresolved version expression.
        """
        key, expression, options = parse_artifact_name(name)
        if expression and key not in self.versions:
            raise ConfigError(f"Artifact {key} is not declared in 'versions'")
        if options:
            logger.debug("Ignoring options %s of %s", options, key)
        coords = to_artifact_coords(self.versions, key, self.properties, self.environ)
        if not coords.version:
            raise ConfigError(f"Artifact {name} has no version")
        return coords

    def process(self, descriptor: ModuleDescriptor, target_dir: Path) -> TemplateResult:
        """Install every referenced artifact and rewrite ``descriptor`` in place."""
        result = TemplateResult(module=descriptor.name)
        if not descriptor.is_module:
            return result

        version_attr = descriptor.root.get("version")
        if version_attr and is_expression(version_attr):
            descriptor.root.set("version", self.coords_for(version_attr).version)

        resources = descriptor.resources_element()
        if resources is None:
            return result

        fat = self.engine.installer.mode is PackagingMode.FAT
        for element in descriptor.artifact_elements():
            coords = self.coords_for(element.get("name", ""))
            if fat:
                file_name = self.engine.install_artifact(coords, target_dir)
                replacement = descriptor.make_element("resource-root", {"path": file_name})
                replacement.tail = element.tail
                index = list(resources).index(element)
                resources.remove(element)
                resources.insert(index, replacement)
                result.references.append(file_name)
            else:
                version = self.engine.install_artifact(coords)
                reference = coords.module_reference(version)
                element.set("name", reference)
                result.references.append(reference)
        logger.debug("Module %s: %s", result.module, ", ".join(result.references) or "no artifacts")
        return result

    def process_file(self, source: Path, target: Path) -> TemplateResult:
        """Process the template at ``source`` and write it to ``target``."""
        descriptor = ModuleDescriptor.parse(source)
        if not descriptor.is_module:
            copy_atomic(source, target)
            return TemplateResult(module=None)
        result = self.process(descriptor, target.parent)
        descriptor.write(target)
        return result
