"""
Module descriptors — parse, rename and serialize ``module.xml`` documents.

A descriptor is parsed once, mutated in place (module name, dependency
names, resource entries) and serialized once. Only ``module`` and
``module-alias`` roots are rewritten; any other document kind passes
through unchanged.

Writes are atomic: the serialized document goes to a temp file in the
target directory and is renamed on success.
"""

from __future__ import annotations

import copy
import logging
import xml.etree.ElementTree as ET
from io import BytesIO
from pathlib import Path

from modpack.core.errors import DescriptorError
from modpack.core.persistence.files import copy_atomic, write_atomic
from modpack.core.services.mapping import MappingTable

logger = logging.getLogger(__name__)

MODULE_DESCRIPTOR = "module.xml"
MODULE_KINDS = ("module", "module-alias")


def _split_tag(tag: str) -> tuple[str, str]:
    """``{ns}local`` → ``(ns, local)``."""
    if tag.startswith("{"):
        ns, _, local = tag[1:].partition("}")
        return ns, local
    return "", tag


class ModuleDescriptor:
    """An in-memory ``module.xml``."""

    def __init__(self, root: ET.Element, path: Path | None = None):
        self.root = root
        self.path = path
        self.namespace, self.kind = _split_tag(root.tag)

    # ── Parsing ──────────────────────────────────────────────────

    @classmethod
    def parse(cls, path: Path) -> ModuleDescriptor:
        """Parse a descriptor file, keeping comments.

        Raises:
            DescriptorError: If the file is unreadable or not well-formed XML.
        """
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise DescriptorError(path, str(e)) from e
        return cls.from_bytes(raw, path)

    @classmethod
    def from_bytes(cls, raw: bytes | str, path: Path | None = None) -> ModuleDescriptor:
        parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
        try:
            parser.feed(raw)
            root = parser.close()
        except ET.ParseError as e:
            raise DescriptorError(path or "<memory>", str(e)) from e
        return cls(root, path)

    # ── Accessors ────────────────────────────────────────────────

    def _q(self, local: str) -> str:
        return f"{{{self.namespace}}}{local}" if self.namespace else local

    @property
    def is_module(self) -> bool:
        return self.kind in MODULE_KINDS

    @property
    def name(self) -> str | None:
        return self.root.get("name")

    @name.setter
    def name(self, value: str) -> None:
        self.root.set("name", value)

    def dependency_elements(self) -> list[ET.Element]:
        """``<dependencies><module .../></dependencies>`` entries."""
        deps = self.root.find(self._q("dependencies"))
        if deps is None:
            return []
        return deps.findall(self._q("module"))

    def dependency_names(self) -> list[str]:
        return [e.get("name", "") for e in self.dependency_elements()]

    def resources_element(self) -> ET.Element | None:
        return self.root.find(self._q("resources"))

    def artifact_elements(self) -> list[ET.Element]:
        """``<resources><artifact name=.../></resources>`` entries."""
        resources = self.resources_element()
        if resources is None:
            return []
        return resources.findall(self._q("artifact"))

    def resource_root_paths(self) -> list[str]:
        resources = self.resources_element()
        if resources is None:
            return []
        return [e.get("path", "") for e in resources.findall(self._q("resource-root"))]

    def make_element(self, local: str, attrib: dict[str, str]) -> ET.Element:
        return ET.Element(self._q(local), attrib)

    # ── Serialization ────────────────────────────────────────────

    def to_bytes(self) -> bytes:
        """Serialize, keeping the document's default namespace as ``xmlns``.

        Tags in the default namespace are written unprefixed on a copy of
        the tree; attributes are never namespace-qualified.
        """
        root = copy.deepcopy(self.root)
        if self.namespace:
            prefix = f"{{{self.namespace}}}"
            for element in root.iter():
                if isinstance(element.tag, str) and element.tag.startswith(prefix):
                    element.tag = element.tag[len(prefix):]
            root.set("xmlns", self.namespace)
        buf = BytesIO()
        try:
            ET.ElementTree(root).write(buf, encoding="UTF-8", xml_declaration=True)
        except (ValueError, TypeError) as e:
            raise DescriptorError(self.path or "<memory>", str(e), action="write") from e
        return buf.getvalue() + b"\n"

    def write(self, target: Path) -> Path:
        """Serialize to ``target`` atomically."""
        content = self.to_bytes()
        try:
            return write_atomic(target, lambda tmp: tmp.write_bytes(content))
        except OSError as e:
            raise DescriptorError(target, str(e), action="write") from e


def rewrite_descriptor(
    descriptor: ModuleDescriptor,
    mapping: MappingTable,
    new_name: str | None = None,
) -> bool:
    """Rename a module descriptor and its module dependencies in place.

    The module name becomes ``new_name`` when given, otherwise the first
    mapping rule whose path prefix matches the current name decides.
    Dependency names are replaced only on an exact dotted match.

    Returns:
        Whether anything changed. Non-module documents are left untouched.
    """
    if not descriptor.is_module:
        logger.debug("Not a module descriptor (%s), left as is", descriptor.kind)
        return False

    changed = False
    current = descriptor.name
    if new_name is None and current:
        new_name = mapping.rename_module(current)
    if new_name is not None and new_name != current:
        logger.debug("Module %s renamed to %s", current, new_name)
        descriptor.name = new_name
        changed = True

    for element in descriptor.dependency_elements():
        dep = element.get("name")
        renamed = mapping.rename_dependency(dep) if dep else None
        if renamed is not None:
            element.set("name", renamed)
            changed = True
    return changed


def rewrite_file(
    source: Path,
    target: Path,
    mapping: MappingTable,
    new_name: str | None = None,
) -> bool:
    """Parse ``source``, rewrite it and write the result to ``target``.

    Non-module documents are copied byte for byte. ``target`` is either
    fully written or absent.
    """
    descriptor = ModuleDescriptor.parse(source)
    if not descriptor.is_module:
        copy_atomic(source, target)
        return False
    changed = rewrite_descriptor(descriptor, mapping, new_name)
    descriptor.write(target)
    return changed
