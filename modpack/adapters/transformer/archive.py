"""
Archive transformer — built-in resource-level namespace rewrite.

Works on jars (any zip), exploded directories and single files. It
renames ``META-INF/services/<old.package...>`` entries and rewrites
package references inside textual resources (descriptors, properties,
manifests, service files). Class bytecode is copied untouched; use the
command transformer to drive a bytecode-aware tool when classes must be
rewritten too.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import zipfile
from collections.abc import Mapping
from pathlib import Path, PurePosixPath

from modpack.adapters.base import ArtifactTransformer, TransformResult
from modpack.core.errors import ArtifactIOError
from modpack.core.services.mapping import MappingTable

logger = logging.getLogger(__name__)

SERVICES_DIR = "META-INF/services/"
TEXT_SUFFIXES = frozenset({
    ".xml", ".properties", ".txt", ".json", ".mf", ".tld", ".xsd", ".dtd",
    ".jsp", ".yaml", ".yml", ".conf",
})


def derive_package_renames(mapping: MappingTable) -> dict[str, str]:
    """Package renames implied by module rules (``javax/ejb/api`` → ``javax.ejb``)."""
    renames: dict[str, str] = {}
    for rule in mapping.rules:
        source = list(rule.source_parts)
        target = list(rule.target_parts)
        if source and source[-1] == "api" and target and target[-1] == "api":
            source, target = source[:-1], target[:-1]
        if source and target:
            renames.setdefault(".".join(source), ".".join(target))
    return renames


class _Renamer:
    """Compiled dotted and slashed forms of a package rename table."""

    def __init__(self, renames: Mapping[str, str]):
        self._dotted = dict(renames)
        self._slashed = {k.replace(".", "/"): v.replace(".", "/") for k, v in renames.items()}
        self._dotted_re = self._compile(self._dotted, r"[\w.]")
        self._slashed_re = self._compile(self._slashed, r"[\w/]")

    @staticmethod
    def _compile(table: Mapping[str, str], before: str) -> re.Pattern[str] | None:
        if not table:
            return None
        alternatives = "|".join(re.escape(k) for k in sorted(table, key=len, reverse=True))
        return re.compile(rf"(?<!{before})({alternatives})(?!\w)")

    def text(self, value: str) -> str:
        if self._dotted_re is not None:
            value = self._dotted_re.sub(lambda m: self._dotted[m.group(1)], value)
        if self._slashed_re is not None:
            value = self._slashed_re.sub(lambda m: self._slashed[m.group(1)], value)
        return value

    def entry_name(self, name: str) -> str:
        if name.startswith(SERVICES_DIR):
            return SERVICES_DIR + self.text(name[len(SERVICES_DIR):])
        return name


def _is_text(name: str) -> bool:
    if name.startswith(SERVICES_DIR):
        return True
    return PurePosixPath(name).suffix.lower() in TEXT_SUFFIXES


class ArchiveTransformer(ArtifactTransformer):
    """Rewrite package references in resources of jars, trees and files."""

    def __init__(self, renames: Mapping[str, str]):
        self._renamer = _Renamer(renames)

    @property
    def name(self) -> str:
        return "archive"

    def transform(self, source: Path, target: Path, verbose: bool = False) -> TransformResult:
        try:
            if source.is_dir():
                changed = self._transform_tree(source, target, verbose)
            elif zipfile.is_zipfile(source):
                changed = self._transform_zip(source, target, verbose)
            else:
                changed = self._transform_file(source, target, source.name, verbose)
        except (OSError, zipfile.BadZipFile) as e:
            raise ArtifactIOError(f"Transformation of {source} failed: {e}") from e
        logger.debug("%s %s", "Transformed" if changed else "Unchanged", source)
        return TransformResult(path=target, changed=changed)

    # ── Content rewriting ────────────────────────────────────────

    def _rewrite(self, name: str, data: bytes) -> bytes:
        if not _is_text(name):
            return data
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            return data
        rewritten = self._renamer.text(text)
        return data if rewritten == text else rewritten.encode("utf-8")

    def _report(self, verbose: bool, old: str, new: str) -> None:
        if verbose:
            logger.info("  %s → %s", old, new)

    def _transform_zip(self, source: Path, target: Path, verbose: bool) -> bool:
        changed = False
        with zipfile.ZipFile(source) as zin, zipfile.ZipFile(target, "w") as zout:
            for info in zin.infolist():
                data = zin.read(info)
                new_name = self._renamer.entry_name(info.filename)
                new_data = self._rewrite(new_name, data)
                if new_name != info.filename or new_data is not data:
                    changed = True
                    self._report(verbose, info.filename, new_name)
                out = zipfile.ZipInfo(new_name, date_time=info.date_time)
                out.compress_type = info.compress_type
                out.external_attr = info.external_attr
                zout.writestr(out, new_data)
        return changed

    def _transform_file(self, source: Path, target: Path, name: str, verbose: bool) -> bool:
        data = source.read_bytes()
        new_data = self._rewrite(name, data)
        target.write_bytes(new_data)
        if new_data is not data:
            self._report(verbose, name, name)
            return True
        return False

    def _transform_tree(self, source: Path, target: Path, verbose: bool) -> bool:
        changed = False
        for dirpath, _dirnames, filenames in os.walk(source):
            for filename in filenames:
                src = Path(dirpath) / filename
                rel = src.relative_to(source).as_posix()
                new_rel = self._renamer.entry_name(rel)
                dst = target / new_rel
                dst.parent.mkdir(parents=True, exist_ok=True)
                if _is_text(new_rel):
                    changed |= self._transform_file(src, dst, new_rel, verbose)
                else:
                    shutil.copy2(src, dst)
                if new_rel != rel:
                    changed = True
                    self._report(verbose, rel, new_rel)
        target.mkdir(parents=True, exist_ok=True)
        return changed
