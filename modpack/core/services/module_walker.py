"""
Module tree transformation — rename a whole ``modules/`` tree.

The tree is walked in three independent partitions:

    modules/system/layers/<layer>/...     one sub-tree per layer
    modules/system/add-ons/<add-on>/...   one sub-tree per add-on
    modules/...                           everything else, minus modules/system

Every file is copied into a side tree (``transformed-modules`` next to
``modules``) under its renamed relative path; ``module.xml`` files are
rewritten on the way. When the side tree is complete the original is
moved aside to ``modules-backup``, the side tree renamed into its place
and the backup deleted. Any failure before the swap discards the side
tree and leaves the original untouched; a failed swap puts the backup
back.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from modpack.core.persistence.files import remove_path
from modpack.core.services.descriptor import MODULE_DESCRIPTOR, rewrite_file
from modpack.core.services.mapping import MappingTable

logger = logging.getLogger(__name__)

SYSTEM = "system"
LAYERS = "layers"
ADD_ONS = "add-ons"
WORK_DIR = "transformed-modules"
BACKUP_DIR = "modules-backup"


@dataclass
class WalkReport:
    """What a module tree transformation did."""

    files: int = 0
    descriptors: int = 0
    renamed_paths: int = 0
    changed_descriptors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "files": self.files,
            "descriptors": self.descriptors,
            "renamed_paths": self.renamed_paths,
            "changed_descriptors": sorted(self.changed_descriptors),
        }


def _walk_files(root: Path, *, skip_system: bool = False) -> list[PurePosixPath]:
    """Relative paths of all files under ``root`` (symlinks followed)."""
    files: list[PurePosixPath] = []
    for dirpath, dirnames, filenames in os.walk(root, followlinks=True):
        current = Path(dirpath)
        if skip_system and current == root and SYSTEM in dirnames:
            dirnames.remove(SYSTEM)
        for name in filenames:
            files.append(PurePosixPath((current / name).relative_to(root).as_posix()))
    return sorted(files)


def collect_partitions(modules_dir: Path) -> dict[PurePosixPath, list[PurePosixPath]]:
    """Group module-tree files by independent partition root.

    Returns:
        Mapping of partition root (relative to ``modules_dir``, ``.`` for
        the flat remainder) to the files under it, relative to that root.
    """
    partitions: dict[PurePosixPath, list[PurePosixPath]] = {}
    for group in (LAYERS, ADD_ONS):
        group_dir = modules_dir / SYSTEM / group
        if not group_dir.is_dir():
            continue
        for child in sorted(group_dir.iterdir()):
            if child.is_dir():
                partitions[PurePosixPath(SYSTEM, group, child.name)] = _walk_files(child)
    partitions[PurePosixPath(".")] = _walk_files(modules_dir, skip_system=True)
    return partitions


def _swap_in(work_dir: Path, modules_dir: Path) -> None:
    """Replace ``modules_dir`` with ``work_dir`` via a backup sibling.

    Until the side tree has been renamed into place the original is only
    ever renamed, never deleted. A leftover backup is logged, not raised.
    """
    backup = modules_dir.parent / BACKUP_DIR
    remove_path(backup)
    modules_dir.rename(backup)
    try:
        work_dir.rename(modules_dir)
    except OSError:
        backup.rename(modules_dir)
        raise
    try:
        shutil.rmtree(backup)
    except OSError as e:
        logger.warning("Could not delete module tree backup %s: %s", backup, e)


def transform_modules(modules_dir: Path, mapping: MappingTable) -> WalkReport:
    """Rename modules in ``modules_dir`` according to ``mapping``.

    Raises:
        OSError: On any copy, rewrite or swap failure (original tree kept).
    """
    work_dir = modules_dir.parent / WORK_DIR
    remove_path(work_dir)
    report = WalkReport()

    try:
        for part_root, files in collect_partitions(modules_dir).items():
            src_root = modules_dir / part_root
            dst_root = work_dir / part_root
            dst_root.mkdir(parents=True, exist_ok=True)

            for rel in files:
                target_rel = rel
                new_name = None
                match = mapping.match_path(rel)
                if match is not None:
                    target_rel, rule = match
                    new_name = rule.target_name
                    report.renamed_paths += 1

                target = dst_root / target_rel
                target.parent.mkdir(parents=True, exist_ok=True)
                src = src_root / rel

                if rel.name == MODULE_DESCRIPTOR:
                    if rewrite_file(src, target, mapping, new_name):
                        report.changed_descriptors.append(str(part_root / target_rel.parent))
                    report.descriptors += 1
                else:
                    shutil.copy2(src, target)
                report.files += 1

        _swap_in(work_dir, modules_dir)
    finally:
        remove_path(work_dir)

    logger.info(
        "Transformed module tree %s: %d file(s), %d descriptor(s), %d renamed path(s)",
        modules_dir, report.files, report.descriptors, report.renamed_paths,
    )
    return report
