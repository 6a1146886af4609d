"""
File primitives — atomic copy and replace.

Every write the packager performs is a unit of mutation: it either fully
completes or leaves no target behind. Writes go to a temp name in the
target's directory and are renamed into place; the temp is removed on
any error.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)


def temp_sibling(target: Path, *, directory: bool = False) -> Path:
    """Reserve a temp path next to ``target`` (same filesystem, so rename is atomic)."""
    target.parent.mkdir(parents=True, exist_ok=True)
    if directory:
        return Path(tempfile.mkdtemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"))
    fd, tmp_path = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    os.close(fd)
    return Path(tmp_path)


def remove_path(path: Path) -> None:
    """Delete a file or directory tree if present."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path, ignore_errors=True)
    else:
        path.unlink(missing_ok=True)


def commit(tmp: Path, target: Path) -> None:
    """Move a completed temp path over ``target``."""
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target)
    tmp.replace(target)


def write_atomic(target: Path, producer: Callable[[Path], None], *, directory: bool = False) -> Path:
    """Run ``producer(tmp)`` then rename ``tmp`` onto ``target``.

    Args:
        target: Final path.
        producer: Writes the content at the given temp path.
        directory: Reserve a temp directory instead of a temp file.

    Returns:
        ``target``.
    """
    tmp = temp_sibling(target, directory=directory)
    try:
        producer(tmp)
        commit(tmp, target)
    except BaseException:
        remove_path(tmp)
        raise
    return target


def copy_atomic(source: Path, target: Path) -> Path:
    """Copy a file or directory tree to ``target``, replacing it atomically."""
    if source.is_dir():
        def _copy_tree(tmp: Path) -> None:
            tmp.rmdir()
            shutil.copytree(source, tmp)

        write_atomic(target, _copy_tree, directory=True)
    else:
        write_atomic(target, lambda tmp: shutil.copyfile(source, tmp))
    logger.debug("Copied %s → %s", source, target)
    return target


def write_text_atomic(target: Path, content: str) -> Path:
    """Write UTF-8 text to ``target`` atomically."""
    return write_atomic(target, lambda tmp: tmp.write_text(content, encoding="utf-8"))
