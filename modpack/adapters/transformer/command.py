"""
Command transformer — drive an external rewrite tool.

The command is an argv list with ``{input}`` and ``{output}``
placeholders (plus ``{verbose}``, replaced by ``-v`` or dropped), e.g.

    ["java", "-jar", "transformer-cli.jar", "{input}", "{output}"]

Whether the tool changed anything is decided by content digest: the
output is compared to the input with SHA-256. A tool that exits 0
without writing an output is treated as "nothing to change" and the
input is copied through.
"""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
import subprocess
import time
from pathlib import Path

from modpack.adapters.base import ArtifactTransformer, TransformResult
from modpack.core.errors import ArtifactIOError

logger = logging.getLogger(__name__)

VERBOSE_FLAG = "-v"


def digest(path: Path) -> str:
    """SHA-256 of a file, or of a directory tree (paths + contents)."""
    h = hashlib.sha256()
    if path.is_dir():
        for dirpath, dirnames, filenames in os.walk(path):
            dirnames.sort()
            for name in sorted(filenames):
                file = Path(dirpath) / name
                h.update(file.relative_to(path).as_posix().encode("utf-8"))
                h.update(b"\0")
                h.update(digest(file).encode("ascii"))
        return h.hexdigest()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(1 << 16), b""):
            h.update(chunk)
    return h.hexdigest()


class CommandTransformer(ArtifactTransformer):
    """Run an external tool per artifact."""

    def __init__(self, command: list[str], timeout: int = 600):
        if not command:
            raise ValueError("Transformer command must not be empty")
        self._command = list(command)
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "command"

    def is_available(self) -> bool:
        return shutil.which(self._command[0]) is not None

    def _argv(self, source: Path, target: Path, verbose: bool) -> list[str]:
        argv: list[str] = []
        for arg in self._command:
            if arg == "{verbose}":
                if verbose:
                    argv.append(VERBOSE_FLAG)
                continue
            argv.append(arg.replace("{input}", str(source)).replace("{output}", str(target)))
        return argv

    def transform(self, source: Path, target: Path, verbose: bool = False) -> TransformResult:
        argv = self._argv(source, target, verbose)
        logger.debug("Executing: %s", " ".join(argv))
        start = time.monotonic()

        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ArtifactIOError(
                f"Transformer timed out after {self._timeout}s on {source}"
            ) from e
        except OSError as e:
            raise ArtifactIOError(f"Cannot run transformer {argv[0]}: {e}") from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if result.returncode != 0:
            stderr = result.stderr.strip()
            raise ArtifactIOError(
                f"Transformer failed on {source} (exit {result.returncode}): "
                f"{stderr or 'no output'}"
            )
        if verbose and result.stdout.strip():
            logger.info("%s", result.stdout.strip())

        try:
            if not target.exists():
                if source.is_dir():
                    shutil.copytree(source, target)
                else:
                    shutil.copyfile(source, target)
                return TransformResult(path=target, changed=False)
            changed = digest(source) != digest(target)
        except OSError as e:
            raise ArtifactIOError(f"Cannot inspect transformer output {target}: {e}") from e

        logger.debug("Transformer finished in %dms (changed=%s)", elapsed_ms, changed)
        return TransformResult(path=target, changed=changed)
