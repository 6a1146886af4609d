"""
Error taxonomy — every fatal condition the packager can raise.

Nothing here is retried. The enclosing build is expected to be re-run
from scratch; the provisioning-repository probe keeps re-runs cheap.
"""

from __future__ import annotations

from pathlib import Path


class ModpackError(Exception):
    """Base class for all packager failures."""


class ConfigError(ModpackError):
    """Invalid or conflicting build configuration."""


class ResolutionError(ModpackError):
    """An artifact coordinate could not be located."""

    def __init__(self, coords: object, detail: str = "") -> None:
        self.coords = coords
        message = f"Cannot resolve artifact {coords}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ArtifactIOError(ModpackError):
    """Copy, transform or serialize failure while installing an artifact."""


class ExpressionError(ModpackError):
    """Malformed ``${...}`` version expression."""

    template = "Invalid syntax for expression {}"

    def __init__(self, expression: str) -> None:
        self.expression = expression
        super().__init__(self.template.format(expression))


class UnresolvedExpressionError(ExpressionError):
    """Well-formed expression with no property set and no default."""

    template = "Unresolved expression for {}"


class DescriptorError(ModpackError, OSError):
    """A module descriptor could not be parsed or written."""

    def __init__(self, path: Path | str, detail: str = "", action: str = "parse") -> None:
        self.path = Path(path)
        self.action = action
        message = f"Failed to {action} document {self.path}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
