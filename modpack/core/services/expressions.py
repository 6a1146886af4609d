"""
Version expressions — ``${name1,name2;default}`` in artifact coordinates.

Names are looked up in order: plain names in the configured properties,
``env.NAME`` in the process environment. The first value found wins;
otherwise the default (everything after the first ``;``) is used.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from modpack.core.errors import ExpressionError, UnresolvedExpressionError
from modpack.core.models.coords import ArtifactCoords

ENV_PREFIX = "env."


def is_expression(value: str) -> bool:
    """Whether ``value`` is a ``${...}`` expression."""
    value = value.strip()
    return value.startswith("${") and value.endswith("}")


def resolve_version(
    value: str,
    properties: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Resolve a version that may be an expression.

    Raises:
        ExpressionError: Malformed expression.
        UnresolvedExpressionError: No name set and no default.
    """
    value = value.strip()
    if not is_expression(value):
        return value

    properties = properties or {}
    environ = os.environ if environ is None else environ

    body = value[2:-1]
    names_part, sep, default = body.partition(";")
    names = [name.strip() for name in names_part.split(",")]
    for name in names:
        if not name or (name.startswith(ENV_PREFIX) and not name[len(ENV_PREFIX):]):
            raise ExpressionError(value)

    for name in names:
        if name.startswith(ENV_PREFIX):
            found = environ.get(name[len(ENV_PREFIX):])
        else:
            found = properties.get(name)
        if found is not None:
            return found

    if sep:
        return default
    raise UnresolvedExpressionError(value)


def to_artifact_coords(
    versions: Mapping[str, str],
    text: str,
    properties: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ArtifactCoords:
    """Turn a versions-map key or a literal coordinate into resolved coords.

    ``text`` is either a key of ``versions`` (``g:a`` or ``g:a::c``) whose
    value holds full coordinates, or full coordinates itself. Errors name
    ``text`` as given.
    """
    raw = versions.get(text.strip(), text)
    coords = ArtifactCoords.parse(raw)
    try:
        version = resolve_version(coords.version, properties, environ)
    except UnresolvedExpressionError:
        raise UnresolvedExpressionError(text) from None
    except ExpressionError:
        raise ExpressionError(text) from None
    return coords.with_version(version)
