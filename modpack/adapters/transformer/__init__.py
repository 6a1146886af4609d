"""
Binary transformers — opaque namespace-rewrite services.

    from modpack.adapters.transformer import build_transformer
"""

from __future__ import annotations

from collections.abc import Mapping

from modpack.adapters.base import ArtifactTransformer, TransformResult
from modpack.adapters.transformer.archive import ArchiveTransformer, derive_package_renames
from modpack.adapters.transformer.command import CommandTransformer
from modpack.core.errors import ConfigError
from modpack.core.models.build import TransformerSpec

__all__ = [
    "ArchiveTransformer",
    "ArtifactTransformer",
    "CommandTransformer",
    "TransformResult",
    "build_transformer",
    "derive_package_renames",
]


def build_transformer(spec: TransformerSpec, renames: Mapping[str, str]) -> ArtifactTransformer:
    """Instantiate the transformer a build configuration asks for."""
    if spec.kind == "command":
        if not spec.command:
            raise ConfigError("Transformer kind 'command' requires a 'command' list.")
        return CommandTransformer(spec.command, timeout=spec.timeout)
    return ArchiveTransformer(renames)
