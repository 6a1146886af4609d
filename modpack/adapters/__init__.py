"""Adapters — bindings for artifact resolution and binary transformation.

Public re-exports for convenient access.
"""

from modpack.adapters.base import ArtifactResolver, ArtifactTransformer, TransformResult
from modpack.adapters.mock import MockResolver, MockTransformer
from modpack.adapters.resolver import LocalRepositoryResolver

__all__ = [
    "ArtifactResolver",
    "ArtifactTransformer",
    "LocalRepositoryResolver",
    "MockResolver",
    "MockTransformer",
    "TransformResult",
]
