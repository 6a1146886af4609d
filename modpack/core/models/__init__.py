"""
Domain models — Pydantic types for the packager.

All models are re-exported here for convenient access:

    from modpack.core.models import ArtifactCoords, BuildConfig, TransformationRecord
"""

from modpack.core.models.build import (
    BuildConfig,
    MappingRuleSpec,
    OverriddenArtifactSpec,
    PackagingMode,
    TransformationSettings,
    TransformerSpec,
)
from modpack.core.models.coords import ArtifactCoords, transformed_file_name
from modpack.core.models.record import ArtifactSource, OverrideStatus, TransformationRecord

__all__ = [
    # coords.py
    "ArtifactCoords",
    # record.py
    "ArtifactSource",
    # build.py
    "BuildConfig",
    "MappingRuleSpec",
    "OverriddenArtifactSpec",
    "OverrideStatus",
    "PackagingMode",
    "TransformationRecord",
    "TransformationSettings",
    "TransformerSpec",
    "transformed_file_name",
]
