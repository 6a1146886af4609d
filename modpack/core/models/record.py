"""
Transformation records — per-artifact derived facts, recomputed each run.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, model_validator


class ArtifactSource(str, Enum):
    """Where the installed bytes came from."""

    RESOLVED = "resolved"          # resolver output, untouched
    TRANSFORMED = "transformed"    # transformer output produced in this run
    OVERRIDE = "override"          # caller-supplied file
    PROVISIONING = "provisioning"  # reused from the provisioning repository
    EXISTING = "existing"          # already present in the generated repository


class OverrideStatus(BaseModel):
    """Outcome of probing the provisioning repository for an overridden artifact."""

    needs_transformation: bool
    transformed_file: Path | None = None


class TransformationRecord(BaseModel):
    """What the engine knows about one artifact at decision time."""

    excluded: bool = False
    needs_transformation: bool = False
    transformed_file: Path | None = None

    @model_validator(mode="after")
    def _excluded_has_no_transformed_file(self) -> TransformationRecord:
        if self.excluded and self.transformed_file is not None:
            raise ValueError("An excluded artifact cannot have a transformed file")
        return self
